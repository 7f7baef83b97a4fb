"""Income summaries over deals: monthly income list and the dashboard numbers."""

from typing import Iterable, Mapping, Optional, Union
from datetime import datetime
from pydantic import BaseModel

from src.models.deal import Deal
from src.models.listing import Listing, ListingType, normalize_type
from src.services.money import deal_income
from src.services.periods import in_period, month_key, month_range_bounds, parse_timestamp, recent_month_keys


class IncomeRow(BaseModel):
    listing_id: str
    listing_name: str
    listing_type: Optional[str]
    updated_at: Optional[datetime]
    gross: float
    commission_rate: float
    commission: float
    deductions: float
    net: float


class MonthBar(BaseModel):
    key: str
    net: float


class IncomeSummary(BaseModel):
    from_month: str
    to_month: str
    type_filter: str
    range_net: float
    deal_count: int
    rent_count: int
    sale_count: int
    all_time_net: float
    monthly: list[MonthBar]
    rows: list[IncomeRow]


def income_rows(deals: Iterable[Deal], listing_map: Mapping[str, Listing]) -> list[IncomeRow]:
    """Per-deal breakdown; the listing ID stands in for the name when the listing is gone."""
    rows = []
    for deal in deals:
        listing = listing_map.get(deal.listing_id)
        income = deal_income(deal)
        rows.append(IncomeRow(
            listing_id=deal.listing_id,
            listing_name=listing.condo_name if listing else deal.listing_id,
            listing_type=listing.type.value if listing else None,
            updated_at=deal.updated_at,
            gross=income.gross,
            commission_rate=income.commission_rate,
            commission=income.commission,
            deductions=income.deductions,
            net=income.net,
        ))
    return rows


def _matches_type(deal: Deal, listing_map: Mapping[str, Listing], wanted: Optional[ListingType]) -> bool:
    if wanted is None:
        return True
    listing = listing_map.get(deal.listing_id)
    return listing is not None and listing.type == wanted


def summarize_income(
    deals: Iterable[Deal],
    listing_map: Mapping[str, Listing],
    from_month: str,
    to_month: str,
    type_filter: Union[ListingType, str, None],
    now: datetime,
) -> IncomeSummary:
    """Dashboard figures for a month range.

    The range and type filter drive the range figures and rows. All-time net
    ignores both; the trailing twelve monthly bars follow the type filter only.
    """
    deals = list(deals)
    start, end = month_range_bounds(from_month, to_month)
    wanted = None if type_filter in (None, "all") else normalize_type(type_filter)

    in_range = [
        d for d in deals
        if in_period(d.updated_at, start, end) and _matches_type(d, listing_map, wanted)
    ]
    rent_count = sale_count = 0
    for deal in in_range:
        listing = listing_map.get(deal.listing_id)
        if listing is None:
            continue
        if listing.type == ListingType.SALE:
            sale_count += 1
        else:
            rent_count += 1

    keys = recent_month_keys(parse_timestamp(now))
    bars = dict.fromkeys(keys, 0.0)
    for deal in deals:
        updated = parse_timestamp(deal.updated_at)
        if updated is None:
            continue
        key = month_key(updated)
        if key in bars and _matches_type(deal, listing_map, wanted):
            bars[key] += deal_income(deal).net

    return IncomeSummary(
        from_month=from_month,
        to_month=to_month,
        type_filter=wanted.value if wanted else "all",
        range_net=sum(deal_income(d).net for d in in_range),
        deal_count=len(in_range),
        rent_count=rent_count,
        sale_count=sale_count,
        all_time_net=sum(deal_income(d).net for d in deals),
        monthly=[MonthBar(key=k, net=bars[k]) for k in keys],
        rows=income_rows(in_range, listing_map),
    )
