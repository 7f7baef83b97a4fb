"""CSV backup export and the printable income report."""

import csv
import io
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence
from datetime import datetime
from pydantic import BaseModel

from src.models.deal import Deal
from src.models.listing import Listing
from src.services.money import deal_income, numeric
from src.services.periods import parse_timestamp, to_iso
from src.utils.config import AppConfig

BACKUP_COLUMNS = (
    "listing_id", "condo_name", "area", "type", "status", "price", "sqft",
    "bedrooms", "bathrooms", "carparks", "gross", "commission_rate",
    "deductions", "notes", "photos_count", "listing_updated_at", "deal_updated_at",
)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    elif isinstance(value, datetime):
        value = to_iso(value)
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """Header from the first row's keys; every value quoted, embedded newlines kept."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return ",".join(headers) + "\n" + buf.getvalue()[:-1]


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def latest_per_listing(records: Iterable[Any]) -> dict[str, Any]:
    """Most recently updated deal per listing; rows or models, ties keep the first seen."""
    latest: dict[str, Any] = {}
    for record in records:
        listing_id = _field(record, "listing_id")
        current = latest.get(listing_id)
        if current is None or _updated_key(record) > _updated_key(current):
            latest[listing_id] = record
    return latest


def _updated_key(record: Any) -> datetime:
    return parse_timestamp(_field(record, "updated_at")) or datetime.min


def _blank(value: Any) -> Any:
    return "" if value is None else value


def build_backup_rows(
    listings: Iterable[Mapping[str, Any]],
    deals: Iterable[Mapping[str, Any]],
    photos: Iterable[Mapping[str, Any]],
) -> list[dict]:
    """One row per stored listing joined with its deal (if any) and photo count.

    Works on raw store rows so every listing is exported with its values as
    stored, including ones the models would reject.
    """
    deal_map = latest_per_listing(deals)
    photo_counts: dict[str, int] = {}
    for photo in photos:
        listing_id = _field(photo, "listing_id")
        photo_counts[listing_id] = photo_counts.get(listing_id, 0) + 1

    rows = []
    for listing in listings:
        listing_id = listing.get("id")
        deal: Mapping[str, Any] = deal_map.get(listing_id) or {}
        rows.append({
            "listing_id": listing_id,
            "condo_name": listing.get("condo_name"),
            "area": listing.get("area"),
            "type": listing.get("type"),
            "status": listing.get("status"),
            "price": listing.get("price"),
            "sqft": listing.get("sqft"),
            "bedrooms": listing.get("bedrooms"),
            "bathrooms": listing.get("bathrooms"),
            "carparks": listing.get("carparks"),
            "gross": _blank(deal.get("gross")),
            "commission_rate": _blank(deal.get("commission_rate")),
            "deductions": _blank(deal.get("deductions")),
            "notes": _blank(deal.get("notes")),
            "photos_count": photo_counts.get(listing_id, 0),
            "listing_updated_at": listing.get("updated_at"),
            "deal_updated_at": _blank(deal.get("updated_at")),
        })
    return rows


def export_filename(now: datetime) -> str:
    return f"{AppConfig.EXPORT_FILENAME_PREFIX}-{int(now.timestamp() * 1000)}.csv"

class ReportRow(BaseModel):
    listing_id: Optional[str]
    condo_name: str
    area: Optional[str]
    type: str
    status: str
    updated_at: Optional[datetime]
    gross: float
    commission_rate: float
    commission_amount: float
    deductions: float
    net: float
    notes: Optional[str]


class ReportTotals(BaseModel):
    total_net: float
    deals_with_income: int


def build_report_rows(listings: Iterable[Listing], deals: Iterable[Deal]) -> list[ReportRow]:
    """Printable report rows; commission and net are always recomputed from the deal inputs."""
    deal_map = latest_per_listing(deals)
    rows = []
    for listing in listings:
        deal = deal_map.get(listing.id)
        income = deal_income(deal)
        rows.append(ReportRow(
            listing_id=listing.id,
            condo_name=listing.condo_name,
            area=listing.area,
            type=listing.type.value,
            status=listing.status.value,
            updated_at=listing.updated_at,
            gross=income.gross,
            commission_rate=income.commission_rate,
            commission_amount=income.commission,
            deductions=income.deductions,
            net=income.net,
            notes=deal.notes if deal else None,
        ))
    return rows


def report_totals(rows: Iterable[ReportRow]) -> ReportTotals:
    rows = list(rows)
    return ReportTotals(
        total_net=sum(numeric(r.net) for r in rows),
        deals_with_income=sum(1 for r in rows if numeric(r.net) > 0),
    )
