"""Quick capture: turn a pasted listing message into a listing draft and insert payload."""

import re
from typing import Any, Mapping, Optional
from datetime import date, datetime, timedelta
from pydantic import BaseModel

from src.models.listing import (
    Furnish,
    ListingStatus,
    ListingType,
    normalize_furnish,
    normalize_status,
    normalize_type,
)
from src.services.periods import parse_date, to_iso

_SALE_RE = re.compile(r"sale|sell|for sale|出售|卖", re.IGNORECASE)
_FULLY_RE = re.compile(r"fully|full furnish|fully furnished|全配", re.IGNORECASE)
_PARTIAL_RE = re.compile(r"partial|partly|semi|部分", re.IGNORECASE)
_STATUS_PATTERNS = (
    (re.compile(r"\bavailable\b|可入住|现房", re.IGNORECASE), ListingStatus.AVAILABLE),
    (re.compile(r"\bbooked\b|已订", re.IGNORECASE), ListingStatus.BOOKED),
    (re.compile(r"\bclosed\b|完成|成交", re.IGNORECASE), ListingStatus.CLOSED),
    (re.compile(r"\binactive\b|下架", re.IGNORECASE), ListingStatus.INACTIVE),
)
_PRICE_RM_RE = re.compile(r"RM\s*([\d,]{3,})", re.IGNORECASE)
_PRICE_BARE_RE = re.compile(r"(?:^|\s)(\d{4,6})(?:\s|$)")
_SQFT_RE = re.compile(r"(\d{3,5})\s*(?:sqft|sq\.?ft)", re.IGNORECASE)
_ROOMS_SHORT_RE = re.compile(r"(\d)\s*R\b", re.IGNORECASE)
_BATHS_SHORT_RE = re.compile(r"(\d)\s*B\b", re.IGNORECASE)
_ROOMS_LONG_RE = re.compile(r"(\d)\s*(?:bedroom|bed)\b", re.IGNORECASE)
_BATHS_LONG_RE = re.compile(r"(\d)\s*(?:bathroom|bath)\b", re.IGNORECASE)
_CARPARK_RE = re.compile(r"(\d)\s*(?:parking|park|cp)\b", re.IGNORECASE)
_AVAILABLE_RE = re.compile(r"(20\d{2})[-/](\d{1,2})[-/](\d{1,2})")

MAX_AREA_LENGTH = 40


class ListingDraft(BaseModel):
    """Fields guessed from pasted text; anything not found stays None."""
    condo_name: str = ""
    area: Optional[str] = None
    type: ListingType = ListingType.RENT
    status: ListingStatus = ListingStatus.NEW
    furnish: Optional[Furnish] = None
    price: Optional[float] = None
    sqft: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    carparks: Optional[int] = None
    available_from: Optional[date] = None


def to_nullable_number(value: Any) -> Optional[float]:
    """Parse a form/text number, ignoring thousands separators; blank or junk is None."""
    text = str(value if value is not None else "").replace(",", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _to_int(value: Any) -> Optional[int]:
    n = to_nullable_number(value)
    return int(n) if n is not None else None


def _lines(raw: str) -> list[str]:
    return [line.strip() for line in raw.split("\n") if line.strip()]


def guess_type(raw: str) -> ListingType:
    return ListingType.SALE if _SALE_RE.search(raw) else ListingType.RENT


def guess_furnish(raw: str) -> Optional[Furnish]:
    if _FULLY_RE.search(raw):
        return Furnish.FULLY
    if _PARTIAL_RE.search(raw):
        return Furnish.PARTIAL
    return None


def guess_status(raw: str) -> ListingStatus:
    for pattern, status in _STATUS_PATTERNS:
        if pattern.search(raw):
            return status
    return ListingStatus.NEW


def extract_area(raw: str) -> Optional[str]:
    lines = _lines(raw)
    second = lines[1] if len(lines) > 1 else ""
    if second and len(second) <= MAX_AREA_LENGTH and not re.search(r"\d", second):
        return second
    return None


def extract_price(raw: str) -> Optional[float]:
    """``RM1800`` / ``RM 1,800``, else a standalone 4-6 digit number."""
    match = _PRICE_RM_RE.search(raw)
    if match:
        return to_nullable_number(match.group(1))
    match = _PRICE_BARE_RE.search(raw)
    return to_nullable_number(match.group(1)) if match else None


def extract_rooms(raw: str) -> tuple[Optional[int], Optional[int]]:
    """Bedrooms and bathrooms from ``3R 2B`` or ``3 bedroom 2 bathroom``."""
    rooms = _ROOMS_SHORT_RE.search(raw) or _ROOMS_LONG_RE.search(raw)
    baths = _BATHS_SHORT_RE.search(raw) or _BATHS_LONG_RE.search(raw)
    return (
        _to_int(rooms.group(1)) if rooms else None,
        _to_int(baths.group(1)) if baths else None,
    )


def extract_available_from(raw: str) -> Optional[date]:
    match = _AVAILABLE_RE.search(raw)
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_quick_listing(raw: str) -> ListingDraft:
    raw = raw or ""
    lines = _lines(raw)
    sqft = _SQFT_RE.search(raw)
    carparks = _CARPARK_RE.search(raw)
    bedrooms, bathrooms = extract_rooms(raw)
    return ListingDraft(
        condo_name=lines[0] if lines else "",
        area=extract_area(raw),
        type=guess_type(raw),
        status=guess_status(raw),
        furnish=guess_furnish(raw),
        price=extract_price(raw),
        sqft=_to_int(sqft.group(1)) if sqft else None,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        carparks=_to_int(carparks.group(1)) if carparks else None,
        available_from=extract_available_from(raw),
    )


def build_quick_listing_payload(draft: ListingDraft, user_id: str, raw: str, now: datetime) -> dict:
    """Insert payload for a quick-captured listing.

    Quick captures always land in the inbox with a follow-up tomorrow. The
    status is New unless the text said Available, in which case the guessed
    availability date is kept with it.
    """
    status = ListingStatus.AVAILABLE if draft.status == ListingStatus.AVAILABLE else ListingStatus.NEW
    available_from = draft.available_from if status == ListingStatus.AVAILABLE else None
    raw = (raw or "").strip()
    return {
        "user_id": user_id,
        "condo_name": draft.condo_name.strip(),
        "area": draft.area.strip() if draft.area else None,
        "type": draft.type.value,
        "status": status.value,
        "furnish": draft.furnish.value if draft.furnish else None,
        "price": draft.price,
        "sqft": draft.sqft,
        "bedrooms": draft.bedrooms,
        "bathrooms": draft.bathrooms,
        "carparks": draft.carparks,
        "available_from": available_from.isoformat() if available_from else None,
        "inbox": True,
        "next_follow_up": to_iso(now + timedelta(days=1)),
        "priority": 2,
        "raw_text": raw or None,
        "last_update": to_iso(now),
    }


_NUMBER_FIELDS = ("price", "sqft", "bedrooms", "bathrooms", "carparks", "priority")


def prepare_listing_payload(data: Mapping[str, Any], now: datetime) -> dict:
    """Normalize a create/edit payload before it is written.

    Canonicalizes enums, converts form numbers, clears ``available_from`` unless
    the status is Available and stamps ``last_update``. Only keys present in
    ``data`` are written, so partial edits stay partial.
    """
    payload = dict(data)
    if "condo_name" in payload:
        payload["condo_name"] = str(payload["condo_name"] or "").strip()
    if "area" in payload:
        payload["area"] = str(payload["area"] or "").strip() or None
    if "type" in payload:
        payload["type"] = normalize_type(payload["type"]).value
    if "furnish" in payload:
        furnish = normalize_furnish(payload["furnish"])
        payload["furnish"] = furnish.value if furnish else None
    for field in _NUMBER_FIELDS:
        if field in payload and isinstance(payload[field], str):
            payload[field] = to_nullable_number(payload[field])
    if "status" in payload:
        status = normalize_status(payload["status"])
        payload["status"] = status.value
        available = parse_date(payload.get("available_from")) if status == ListingStatus.AVAILABLE else None
        payload["available_from"] = available.isoformat() if available else None
    payload["last_update"] = to_iso(now)
    return payload
