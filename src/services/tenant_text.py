"""Shareable plain-text listing summary for prospective tenants."""

from typing import Any, Optional
from datetime import date
from urllib.parse import quote

from src.models.listing import Furnish, Listing
from src.services.money import format_rm
from src.services.periods import parse_date

_MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_FURNISH_LINES = {
    Furnish.FULLY: "Fully Furnished",
    Furnish.PARTIAL: "Partial Furnished",
}


def availability_label(available_from: Any, today: date) -> str:
    """``Ready move in`` unless the unit frees up after today, else ``Available mid Mar``."""
    available = parse_date(available_from)
    current = parse_date(today)
    if available is None or current is None or available <= current:
        return "Ready move in"

    if available.day <= 10:
        bucket = "early"
    elif available.day <= 20:
        bucket = "mid"
    else:
        bucket = "end"
    return f"Available {bucket} {_MONTH_ABBREVIATIONS[available.month - 1]}"


def _count(value: Optional[float]) -> str:
    return "—" if value is None else f"{value:g}"


def build_tenant_text(listing: Listing, today: date) -> str:
    lines = [listing.condo_name or "—", ""]

    if listing.sqft:
        lines.append(f"{listing.sqft} sqft")
    if listing.bedrooms is not None or listing.bathrooms is not None:
        lines.append(f"{_count(listing.bedrooms)} bedroom {_count(listing.bathrooms)} bathroom")
    furnish_line = _FURNISH_LINES.get(listing.furnish)
    if furnish_line:
        lines.append(furnish_line)
    if listing.carparks == 0:
        lines.append("no parking")
    elif listing.carparks is not None:
        lines.append(f"{listing.carparks} parking")
    if listing.price is not None:
        lines.append(format_rm(listing.price))

    lines.append("")
    lines.append(availability_label(listing.available_from, today))
    return "\n".join(lines)


def whatsapp_share_url(text: str) -> str:
    return f"https://wa.me/?text={quote(text, safe='')}"
