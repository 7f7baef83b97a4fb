"""Aging and follow-up classification for listings."""

from typing import Any
from datetime import date, datetime

from src.models.listing import Listing
from src.services.periods import parse_date, parse_timestamp

COLD_AFTER_DAYS = 7


def aging_days(listing: Listing, now: datetime) -> int:
    """Whole calendar days since the listing was last touched.

    Falls back to ``updated_at`` when ``last_update`` is missing. Both sides are
    truncated to midnight, so anything touched today is 0 days old.
    """
    touched = parse_timestamp(listing.last_update or listing.updated_at)
    current = parse_timestamp(now)
    if touched is None or current is None:
        return 0
    return max(0, (current.date() - touched.date()).days)


def is_cold(listing: Listing, now: datetime) -> bool:
    return aging_days(listing, now) >= COLD_AFTER_DAYS


def is_follow_up_due(next_follow_up: Any, today: date) -> bool:
    """Due today or overdue, comparing calendar dates only."""
    due = parse_date(next_follow_up)
    current = parse_date(today)
    if due is None or current is None:
        return False
    return due <= current
