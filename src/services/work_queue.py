"""Work queue: filter and rank listings by what needs attention first."""

from enum import Enum
from typing import Iterable, Optional, Union
from datetime import datetime
from pydantic import BaseModel

from src.models.listing import Listing, ListingStatus, ListingType, normalize_status, normalize_type
from src.services.aging import COLD_AFTER_DAYS, aging_days, is_follow_up_due
from src.services.periods import parse_timestamp, to_iso


class QueueView(str, Enum):
    """Work view tabs."""
    INBOX = "inbox"
    ACTIVE = "active"
    ALL = "all"


class QueueCounts(BaseModel):
    inbox: int = 0
    follow_up_due: int = 0


class QueueEntry(BaseModel):
    """A ranked listing with its derived flags."""
    listing: Listing
    aging_days: int
    cold: bool
    follow_up_due: bool


def _effective_aging(listing: Listing, now: datetime) -> int:
    if listing.aging_days is not None:
        return listing.aging_days
    return aging_days(listing, now)


def _rank_key(listing: Listing, now: datetime) -> tuple:
    follow_up = parse_timestamp(listing.next_follow_up)
    last_update = parse_timestamp(listing.last_update)
    return (
        0 if listing.inbox else 1,
        # Missing follow-up sorts after every real date
        (0, follow_up) if follow_up is not None else (1, datetime.min),
        listing.priority if listing.priority is not None else 2,
        -_effective_aging(listing, now),
        -(last_update.timestamp() if last_update is not None else 0.0),
    )


def rank_work_queue(listings: Iterable[Listing], now: datetime) -> list[Listing]:
    """Order listings: inbox first, earliest follow-up, priority, most stale, latest update.

    Returns a new list; the sort is stable so full ties keep input order.
    """
    current = parse_timestamp(now)
    return sorted(listings, key=lambda listing: _rank_key(listing, current))


def filter_work_queue(
    listings: Iterable[Listing],
    view: Union[QueueView, str] = QueueView.ALL,
    listing_type: Optional[Union[ListingType, str]] = None,
    status: Optional[Union[ListingStatus, str]] = None,
) -> list[Listing]:
    """Apply the view tab, type and status filters. ``None`` or ``"all"`` disables a filter."""
    view = QueueView(view)
    wanted_type = None if listing_type in (None, "all") else normalize_type(listing_type)
    wanted_status = None if status in (None, "all") else normalize_status(status)

    result = []
    for listing in listings:
        if view == QueueView.INBOX and not listing.inbox:
            continue
        if view == QueueView.ACTIVE and listing.inbox:
            continue
        if wanted_type is not None and listing.type != wanted_type:
            continue
        if wanted_status is not None and listing.status != wanted_status:
            continue
        result.append(listing)
    return result


def queue_counts(listings: Iterable[Listing], today: datetime) -> QueueCounts:
    counts = QueueCounts()
    for listing in listings:
        if listing.inbox:
            counts.inbox += 1
        if is_follow_up_due(listing.next_follow_up, today):
            counts.follow_up_due += 1
    return counts


def build_work_queue(
    listings: Iterable[Listing],
    now: datetime,
    view: Union[QueueView, str] = QueueView.ALL,
    listing_type: Optional[Union[ListingType, str]] = None,
    status: Optional[Union[ListingStatus, str]] = None,
) -> list[QueueEntry]:
    """Filter then rank, attaching aging and follow-up flags to each entry."""
    current = parse_timestamp(now)
    entries = []
    for listing in rank_work_queue(filter_work_queue(listings, view, listing_type, status), current):
        days = _effective_aging(listing, current)
        entries.append(QueueEntry(
            listing=listing,
            aging_days=days,
            cold=days >= COLD_AFTER_DAYS,
            follow_up_due=is_follow_up_due(listing.next_follow_up, current),
        ))
    return entries


def mark_processed_payload(now: datetime) -> dict:
    """Update that moves a listing out of the inbox; any action counts as a touch."""
    return {"inbox": False, "last_update": to_iso(now)}
