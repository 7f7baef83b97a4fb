"""Month and date-range bucketing over local (naive) timestamps.

Timestamps from the store may carry an offset; they are converted to local
time and made naive so all calendar arithmetic happens in one timezone.
"""

import re
from typing import Any, Optional
from datetime import date, datetime, time, timedelta

from src.utils.errors import InvalidDateRangeError

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp, date or datetime into a naive local datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse a calendar date; timestamps keep only their local date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def start_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.min)


def month_key(value: date) -> str:
    """``YYYY-MM`` key for the month containing ``value``."""
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    match = _MONTH_KEY_RE.match(str(key or "").strip())
    if not match:
        raise InvalidDateRangeError(f"Invalid month key: {key!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidDateRangeError(f"Invalid month key: {key!r}")
    return year, month


def add_months(value: date, delta: int) -> datetime:
    """First instant of the month ``delta`` months away from ``value``'s month."""
    index = value.year * 12 + (value.month - 1) + delta
    return datetime(index // 12, index % 12 + 1, 1)


def month_bounds(key: str) -> tuple[datetime, datetime]:
    """Return ``(month_start, next_month_start)`` for a ``YYYY-MM`` key."""
    year, month = parse_month_key(key)
    start = datetime(year, month, 1)
    return start, add_months(start, 1)


def month_range_bounds(from_key: str, to_key: str) -> tuple[datetime, datetime]:
    """Half-open bounds covering every month from ``from_key`` through ``to_key``."""
    start, _ = month_bounds(from_key)
    to_start, end = month_bounds(to_key)
    if start > to_start:
        raise InvalidDateRangeError(f"From month {from_key} is after to month {to_key}")
    return start, end


def date_range_bounds(from_date: Any, to_date: Any) -> tuple[datetime, datetime]:
    """Half-open bounds making ``to_date`` inclusive."""
    start_date = parse_date(from_date)
    end_date = parse_date(to_date)
    if start_date is None or end_date is None:
        raise InvalidDateRangeError(f"Invalid date range: {from_date!r} to {to_date!r}")
    if start_date > end_date:
        raise InvalidDateRangeError(f"From date {start_date} is after to date {end_date}")
    return start_of_day(start_date), start_of_day(end_date + timedelta(days=1))


def in_period(value: Any, start: datetime, end: datetime) -> bool:
    """True when ``start <= value < end``; unparseable timestamps are outside every period."""
    ts = parse_timestamp(value)
    return ts is not None and start <= ts < end


def recent_month_keys(now: date, count: int = 12) -> list[str]:
    """Keys for the ``count`` months ending with ``now``'s month, oldest first."""
    return [month_key(add_months(now, offset)) for offset in range(1 - count, 1)]


def to_iso(value: datetime) -> str:
    """ISO string with the local offset attached, for writes to timestamptz columns."""
    return value.astimezone().isoformat()
