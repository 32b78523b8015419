"""
Timestamp helpers.

The store's timestamp type is a timezone-aware `datetime` in UTC. Every
value headed for the store goes through `to_timestamp()` so naive values,
plain dates and ISO strings end up in the same representation.

Legacy documents keep their dates as `dd/mm/yy` strings; `parse_legacy_date`
turns those into timestamps and returns None (never raises) when the string
cannot be read. Callers decide what the fallback is (usually `now()`).
"""

from datetime import date, datetime, time, timezone
from typing import Optional


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(value) -> Optional[datetime]:
    """Coerce `value` to an aware UTC datetime.

    Accepts aware or naive datetimes (naive ones are taken as UTC), dates
    (midnight UTC) and ISO-8601 strings. None passes through. Anything else
    raises TypeError/ValueError - callers validate user input before this.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        return to_timestamp(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    raise TypeError(f"Cannot convert {type(value).__name__} to a timestamp")


def parse_legacy_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse `dd/mm/yy` or `dd/mm/yyyy`; two-digit years map to 2000-2099."""

    if not date_str:
        return None

    parts = str(date_str).strip().split("/")
    if len(parts) != 3:
        return None

    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return None

    if year < 100:
        year += 2000

    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def format_legacy_date(value) -> str:
    """Format a timestamp back to the legacy `dd/mm/yy` form ('' if unusable)."""

    try:
        ts = to_timestamp(value)
    except (TypeError, ValueError):
        return ""
    if ts is None:
        return ""
    return ts.strftime("%d/%m/%y")


def parse_input_date(value: Optional[str]) -> datetime:
    """Parse a `YYYY-MM-DD` form value; falls back to now() when missing or invalid."""

    if not value:
        return now()
    try:
        parsed = date.fromisoformat(value.strip())
    except ValueError:
        return now()
    return to_timestamp(parsed)


def compare_timestamps(a, b) -> float:
    """Negative if a < b, positive if a > b, 0 if equal or either side is missing."""

    if a is None or b is None:
        return 0
    return (to_timestamp(a) - to_timestamp(b)).total_seconds()


def is_timestamp_in_range(value, start=None, end=None) -> bool:
    """Inclusive range check; a missing `end` means "up to now"."""

    if value is None:
        return False
    ts = to_timestamp(value)
    if start is not None and ts < to_timestamp(start):
        return False
    upper = to_timestamp(end) if end is not None else now()
    return ts <= upper
