"""Shared date and time helpers used across the scheduling core."""

from datetime import date, datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")


def parse_day(value: Union[str, date]) -> date:
    """Parse a calendar day from ISO (YYYY-MM-DD) or day-first (DD/MM/YYYY) text.

    Examples:
        >>> parse_day("2024-06-10")
        datetime.date(2024, 6, 10)
        >>> parse_day("10/06/2024")
        datetime.date(2024, 6, 10)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value!r}")


def format_slot_time(moment: datetime) -> str:
    """Render a slot start as a zero-padded HH:MM label."""
    return f"{moment.hour:02d}:{moment.minute:02d}"


def to_local(moment: datetime, timezone_name: Optional[str] = None) -> datetime:
    """Convert an aware datetime into the scheduling timezone.

    Naive datetimes are treated as already local and returned unchanged,
    as are aware ones when no timezone is configured.
    """
    if moment.tzinfo is None or not timezone_name:
        return moment
    return moment.astimezone(ZoneInfo(timezone_name))


def naive_local(moment: datetime, timezone_name: Optional[str] = None) -> datetime:
    """Local wall-clock time without tzinfo, comparable with generated slots."""
    return to_local(moment, timezone_name).replace(tzinfo=None)


def local_date(moment: datetime, timezone_name: Optional[str] = None) -> date:
    """Calendar day a datetime falls on in the scheduling timezone."""
    return to_local(moment, timezone_name).date()


def blocks_slot(
    booked_start: datetime,
    candidate: datetime,
    length: timedelta,
    conflict_mode: str = "exact",
) -> bool:
    """Whether a booking starting at ``booked_start`` makes ``candidate`` unbookable.

    ``exact`` compares start times only. ``overlap`` treats both as
    ``[start, start + length)`` intervals of the same service.
    """
    if conflict_mode == "exact":
        return booked_start == candidate
    if conflict_mode == "overlap":
        return candidate < booked_start + length and booked_start < candidate + length
    raise ValueError(f"Unknown conflict mode: {conflict_mode!r}")
