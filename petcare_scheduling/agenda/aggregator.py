"""
Calendar aggregation over a booking collection.

Projects bookings onto a month grid as per-day status counts, answers
day drill-down queries, and backs the booking list tabs and header tiles
of the customer and merchant dashboards. Day membership is local-date
equality on the booking's start time.
"""

import logging
from collections import Counter
from datetime import date
from typing import Iterable, Optional, Sequence, TypeVar

from petcare_scheduling.agenda.month_cursor import YearMonth
from petcare_scheduling.config import settings
from petcare_scheduling.schemas.booking_schema import ACTIVE_STATUSES, Booking, BookingStatus
from petcare_scheduling.schemas.calendar_schema import BookingListFilter, DaySummary, Page
from petcare_scheduling.utils import local_date, naive_local

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _day_of(booking: Booking, timezone_name: Optional[str]) -> date:
    return local_date(booking.start_time, timezone_name)


def summarize_month(
    bookings: Iterable[Booking],
    year_month: YearMonth,
    timezone_name: Optional[str] = settings.scheduling.timezone,
) -> dict[date, DaySummary]:
    """
    Count bookings per status for each day of ``year_month``.

    Days without bookings are left out of the mapping. Keys come back in
    calendar order.
    """
    per_day: dict[date, Counter] = {}
    for booking in bookings:
        day = _day_of(booking, timezone_name)
        if not year_month.contains(day):
            continue
        per_day.setdefault(day, Counter())[booking.status] += 1

    summary = {
        day: DaySummary(day=day, counts=dict(per_day[day]))
        for day in sorted(per_day)
    }
    logger.debug("Summarized %d busy days in %s", len(summary), year_month)
    return summary


def bookings_on_day(
    bookings: Iterable[Booking],
    day: date,
    timezone_name: Optional[str] = settings.scheduling.timezone,
) -> list[Booking]:
    """Bookings starting on ``day``, earliest first."""
    found = [b for b in bookings if _day_of(b, timezone_name) == day]
    return sorted(found, key=lambda b: naive_local(b.start_time, timezone_name))


def status_counts(bookings: Iterable[Booking]) -> dict[BookingStatus, int]:
    """Number of bookings in each status; every status is present."""
    counts = Counter(b.status for b in bookings)
    return {status: counts.get(status, 0) for status in BookingStatus}


def upcoming_count(bookings: Iterable[Booking]) -> int:
    """Bookings still holding a slot (PENDING or CONFIRMED)."""
    return sum(1 for b in bookings if b.status in ACTIVE_STATUSES)


def filter_bookings(
    bookings: Iterable[Booking],
    list_filter: BookingListFilter,
    today: date,
    timezone_name: Optional[str] = settings.scheduling.timezone,
) -> list[Booking]:
    """Apply a booking list tab: everything, today's bookings, or one status."""
    if list_filter == BookingListFilter.ALL:
        return list(bookings)
    if list_filter == BookingListFilter.TODAY:
        return [b for b in bookings if _day_of(b, timezone_name) == today]
    status = BookingStatus(list_filter.value)
    return [b for b in bookings if b.status == status]


def paginate(
    items: Sequence[T],
    page: int = 1,
    per_page: int = settings.calendar.bookings_per_page,
) -> Page:
    """Slice ``items`` into the 1-based ``page`` of size ``per_page``."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if per_page < 1:
        raise ValueError(f"per_page must be >= 1, got {per_page}")
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        per_page=per_page,
        total_items=len(items),
    )


class MonthCalendar:
    """Month view state: a cursor over a booking collection plus a selected day."""

    def __init__(
        self,
        bookings: Iterable[Booking],
        cursor: YearMonth,
        timezone_name: Optional[str] = settings.scheduling.timezone,
    ) -> None:
        self.bookings = list(bookings)
        self.cursor = cursor
        self.timezone_name = timezone_name
        self.selected_day: Optional[date] = None

    def next_month(self) -> YearMonth:
        self.cursor = self.cursor.next()
        return self.cursor

    def previous_month(self) -> YearMonth:
        self.cursor = self.cursor.previous()
        return self.cursor

    def summary(self) -> dict[date, DaySummary]:
        return summarize_month(self.bookings, self.cursor, self.timezone_name)

    def select_day(self, day: date) -> list[Booking]:
        """Drill into ``day``, moving the cursor to its month if needed."""
        self.selected_day = day
        if not self.cursor.contains(day):
            self.cursor = YearMonth(day.year, day.month)
        return bookings_on_day(self.bookings, day, self.timezone_name)

    def refresh(self, bookings: Iterable[Booking]) -> None:
        """Swap in a re-fetched booking collection, keeping cursor and selection."""
        self.bookings = list(bookings)
