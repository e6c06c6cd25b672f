from petcare_scheduling.agenda.aggregator import (
    MonthCalendar,
    bookings_on_day,
    filter_bookings,
    paginate,
    status_counts,
    summarize_month,
    upcoming_count,
)
from petcare_scheduling.agenda.month_cursor import YearMonth

__all__ = [
    "YearMonth",
    "MonthCalendar",
    "summarize_month",
    "bookings_on_day",
    "filter_bookings",
    "paginate",
    "status_counts",
    "upcoming_count",
]
