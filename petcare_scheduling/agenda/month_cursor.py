"""Month cursor for calendar navigation."""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Union

from petcare_scheduling.utils import parse_day


@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month. Moves one month at a time, rolling the year."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")

    @classmethod
    def of(cls, day: Union[str, date]) -> "YearMonth":
        parsed = parse_day(day)
        return cls(parsed.year, parsed.month)

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        """Parse ``YYYY-MM`` text."""
        try:
            year, month = (int(part) for part in value.strip().split("-"))
        except ValueError:
            raise ValueError(f"Expected YYYY-MM, got {value!r}") from None
        return cls(year, month)

    def next(self) -> "YearMonth":
        if self.month == 12:
            return YearMonth(self.year + 1, 1)
        return YearMonth(self.year, self.month + 1)

    def previous(self) -> "YearMonth":
        if self.month == 1:
            return YearMonth(self.year - 1, 12)
        return YearMonth(self.year, self.month - 1)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def day_count(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def days(self) -> list[date]:
        """Every date in the month, in order."""
        return [date(self.year, self.month, d) for d in range(1, self.day_count + 1)]

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
