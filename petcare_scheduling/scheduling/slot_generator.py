"""
Time-slot generation for a service-day.

Produces the ordered candidate start times a merchant offers on a date.
The window is open..close inclusive on a fixed grid; with the default
configuration that is 09:00 through 18:00 hourly, ten slots a day.

Usage:
    generator = TimeSlotGenerator()
    slots = generator.generate(service, date(2024, 6, 10))
    # [datetime(2024, 6, 10, 9, 0), ..., datetime(2024, 6, 10, 18, 0)]
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from petcare_scheduling.config import settings
from petcare_scheduling.schemas.booking_schema import Service
from petcare_scheduling.utils import naive_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperatingHours:
    """Daily offering window and slot spacing."""

    open: time = settings.scheduling.open_time
    close: time = settings.scheduling.close_time
    slot_granularity_minutes: int = settings.scheduling.slot_granularity_minutes

    def __post_init__(self) -> None:
        if self.close < self.open:
            raise ValueError(
                f"close ({self.close:%H:%M}) must not be earlier than open ({self.open:%H:%M})"
            )
        if self.slot_granularity_minutes < 1:
            raise ValueError(
                f"slot_granularity_minutes must be >= 1, got {self.slot_granularity_minutes}"
            )

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.slot_granularity_minutes)


class TimeSlotGenerator:
    """Generates the canonical slot grid for a service on a date."""

    def __init__(self, hours: Optional[OperatingHours] = None) -> None:
        self.hours = hours or OperatingHours()

    def iter_slots(self, service: Service, day: date) -> Iterator[datetime]:
        """Yield slot starts for ``day`` in ascending order.

        ``service`` is accepted for context only; the grid does not depend
        on its duration.
        """
        cursor = datetime.combine(day, self.hours.open)
        last = datetime.combine(day, self.hours.close)
        while cursor <= last:
            yield cursor
            cursor += self.hours.step

    def generate(self, service: Service, day: date) -> list[datetime]:
        """Return the full slot grid for ``day``."""
        slots = list(self.iter_slots(service, day))
        logger.debug("Generated %d slots for service %s on %s", len(slots), service.id, day)
        return slots

    def is_on_grid(
        self,
        service: Service,
        moment: datetime,
        timezone_name: Optional[str] = settings.scheduling.timezone,
    ) -> bool:
        """Check whether ``moment`` is one of the generated starts for its day.

        Aware datetimes are read as wall-clock time in ``timezone_name``;
        pass the zone of the resolver the grid is checked for.
        """
        local = naive_local(moment, timezone_name)
        return local in self.generate(service, local.date())


def offerable_dates(
    today: date, horizon_days: int = settings.scheduling.booking_horizon_days
) -> list[date]:
    """Dates a customer may pick: the next ``horizon_days`` days, starting tomorrow."""
    return [today + timedelta(days=offset) for offset in range(1, horizon_days + 1)]
