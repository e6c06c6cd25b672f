from petcare_scheduling.scheduling.availability import AvailabilityResolver, resolve_available_slots
from petcare_scheduling.scheduling.slot_generator import (
    OperatingHours,
    TimeSlotGenerator,
    offerable_dates,
)

__all__ = [
    "TimeSlotGenerator",
    "OperatingHours",
    "offerable_dates",
    "AvailabilityResolver",
    "resolve_available_slots",
]
