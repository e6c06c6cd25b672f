"""
Availability resolution: generated slots minus the ones already taken.

A slot is taken when an active (PENDING or CONFIRMED) booking of the same
service starts at exactly that time. With ``conflict_mode="overlap"`` each
booking instead blocks ``[start, start + duration)`` and any candidate
whose own interval overlaps it is dropped.

The answer is only good for the instant it was computed. Two customers can
see the same free slot; the booking store rejects the second creation.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from petcare_scheduling.booking.store import BookingStore
from petcare_scheduling.config import settings
from petcare_scheduling.schemas.booking_schema import ACTIVE_STATUSES, Booking, BookingQuery, Service
from petcare_scheduling.schemas.calendar_schema import BookedSlots
from petcare_scheduling.scheduling.slot_generator import TimeSlotGenerator
from petcare_scheduling.utils import blocks_slot, format_slot_time, naive_local

logger = logging.getLogger(__name__)


def resolve_available_slots(
    candidates: Iterable[datetime],
    bookings: Iterable[Booking],
    service: Service,
    conflict_mode: str = "exact",
    timezone_name: Optional[str] = None,
) -> list[datetime]:
    """Filter ``candidates`` down to the slots no active booking of ``service`` holds.

    Bookings for other services or in terminal states are ignored, so
    callers may pass an unfiltered collection.
    """
    starts = [
        naive_local(b.start_time, timezone_name)
        for b in bookings
        if b.service_id == service.id and b.status in ACTIVE_STATUSES
    ]

    if conflict_mode == "exact":
        occupied = set(starts)
        return [c for c in candidates if c not in occupied]

    if conflict_mode == "overlap":
        length = timedelta(minutes=service.duration_minutes)
        return [
            c
            for c in candidates
            if not any(blocks_slot(start, c, length, conflict_mode) for start in starts)
        ]

    raise ValueError(f"Unknown conflict mode: {conflict_mode!r}")


class AvailabilityResolver:
    """Computes bookable slots for a service-day from the live booking store."""

    def __init__(
        self,
        store: BookingStore,
        generator: Optional[TimeSlotGenerator] = None,
        conflict_mode: str = settings.scheduling.conflict_mode,
        timezone_name: str = settings.scheduling.timezone,
    ) -> None:
        self.store = store
        self.generator = generator or TimeSlotGenerator()
        self.conflict_mode = conflict_mode
        self.timezone_name = timezone_name

    def available_slots(
        self, service: Service, day: date, pet_id: Optional[str] = None
    ) -> list[datetime]:
        """
        Return the ordered bookable slot starts for ``service`` on ``day``.

        ``pet_id`` is accepted so callers can pass the wizard's full
        selection; occupancy is per service and day, never per pet.
        """
        candidates = self.generator.generate(service, day)
        active = self.store.list_active_bookings(service.id, day)
        free = resolve_available_slots(
            candidates, active, service, self.conflict_mode, self.timezone_name
        )
        logger.debug(
            "Availability for %s on %s (pet=%s): %d of %d slots free",
            service.id, day, pet_id, len(free), len(candidates),
        )
        return free

    def is_available(
        self, service: Service, start_time: datetime, pet_id: Optional[str] = None
    ) -> bool:
        """Check whether ``start_time`` is currently offered and free."""
        local = naive_local(start_time, self.timezone_name)
        return local in self.available_slots(service, local.date(), pet_id)

    def booked_slots(
        self, service: Service, day: date, pet_id: Optional[str] = None
    ) -> BookedSlots:
        """
        Occupied HH:MM labels for ``service`` on ``day``.

        When ``pet_id`` is given, also lists the times that pet already has
        active bookings for any service that day. That list is
        informational and does not feed into ``available_slots``.
        """
        service_times = [
            format_slot_time(naive_local(b.start_time, self.timezone_name))
            for b in self.store.list_active_bookings(service.id, day)
        ]
        pet_times: list[str] = []
        if pet_id is not None:
            pet_bookings = self.store.list_bookings(
                BookingQuery(pet_id=pet_id, statuses=ACTIVE_STATUSES, day=day)
            )
            pet_times = [
                format_slot_time(naive_local(b.start_time, self.timezone_name))
                for b in pet_bookings
            ]
        return BookedSlots(
            service_id=service.id,
            day=day,
            booked_slots=service_times,
            pet_booked_slots=pet_times,
        )
