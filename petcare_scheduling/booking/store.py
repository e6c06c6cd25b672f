"""
Booking store contract and an in-memory implementation.

The scheduling core never talks to a database directly. Anything that
satisfies ``BookingStore`` can be injected: an ORM repository, an HTTP
client for the marketplace API, or the ``InMemoryBookingStore`` below,
which is what tests and single-process embedders use.

The store owns the conflict invariant: no two active bookings of a service
may block each other under the configured conflict mode (same start time
for ``exact``, overlapping ``[start, start + duration)`` for ``overlap``).
Availability reads can race with creation, so the check and the insert
happen under one lock and the loser gets ``SlotConflictError``.
"""

import logging
import threading
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol

from petcare_scheduling.config import settings
from petcare_scheduling.errors import InvalidTransitionError, NotFoundError, SlotConflictError
from petcare_scheduling.schemas.booking_schema import (
    ACTIVE_STATUSES,
    Booking,
    BookingQuery,
    BookingStatus,
)
from petcare_scheduling.utils import blocks_slot, local_date, naive_local

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    """Persistence collaborator for bookings."""

    def list_active_bookings(self, service_id: str, day: date) -> list[Booking]:
        ...

    def create_booking(
        self,
        service_id: str,
        pet_id: str,
        customer_id: str,
        merchant_id: str,
        start_time: datetime,
        note: str = "",
        duration_minutes: int = 60,
    ) -> Booking:
        ...

    def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        ...

    def list_bookings(self, query: Optional[BookingQuery] = None) -> list[Booking]:
        ...

    def get_booking(self, booking_id: str) -> Booking:
        ...


def _new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


class InMemoryBookingStore:
    """Thread-safe dict-backed booking store."""

    def __init__(
        self,
        bookings: Optional[list[Booking]] = None,
        conflict_mode: str = settings.scheduling.conflict_mode,
        timezone_name: str = settings.scheduling.timezone,
    ) -> None:
        self.conflict_mode = conflict_mode
        self.timezone_name = timezone_name
        self._lock = threading.Lock()
        self._bookings: dict[str, Booking] = {}
        for booking in bookings or []:
            self._bookings[booking.id] = booking

    def _day_of(self, booking: Booking) -> date:
        return local_date(booking.start_time, self.timezone_name)

    def _matches(self, booking: Booking, query: BookingQuery) -> bool:
        if query.customer_id is not None and booking.customer_id != query.customer_id:
            return False
        if query.merchant_id is not None and booking.merchant_id != query.merchant_id:
            return False
        if query.service_id is not None and booking.service_id != query.service_id:
            return False
        if query.pet_id is not None and booking.pet_id != query.pet_id:
            return False
        if query.statuses is not None and booking.status not in query.statuses:
            return False
        if query.day is not None and self._day_of(booking) != query.day:
            return False
        return True

    def list_bookings(self, query: Optional[BookingQuery] = None) -> list[Booking]:
        """Return bookings matching ``query`` ordered by start time."""
        query = query or BookingQuery()
        with self._lock:
            found = [b for b in self._bookings.values() if self._matches(b, query)]
        return sorted(found, key=lambda b: naive_local(b.start_time, self.timezone_name))

    def list_active_bookings(self, service_id: str, day: date) -> list[Booking]:
        return self.list_bookings(
            BookingQuery(service_id=service_id, statuses=ACTIVE_STATUSES, day=day)
        )

    def get_booking(self, booking_id: str) -> Booking:
        with self._lock:
            booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    def create_booking(
        self,
        service_id: str,
        pet_id: str,
        customer_id: str,
        merchant_id: str,
        start_time: datetime,
        note: str = "",
        duration_minutes: int = 60,
    ) -> Booking:
        """Insert a PENDING booking unless an active booking already blocks the slot.

        ``duration_minutes`` only matters in ``overlap`` mode, where it is the
        length of both the new booking and the existing ones of the service.
        """
        tz_name = self.timezone_name
        wanted = naive_local(start_time, tz_name)
        length = timedelta(minutes=duration_minutes)
        with self._lock:
            for existing in self._bookings.values():
                if (
                    existing.service_id == service_id
                    and existing.status in ACTIVE_STATUSES
                    and blocks_slot(
                        naive_local(existing.start_time, tz_name), wanted, length, self.conflict_mode
                    )
                ):
                    logger.warning(
                        "Slot conflict for service %s at %s (held by %s)",
                        service_id, wanted.isoformat(), existing.id,
                    )
                    raise SlotConflictError(
                        f"Service {service_id} at {wanted.isoformat()} clashes with {existing.id}"
                    )
            booking = Booking(
                id=_new_booking_id(),
                service_id=service_id,
                pet_id=pet_id,
                customer_id=customer_id,
                merchant_id=merchant_id,
                start_time=start_time,
                note=note,
                status=BookingStatus.PENDING,
            )
            self._bookings[booking.id] = booking
        logger.info("Booking created: %s for service %s at %s", booking.id, service_id, wanted)
        return booking

    def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """Set a booking's status, optionally only if it still has ``expected_status``."""
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None:
                raise NotFoundError("Booking", booking_id)
            if expected_status is not None and current.status != expected_status:
                raise InvalidTransitionError(
                    f"Booking {booking_id} is {current.status.value}, "
                    f"expected {expected_status.value}"
                )
            updated = current.model_copy(
                update={"status": new_status, "updated_at": datetime.now(timezone.utc)}
            )
            self._bookings[booking_id] = updated
        logger.info(
            "Booking %s status: %s -> %s", booking_id, current.status.value, new_status.value
        )
        return updated

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        with self._lock:
            self._bookings.clear()
