"""
Booking service: the seam between callers and the booking store.

Validates creation requests against the service and pet directories,
enforces ownership for status changes, runs every change through the
lifecycle table, and persists through the injected store.
"""

from typing import Optional

from petcare_scheduling.booking.directory import PetDirectory, ServiceDirectory
from petcare_scheduling.booking.lifecycle import BookingLifecycle
from petcare_scheduling.booking.store import BookingStore
from petcare_scheduling.errors import (
    InvalidSlotError,
    InvalidTransitionError,
    PermissionDeniedError,
    SlotConflictError,
)
from petcare_scheduling.logging_context import get_request_logger
from petcare_scheduling.schemas.booking_schema import (
    Actor,
    ActorRole,
    Booking,
    BookingQuery,
    BookingRequest,
    BookingStatus,
)
from petcare_scheduling.scheduling.availability import AvailabilityResolver

logger = get_request_logger(__name__)


class BookingService:
    """Creates bookings and applies status changes on behalf of an actor."""

    def __init__(
        self,
        store: BookingStore,
        services: ServiceDirectory,
        pets: PetDirectory,
        resolver: Optional[AvailabilityResolver] = None,
        lifecycle: Optional[BookingLifecycle] = None,
    ) -> None:
        self.store = store
        self.services = services
        self.pets = pets
        self.resolver = resolver or AvailabilityResolver(store)
        self.lifecycle = lifecycle or BookingLifecycle()

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    def request_booking(self, request: BookingRequest) -> Booking:
        """
        Open a PENDING booking for the customer in ``request``.

        Raises:
            NotFoundError: Service or pet does not exist.
            PermissionDeniedError: The pet belongs to someone else.
            InvalidSlotError: Service inactive or start time off the grid.
            SlotConflictError: The slot is already held by an active booking.
        """
        service = self.services.get(request.service_id)
        if not service.is_active:
            raise InvalidSlotError(f"Service {service.id} is not accepting bookings")

        pet = self.pets.get(request.pet_id)
        if pet.owner_id != request.customer_id:
            raise PermissionDeniedError(
                f"Pet {pet.id} does not belong to customer {request.customer_id}",
                message="You can only book for your own pets.",
            )

        self.lifecycle.check(None, BookingStatus.PENDING, ActorRole.CUSTOMER)

        if not self.resolver.generator.is_on_grid(
            service, request.start_time, self.resolver.timezone_name
        ):
            raise InvalidSlotError(
                f"{request.start_time.isoformat()} is outside the offering window "
                f"of service {service.id}"
            )
        if not self.resolver.is_available(service, request.start_time, request.pet_id):
            logger.warning(
                "Rejected booking for %s at %s: slot already taken",
                service.id, request.start_time.isoformat(),
            )
            raise SlotConflictError(
                f"Service {service.id} is already booked at {request.start_time.isoformat()}"
            )

        booking = self.store.create_booking(
            service_id=service.id,
            pet_id=pet.id,
            customer_id=request.customer_id,
            merchant_id=service.merchant_id,
            start_time=request.start_time,
            note=request.note,
            duration_minutes=service.duration_minutes,
        )
        logger.info(
            "Customer %s booked %s for pet %s at %s (%s)",
            request.customer_id, service.id, pet.id,
            request.start_time.isoformat(), booking.id,
        )
        return booking

    # ------------------------------------------------------------------ #
    # Status changes
    # ------------------------------------------------------------------ #

    def _authorize(self, booking: Booking, actor: Actor) -> None:
        if actor.role == ActorRole.ADMIN:
            return
        if actor.role == ActorRole.CUSTOMER and booking.customer_id == actor.user_id:
            return
        if actor.role == ActorRole.MERCHANT and booking.merchant_id == actor.user_id:
            return
        raise PermissionDeniedError(
            f"{actor.role.value} {actor.user_id} does not own booking {booking.id}"
        )

    def change_status(
        self,
        booking_id: str,
        target: BookingStatus,
        actor: Actor,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """
        Move a booking to ``target`` on behalf of ``actor``.

        The store write is conditional on the status read here, or on
        ``expected_status`` when the caller already decided based on an
        earlier read. A concurrent change makes this call fail instead of
        overwriting it.
        """
        booking = self.store.get_booking(booking_id)
        expected = expected_status or booking.status
        if booking.status != expected:
            raise InvalidTransitionError(
                f"Booking {booking_id} is {booking.status.value}, expected {expected.value}"
            )
        self._authorize(booking, actor)
        self.lifecycle.check(booking.status, target, actor.role)
        updated = self.store.update_status(booking_id, target, expected_status=expected)
        logger.info(
            "Booking %s: %s -> %s by %s %s",
            booking_id, booking.status.value, target.value, actor.role.value, actor.user_id,
        )
        return updated

    def confirm(self, booking_id: str, actor: Actor) -> Booking:
        return self.change_status(booking_id, BookingStatus.CONFIRMED, actor)

    def reject(self, booking_id: str, actor: Actor) -> Booking:
        """Merchant or admin declines a booking that is still PENDING.

        Customers withdraw their own requests with ``cancel`` instead.
        """
        if actor.role == ActorRole.CUSTOMER:
            raise PermissionDeniedError(
                f"Customer {actor.user_id} cannot reject booking {booking_id}"
            )
        booking = self.store.get_booking(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransitionError(
                f"Only pending bookings can be rejected; {booking_id} is {booking.status.value}"
            )
        return self.change_status(
            booking_id, BookingStatus.CANCELLED, actor, expected_status=BookingStatus.PENDING
        )

    def complete(self, booking_id: str, actor: Actor) -> Booking:
        return self.change_status(booking_id, BookingStatus.COMPLETED, actor)

    def cancel(self, booking_id: str, actor: Actor) -> Booking:
        return self.change_status(booking_id, BookingStatus.CANCELLED, actor)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def bookings_for(self, actor: Actor) -> list[Booking]:
        """Bookings visible to ``actor``, ordered by start time."""
        if actor.role == ActorRole.CUSTOMER:
            return self.store.list_bookings(BookingQuery(customer_id=actor.user_id))
        if actor.role == ActorRole.MERCHANT:
            return self.store.list_bookings(BookingQuery(merchant_id=actor.user_id))
        return self.store.list_bookings()

    def available_actions(self, booking: Booking, actor: Actor) -> list[BookingStatus]:
        """Statuses ``actor`` may move ``booking`` to; empty if they do not own it."""
        try:
            self._authorize(booking, actor)
        except PermissionDeniedError:
            return []
        return self.lifecycle.allowed_targets(booking.status, actor.role)
