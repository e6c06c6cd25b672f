"""
Reservation wizard controller.

Drives ``transition`` and performs the two side effects of the flow:
loading bookable slots whenever the time step is entered, and issuing
the single booking-creation request on submit. Failures are turned into
wizard state so the presentation layer can show them.
"""

from datetime import date, datetime
from typing import Optional, Union

from petcare_scheduling.booking.service import BookingService
from petcare_scheduling.errors import (
    InvalidSlotError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingError,
    SlotConflictError,
)
from petcare_scheduling.logging_context import get_request_logger, new_request_id, request_scope
from petcare_scheduling.schemas.booking_schema import BookingRequest, Service
from petcare_scheduling.scheduling.availability import AvailabilityResolver
from petcare_scheduling.scheduling.slot_generator import offerable_dates
from petcare_scheduling.utils import parse_day
from petcare_scheduling.wizard.state_machine import (
    WizardEvent,
    WizardState,
    WizardStep,
    WizardTrigger,
    can_advance,
    missing_fields,
    transition,
)

logger = get_request_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Booking failed. Please try again later."


class ReservationWizard:
    """One customer's booking flow for one service.

    A wizard that reached SUBMITTED, DISMISSED or ABORTED rejects every
    further action; start a new instance for another booking.

    Each instance has its own ``request_id`` and every action runs inside
    that request scope, so the slot lookups, the creation request and the
    store write of one flow share a tag in the logs.
    """

    def __init__(
        self,
        service: Service,
        customer_id: str,
        resolver: AvailabilityResolver,
        booking_service: BookingService,
        today: Optional[date] = None,
    ) -> None:
        self.service = service
        self.customer_id = customer_id
        self.resolver = resolver
        self.booking_service = booking_service
        self.today = today
        self.request_id = new_request_id("RW")
        self._state = WizardState(service_id=service.id)
        with request_scope(self.request_id):
            logger.info(
                "Reservation started for service %s by customer %s", service.id, customer_id
            )

    # ------------------------------------------------------------------ #
    # State exposed to the presentation layer
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def step(self) -> WizardStep:
        return self._state.step

    @property
    def available_slots(self) -> list[datetime]:
        return list(self._state.available_slots)

    def missing_fields(self) -> list[str]:
        return missing_fields(self._state)

    def can_advance(self) -> bool:
        return can_advance(self._state)

    def offerable_dates(self) -> list[date]:
        """Dates shown in the picker; empty when no reference day was given."""
        return offerable_dates(self.today) if self.today is not None else []

    # ------------------------------------------------------------------ #
    # Event plumbing
    # ------------------------------------------------------------------ #

    def _dispatch(self, trigger: WizardTrigger, value=None) -> WizardState:
        with request_scope(self.request_id):
            previous = self._state.step
            self._state = transition(self._state, WizardEvent(trigger, value))
            if (
                self._state.step == WizardStep.SELECT_TIME_AND_NOTES
                and previous != WizardStep.SELECT_TIME_AND_NOTES
            ):
                self._load_slots()
            return self._state

    def _load_slots(self) -> None:
        slots = self.resolver.available_slots(
            self.service, self._state.day, self._state.pet_id
        )
        self._state = transition(
            self._state, WizardEvent(WizardTrigger.SLOTS_LOADED, slots)
        )

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #

    def select_pet(self, pet_id: str) -> WizardState:
        return self._dispatch(WizardTrigger.SELECT_PET, pet_id)

    def select_date(self, day: Union[str, date]) -> WizardState:
        parsed = parse_day(day)
        if self.today is not None and parsed not in self.offerable_dates():
            raise InvalidSlotError(f"{parsed} is outside the booking horizon")
        return self._dispatch(WizardTrigger.SELECT_DATE, parsed)

    def select_time(self, slot: datetime) -> WizardState:
        return self._dispatch(WizardTrigger.SELECT_TIME, slot)

    def set_note(self, note: str) -> WizardState:
        return self._dispatch(WizardTrigger.SET_NOTE, note)

    def next(self) -> WizardState:
        return self._dispatch(WizardTrigger.NEXT)

    def back(self) -> WizardState:
        return self._dispatch(WizardTrigger.BACK)

    def dismiss(self) -> WizardState:
        return self._dispatch(WizardTrigger.DISMISS)

    def submit(self) -> WizardState:
        """
        Send the booking-creation request for the reviewed selection.

        A taken slot or other recoverable error keeps the wizard on the
        review step with ``state.error`` set. A missing service, pet or
        booking aborts the wizard with a generic message.
        """
        if self._state.step != WizardStep.REVIEW_AND_CONFIRM:
            raise InvalidTransitionError(
                f"Cannot submit from step '{self._state.step.value}'"
            )

        request = BookingRequest(
            service_id=self.service.id,
            pet_id=self._state.pet_id,
            customer_id=self.customer_id,
            start_time=self._state.time,
            note=self._state.note,
        )
        with request_scope(self.request_id):
            try:
                booking = self.booking_service.request_booking(request)
            except SlotConflictError as exc:
                logger.warning("Submission lost the slot race: %s", exc)
                return self._dispatch(WizardTrigger.SUBMIT_FAILED, exc.message)
            except NotFoundError as exc:
                logger.error("Submission aborted: %s", exc)
                return self._dispatch(WizardTrigger.ABORT, GENERIC_FAILURE_MESSAGE)
            except SchedulingError as exc:
                logger.warning("Submission rejected: %s", exc)
                return self._dispatch(WizardTrigger.SUBMIT_FAILED, exc.message)

            logger.info("Submitted booking %s", booking.id)
            return self._dispatch(WizardTrigger.SUBMIT_SUCCEEDED, booking.id)
