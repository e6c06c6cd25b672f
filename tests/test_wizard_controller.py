"""Integration tests: reservation wizard + availability + booking service together."""

import logging
from datetime import date, datetime

import pytest

from petcare_scheduling.errors import (
    IncompleteStepError,
    InvalidSlotError,
    InvalidTransitionError,
    NotFoundError,
)
from petcare_scheduling.schemas.booking_schema import ACTIVE_STATUSES, BookingQuery, BookingStatus
from petcare_scheduling.wizard.controller import GENERIC_FAILURE_MESSAGE, ReservationWizard
from petcare_scheduling.wizard.state_machine import WizardStep

DAY = date(2024, 6, 10)


def _at(hour: int) -> datetime:
    return datetime(2024, 6, 10, hour, 0)


class CountingBookingService:
    """Wraps a BookingService and counts creation requests."""

    def __init__(self, inner, error=None):
        self.inner = inner
        self.error = error
        self.calls = 0

    def request_booking(self, request):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.inner.request_booking(request)


@pytest.fixture
def wizard(service, resolver, booking_service):
    return ReservationWizard(service, "C1", resolver, booking_service)


def _to_review(wizard, hour=10, note=""):
    wizard.select_pet("P1")
    wizard.select_date(DAY)
    wizard.next()
    wizard.select_time(_at(hour))
    if note:
        wizard.set_note(note)
    wizard.next()
    return wizard


class TestHappyPath:
    def test_full_flow_creates_pending_booking(self, wizard, store):
        _to_review(wizard, note="Nail trim too")
        state = wizard.submit()

        assert state.step == WizardStep.SUBMITTED
        booking = store.get_booking(state.booking_id)
        assert booking.status == BookingStatus.PENDING
        assert booking.start_time == _at(10)
        assert booking.pet_id == "P1"
        assert booking.note == "Nail trim too"

    def test_entering_time_step_loads_slots(self, wizard):
        wizard.select_pet("P1")
        wizard.select_date("10/06/2024")
        wizard.next()
        assert wizard.step == WizardStep.SELECT_TIME_AND_NOTES
        assert len(wizard.available_slots) == 10

    def test_slots_exclude_confirmed_booking(self, wizard, store):
        taken = store.create_booking("S1", "P3", "C2", "M1", _at(10))
        store.update_status(taken.id, BookingStatus.CONFIRMED)

        wizard.select_pet("P1")
        wizard.select_date(DAY)
        wizard.next()

        assert [s.hour for s in wizard.available_slots] == [9, 11, 12, 13, 14, 15, 16, 17, 18]
        with pytest.raises(InvalidSlotError):
            wizard.select_time(_at(10))

    def test_wizard_is_not_reenterable(self, wizard):
        _to_review(wizard)
        wizard.submit()
        with pytest.raises(InvalidTransitionError):
            wizard.submit()
        with pytest.raises(InvalidTransitionError):
            wizard.back()


class TestGates:
    def test_next_without_pet_rejected(self, wizard):
        wizard.select_date(DAY)
        assert not wizard.can_advance()
        with pytest.raises(IncompleteStepError):
            wizard.next()
        assert wizard.step == WizardStep.SELECT_PET_AND_DATE

    def test_next_without_time_rejected(self, wizard):
        wizard.select_pet("P1")
        wizard.select_date(DAY)
        wizard.next()
        assert wizard.missing_fields() == ["time"]
        with pytest.raises(IncompleteStepError):
            wizard.next()

    def test_submit_before_review_rejected(self, wizard):
        with pytest.raises(InvalidTransitionError, match="Cannot submit"):
            wizard.submit()

    def test_back_reloads_slots(self, wizard, store):
        _to_review(wizard, hour=11)
        store.create_booking("S1", "P3", "C2", "M1", _at(11))
        state = wizard.back()
        assert state.step == WizardStep.SELECT_TIME_AND_NOTES
        assert _at(11) not in wizard.available_slots
        assert state.time is None

    def test_date_outside_horizon_rejected(self, service, resolver, booking_service):
        wizard = ReservationWizard(service, "C1", resolver, booking_service, today=date(2024, 6, 1))
        assert len(wizard.offerable_dates()) == 14
        wizard.select_date(date(2024, 6, 10))
        with pytest.raises(InvalidSlotError, match="horizon"):
            wizard.select_date(date(2024, 6, 1))
        with pytest.raises(InvalidSlotError):
            wizard.select_date(date(2024, 6, 16))


class TestSubmissionFailures:
    def test_slot_taken_concurrently(self, wizard, store, booking_service, merchant):
        _to_review(wizard)
        # another customer grabs 10:00 and the merchant confirms it
        rival = store.create_booking("S1", "P3", "C2", "M1", _at(10))
        booking_service.confirm(rival.id, merchant)

        state = wizard.submit()

        assert state.step == WizardStep.REVIEW_AND_CONFIRM
        assert state.error == "This time slot is no longer available. Please choose another time."
        active = store.list_bookings(
            BookingQuery(service_id="S1", statuses=ACTIVE_STATUSES, day=DAY)
        )
        assert [b.id for b in active] == [rival.id]

    def test_exactly_one_request_per_submit(self, service, resolver, booking_service):
        counting = CountingBookingService(booking_service)
        wizard = ReservationWizard(service, "C1", resolver, counting)
        _to_review(wizard)
        wizard.submit()
        assert counting.calls == 1

    def test_retry_after_conflict_with_new_time(self, wizard, store):
        _to_review(wizard)
        store.create_booking("S1", "P3", "C2", "M1", _at(10))
        assert wizard.submit().error is not None

        wizard.back()
        wizard.select_time(_at(12))
        wizard.next()
        state = wizard.submit()
        assert state.step == WizardStep.SUBMITTED

    def test_not_found_aborts(self, service, resolver, booking_service):
        counting = CountingBookingService(booking_service, error=NotFoundError("Pet", "P1"))
        wizard = ReservationWizard(service, "C1", resolver, counting)
        _to_review(wizard)
        state = wizard.submit()
        assert state.step == WizardStep.ABORTED
        assert state.error == GENERIC_FAILURE_MESSAGE

    def test_foreign_pet_stays_in_review(self, service, resolver, booking_service):
        wizard = ReservationWizard(service, "C2", resolver, booking_service)
        _to_review(wizard)
        state = wizard.submit()
        assert state.step == WizardStep.REVIEW_AND_CONFIRM
        assert state.error == "You can only book for your own pets."


class TestDismiss:
    def test_dismiss_discards_everything(self, wizard, store):
        _to_review(wizard)
        state = wizard.dismiss()
        assert state.step == WizardStep.DISMISSED
        assert state.pet_id is None and state.time is None
        assert store.list_bookings() == []
        with pytest.raises(InvalidTransitionError):
            wizard.select_pet("P1")


class TestRequestTagging:
    def test_submission_records_carry_wizard_request_id(self, wizard, caplog):
        with caplog.at_level(logging.INFO, logger="petcare_scheduling"):
            _to_review(wizard)
            wizard.submit()

        tagged = {
            r.name for r in caplog.records if getattr(r, "request_id", None) == wizard.request_id
        }
        assert "petcare_scheduling.booking.service" in tagged
        assert "petcare_scheduling.wizard.controller" in tagged

    def test_each_wizard_has_its_own_request_id(self, service, resolver, booking_service):
        first = ReservationWizard(service, "C1", resolver, booking_service)
        second = ReservationWizard(service, "C1", resolver, booking_service)
        assert first.request_id.startswith("RW-")
        assert first.request_id != second.request_id
