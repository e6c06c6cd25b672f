"""
Reservation wizard as an explicit state machine.

The wizard walks a customer through pet + date, then time + notes, then a
review screen, and finally submission. Its state is an immutable
``WizardState`` value and every change goes through ``transition(state,
event)``, a pure function. Side effects (fetching slots, creating the
booking) live in ``ReservationWizard`` in ``controller.py``.

Usage:
    state = WizardState(service_id="S1")
    state = transition(state, WizardEvent(WizardTrigger.SELECT_PET, "pet-1"))
    state = transition(state, WizardEvent(WizardTrigger.SELECT_DATE, date(2024, 6, 10)))
    state = transition(state, WizardEvent(WizardTrigger.NEXT))
    assert state.step == WizardStep.SELECT_TIME_AND_NOTES
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from petcare_scheduling.errors import IncompleteStepError, InvalidSlotError, InvalidTransitionError

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    """Every step the reservation flow can be in."""
    SELECT_PET_AND_DATE = "select_pet_and_date"
    SELECT_TIME_AND_NOTES = "select_time_and_notes"
    REVIEW_AND_CONFIRM = "review_and_confirm"
    SUBMITTED = "submitted"
    DISMISSED = "dismissed"
    ABORTED = "aborted"


class WizardTrigger(str, Enum):
    """Events the wizard reacts to."""
    SELECT_PET = "select_pet"
    SELECT_DATE = "select_date"
    SELECT_TIME = "select_time"
    SET_NOTE = "set_note"
    SLOTS_LOADED = "slots_loaded"
    NEXT = "next"
    BACK = "back"
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"
    ABORT = "abort"
    DISMISS = "dismiss"


TERMINAL_STEPS = frozenset({WizardStep.SUBMITTED, WizardStep.DISMISSED, WizardStep.ABORTED})

_FORWARD = {
    WizardStep.SELECT_PET_AND_DATE: WizardStep.SELECT_TIME_AND_NOTES,
    WizardStep.SELECT_TIME_AND_NOTES: WizardStep.REVIEW_AND_CONFIRM,
}
_BACKWARD = {
    WizardStep.SELECT_TIME_AND_NOTES: WizardStep.SELECT_PET_AND_DATE,
    WizardStep.REVIEW_AND_CONFIRM: WizardStep.SELECT_TIME_AND_NOTES,
}

# Events accepted on each live step besides NEXT, BACK, ABORT and DISMISS.
_STEP_INPUTS = {
    WizardStep.SELECT_PET_AND_DATE: {WizardTrigger.SELECT_PET, WizardTrigger.SELECT_DATE},
    WizardStep.SELECT_TIME_AND_NOTES: {
        WizardTrigger.SELECT_TIME,
        WizardTrigger.SET_NOTE,
        WizardTrigger.SLOTS_LOADED,
    },
    WizardStep.REVIEW_AND_CONFIRM: {
        WizardTrigger.SUBMIT_SUCCEEDED,
        WizardTrigger.SUBMIT_FAILED,
    },
}


@dataclass(frozen=True)
class WizardEvent:
    """A trigger plus its payload (pet id, date, time, note, slots or message)."""
    trigger: WizardTrigger
    value: Any = None


@dataclass(frozen=True)
class WizardState:
    """Snapshot of one customer's in-progress reservation for a service."""
    service_id: str
    step: WizardStep = WizardStep.SELECT_PET_AND_DATE
    pet_id: Optional[str] = None
    day: Optional[date] = None
    time: Optional[datetime] = None
    note: str = ""
    available_slots: tuple[datetime, ...] = ()
    error: Optional[str] = None
    booking_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS


def missing_fields(state: WizardState) -> list[str]:
    """Required inputs of the current step that are still unset."""
    if state.step == WizardStep.SELECT_PET_AND_DATE:
        missing = []
        if not state.pet_id:
            missing.append("pet")
        if state.day is None:
            missing.append("date")
        return missing
    if state.step == WizardStep.SELECT_TIME_AND_NOTES:
        if state.time is None or state.time not in state.available_slots:
            return ["time"]
    return []


def can_advance(state: WizardState) -> bool:
    """Whether NEXT would be accepted right now."""
    return state.step in _FORWARD and not missing_fields(state)


def _reject(state: WizardState, event: WizardEvent) -> InvalidTransitionError:
    return InvalidTransitionError(
        f"Wizard cannot handle '{event.trigger.value}' in step '{state.step.value}'"
    )


def transition(state: WizardState, event: WizardEvent) -> WizardState:
    """
    Compute the wizard state that follows ``event``.

    Args:
        state: Current wizard state; never modified.
        event: The user action or collaborator result to apply.

    Returns:
        The next wizard state.

    Raises:
        InvalidTransitionError: The event is not accepted in this step,
            or the wizard has already finished.
        IncompleteStepError: NEXT was requested with required fields unset.
        InvalidSlotError: A time outside the loaded slot list was picked.
    """
    trigger = event.trigger
    if state.is_terminal:
        raise _reject(state, event)

    if trigger == WizardTrigger.DISMISS:
        new_state = WizardState(service_id=state.service_id, step=WizardStep.DISMISSED)
    elif trigger == WizardTrigger.ABORT:
        new_state = WizardState(
            service_id=state.service_id, step=WizardStep.ABORTED, error=event.value
        )
    elif trigger == WizardTrigger.NEXT:
        if state.step not in _FORWARD:
            raise _reject(state, event)
        missing = missing_fields(state)
        if missing:
            raise IncompleteStepError(missing)
        new_state = replace(state, step=_FORWARD[state.step], error=None)
        if state.step == WizardStep.SELECT_PET_AND_DATE:
            # slots from an earlier visit may belong to another date
            new_state = replace(new_state, available_slots=())
    elif trigger == WizardTrigger.BACK:
        if state.step not in _BACKWARD:
            raise _reject(state, event)
        new_state = replace(state, step=_BACKWARD[state.step], error=None)
    elif trigger not in _STEP_INPUTS.get(state.step, ()):
        raise _reject(state, event)
    elif trigger == WizardTrigger.SELECT_PET:
        new_state = replace(state, pet_id=event.value, error=None)
    elif trigger == WizardTrigger.SELECT_DATE:
        new_state = replace(state, day=event.value, error=None)
    elif trigger == WizardTrigger.SLOTS_LOADED:
        slots = tuple(event.value or ())
        kept_time = state.time if state.time in slots else None
        new_state = replace(state, available_slots=slots, time=kept_time)
    elif trigger == WizardTrigger.SELECT_TIME:
        if event.value not in state.available_slots:
            raise InvalidSlotError(f"{event.value} is not among the offered slots")
        new_state = replace(state, time=event.value, error=None)
    elif trigger == WizardTrigger.SET_NOTE:
        new_state = replace(state, note=(event.value or "").strip())
    elif trigger == WizardTrigger.SUBMIT_SUCCEEDED:
        new_state = replace(state, step=WizardStep.SUBMITTED, booking_id=event.value, error=None)
    else:  # SUBMIT_FAILED
        new_state = replace(state, error=event.value)

    if new_state.step != state.step:
        logger.debug(
            "Wizard step: %s -> %s (trigger: %s)",
            state.step.value, new_state.step.value, trigger.value,
        )
    return new_state
