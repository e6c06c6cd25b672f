from petcare_scheduling.wizard.controller import ReservationWizard
from petcare_scheduling.wizard.state_machine import (
    WizardEvent,
    WizardState,
    WizardStep,
    WizardTrigger,
    can_advance,
    missing_fields,
    transition,
)

__all__ = [
    "ReservationWizard",
    "WizardState",
    "WizardEvent",
    "WizardStep",
    "WizardTrigger",
    "transition",
    "missing_fields",
    "can_advance",
]
