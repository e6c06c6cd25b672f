"""Error kinds raised by the scheduling core.

Every error carries a ``message`` fit to show an end user. Callers decide
how to surface it; nothing in the core retries on these.
"""

from typing import Iterable


class SchedulingError(Exception):
    """Base class for all scheduling domain errors."""

    default_message = "Something went wrong with this booking."

    def __init__(self, detail: str = "", message: str = "") -> None:
        super().__init__(detail or message or self.default_message)
        self.detail = detail
        self.message = message or self.default_message


class InvalidTransitionError(SchedulingError):
    """Raised when a lifecycle or wizard transition is not allowed."""

    default_message = "This booking can no longer be changed."


class SlotConflictError(SchedulingError):
    """Raised when the requested slot is already held by an active booking."""

    default_message = "This time slot is no longer available. Please choose another time."


class IncompleteStepError(SchedulingError):
    """Raised when the wizard is asked to advance with required fields unset."""

    default_message = "Please complete this step before continuing."

    def __init__(self, missing: Iterable[str], detail: str = "") -> None:
        self.missing = list(missing)
        super().__init__(detail or f"Missing required fields: {', '.join(self.missing)}")


class NotFoundError(SchedulingError):
    """Raised when a referenced service, pet or booking does not exist."""

    default_message = "Something went wrong. Please try again later."

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier!r} not found")


class PermissionDeniedError(SchedulingError):
    """Raised when an actor tries to touch a booking or pet they do not own."""

    default_message = "You cannot change this booking."


class InvalidSlotError(SchedulingError):
    """Raised when a start time is off the offering grid or the service is closed."""

    default_message = "This service cannot be booked at the requested time."
