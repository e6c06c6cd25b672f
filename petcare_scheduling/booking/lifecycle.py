"""
Booking lifecycle state machine with role-scoped transitions.

Every status change must match an entry in the transition table for the
acting role. Anything else raises ``InvalidTransitionError`` and the
booking is returned untouched. COMPLETED and CANCELLED are terminal.

Usage:
    lifecycle = BookingLifecycle()
    confirmed = lifecycle.apply(booking, BookingStatus.CONFIRMED, ActorRole.MERCHANT)
    lifecycle.allowed_targets(BookingStatus.PENDING, ActorRole.CUSTOMER)
    # [BookingStatus.CANCELLED]
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from petcare_scheduling.errors import InvalidTransitionError
from petcare_scheduling.schemas.booking_schema import (
    ActorRole,
    Booking,
    BookingStatus,
    TERMINAL_STATUSES,
)

logger = logging.getLogger(__name__)

_MERCHANT_SIDE = frozenset({ActorRole.MERCHANT, ActorRole.ADMIN})
_ANYONE = frozenset({ActorRole.CUSTOMER, ActorRole.MERCHANT, ActorRole.ADMIN})


@dataclass(frozen=True)
class StatusTransition:
    """A single permitted status change and who may perform it."""
    from_status: Optional[BookingStatus]
    to_status: BookingStatus
    roles: frozenset[ActorRole]


class BookingLifecycle:
    """
    Governs booking status changes for customers and merchants.

    ``from_status=None`` is the creation edge: only customers open a
    booking, and it always starts PENDING.
    """

    TRANSITIONS: list[StatusTransition] = [
        # --- Creation ---
        StatusTransition(None, BookingStatus.PENDING, frozenset({ActorRole.CUSTOMER})),

        # --- Pending ---
        StatusTransition(BookingStatus.PENDING, BookingStatus.CONFIRMED, _MERCHANT_SIDE),
        StatusTransition(BookingStatus.PENDING, BookingStatus.CANCELLED, _ANYONE),

        # --- Confirmed ---
        StatusTransition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED, _MERCHANT_SIDE),
        StatusTransition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, _MERCHANT_SIDE),
    ]

    def can_transition(
        self,
        current: Optional[BookingStatus],
        target: BookingStatus,
        role: ActorRole,
    ) -> bool:
        return any(
            t.from_status == current and t.to_status == target and role in t.roles
            for t in self.TRANSITIONS
        )

    def allowed_targets(
        self, current: Optional[BookingStatus], role: ActorRole
    ) -> list[BookingStatus]:
        """Return the statuses ``role`` may move a booking to from ``current``."""
        return [
            t.to_status
            for t in self.TRANSITIONS
            if t.from_status == current and role in t.roles
        ]

    def check(
        self,
        current: Optional[BookingStatus],
        target: BookingStatus,
        role: ActorRole,
    ) -> None:
        """
        Validate a transition without applying it.

        Raises:
            InvalidTransitionError: If the table has no matching edge.
        """
        if self.can_transition(current, target, role):
            return
        origin = current.value if current is not None else "(new)"
        if current in TERMINAL_STATUSES:
            detail = f"Booking is {origin}; no further changes are allowed"
        else:
            valid = [s.value for s in self.allowed_targets(current, role)]
            detail = (
                f"{role.value} cannot move a booking from '{origin}' to "
                f"'{target.value}'. Allowed: {valid}"
            )
        raise InvalidTransitionError(detail)

    def apply(self, booking: Booking, target: BookingStatus, role: ActorRole) -> Booking:
        """
        Return a copy of ``booking`` moved to ``target``.

        The input booking is never modified, so a rejected transition
        leaves the caller's state as it was.
        """
        self.check(booking.status, target, role)
        logger.debug(
            "Booking %s transition: %s -> %s (by %s)",
            booking.id, booking.status.value, target.value, role.value,
        )
        return booking.model_copy(
            update={"status": target, "updated_at": datetime.now(timezone.utc)}
        )

    def is_terminal(self, status: BookingStatus) -> bool:
        return status in TERMINAL_STATUSES
