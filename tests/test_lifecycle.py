"""Tests for the booking lifecycle state machine."""

from datetime import datetime
from itertools import product

import pytest

from petcare_scheduling.booking.lifecycle import BookingLifecycle, StatusTransition
from petcare_scheduling.errors import InvalidTransitionError
from petcare_scheduling.schemas.booking_schema import ActorRole, BookingStatus

from tests.conftest import make_booking

START = datetime(2024, 6, 10, 10, 0)

ALLOWED = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED, ActorRole.MERCHANT),
    (BookingStatus.PENDING, BookingStatus.CANCELLED, ActorRole.MERCHANT),
    (BookingStatus.PENDING, BookingStatus.CANCELLED, ActorRole.CUSTOMER),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED, ActorRole.MERCHANT),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED, ActorRole.MERCHANT),
}


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target,role",
        list(product(BookingStatus, BookingStatus, [ActorRole.CUSTOMER, ActorRole.MERCHANT])),
    )
    def test_only_listed_edges_allowed(self, lifecycle, current, target, role):
        assert lifecycle.can_transition(current, target, role) == ((current, target, role) in ALLOWED)

    def test_creation_edge_is_customer_only(self, lifecycle):
        assert lifecycle.can_transition(None, BookingStatus.PENDING, ActorRole.CUSTOMER)
        assert not lifecycle.can_transition(None, BookingStatus.PENDING, ActorRole.MERCHANT)
        assert not lifecycle.can_transition(None, BookingStatus.CONFIRMED, ActorRole.CUSTOMER)

    def test_admin_has_merchant_edges(self, lifecycle):
        for current, target, role in ALLOWED:
            if role == ActorRole.MERCHANT:
                assert lifecycle.can_transition(current, target, ActorRole.ADMIN)

    def test_no_pending_to_completed(self, lifecycle):
        for role in ActorRole:
            assert not lifecycle.can_transition(
                BookingStatus.PENDING, BookingStatus.COMPLETED, role
            )


class TestAllowedTargets:
    def test_customer_on_pending(self, lifecycle):
        assert lifecycle.allowed_targets(BookingStatus.PENDING, ActorRole.CUSTOMER) == [
            BookingStatus.CANCELLED
        ]

    def test_customer_on_confirmed(self, lifecycle):
        assert lifecycle.allowed_targets(BookingStatus.CONFIRMED, ActorRole.CUSTOMER) == []

    def test_merchant_on_pending(self, lifecycle):
        assert lifecycle.allowed_targets(BookingStatus.PENDING, ActorRole.MERCHANT) == [
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
        ]

    def test_merchant_on_confirmed(self, lifecycle):
        assert lifecycle.allowed_targets(BookingStatus.CONFIRMED, ActorRole.MERCHANT) == [
            BookingStatus.COMPLETED,
            BookingStatus.CANCELLED,
        ]

    @pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
    def test_terminal_has_no_targets(self, lifecycle, status):
        for role in ActorRole:
            assert lifecycle.allowed_targets(status, role) == []
        assert lifecycle.is_terminal(status)


class TestApply:
    def test_apply_returns_updated_copy(self, lifecycle):
        booking = make_booking(START)
        confirmed = lifecycle.apply(booking, BookingStatus.CONFIRMED, ActorRole.MERCHANT)
        assert confirmed.status == BookingStatus.CONFIRMED
        assert confirmed.updated_at is not None
        assert booking.status == BookingStatus.PENDING

    def test_rejected_transition_leaves_booking_unchanged(self, lifecycle):
        booking = make_booking(START)
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(booking, BookingStatus.COMPLETED, ActorRole.MERCHANT)
        assert booking.status == BookingStatus.PENDING

    def test_customer_cannot_confirm(self, lifecycle):
        with pytest.raises(InvalidTransitionError, match="CUSTOMER cannot move"):
            lifecycle.apply(make_booking(START), BookingStatus.CONFIRMED, ActorRole.CUSTOMER)

    def test_customer_cannot_cancel_confirmed(self, lifecycle):
        booking = make_booking(START, BookingStatus.CONFIRMED)
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(booking, BookingStatus.CANCELLED, ActorRole.CUSTOMER)

    def test_full_merchant_path_then_terminal(self, lifecycle):
        booking = make_booking(START)
        booking = lifecycle.apply(booking, BookingStatus.CONFIRMED, ActorRole.MERCHANT)
        booking = lifecycle.apply(booking, BookingStatus.COMPLETED, ActorRole.MERCHANT)
        assert booking.status == BookingStatus.COMPLETED

        for target in BookingStatus:
            for role in ActorRole:
                with pytest.raises(InvalidTransitionError, match="no further changes"):
                    lifecycle.apply(booking, target, role)
        assert booking.status == BookingStatus.COMPLETED

    def test_error_carries_user_message(self, lifecycle):
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.apply(make_booking(START, BookingStatus.CANCELLED),
                            BookingStatus.PENDING, ActorRole.MERCHANT)
        assert exc_info.value.message == "This booking can no longer be changed."


class TestCustomTable:
    def test_subclass_can_extend_table(self):
        class LenientLifecycle(BookingLifecycle):
            TRANSITIONS = BookingLifecycle.TRANSITIONS + [
                StatusTransition(
                    BookingStatus.CANCELLED, BookingStatus.PENDING, frozenset({ActorRole.ADMIN})
                ),
            ]

        lenient = LenientLifecycle()
        assert lenient.can_transition(BookingStatus.CANCELLED, BookingStatus.PENDING, ActorRole.ADMIN)
        assert not BookingLifecycle().can_transition(
            BookingStatus.CANCELLED, BookingStatus.PENDING, ActorRole.ADMIN
        )
