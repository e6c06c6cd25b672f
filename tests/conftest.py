"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional

import pytest

from petcare_scheduling.booking.directory import InMemoryPetDirectory, InMemoryServiceDirectory
from petcare_scheduling.booking.lifecycle import BookingLifecycle
from petcare_scheduling.booking.service import BookingService
from petcare_scheduling.booking.store import InMemoryBookingStore
from petcare_scheduling.scheduling.availability import AvailabilityResolver
from petcare_scheduling.scheduling.slot_generator import TimeSlotGenerator
from petcare_scheduling.schemas.booking_schema import (
    Actor,
    ActorRole,
    Booking,
    BookingStatus,
    Pet,
    Service,
)

_booking_seq = 0


def make_service(
    service_id: str = "S1",
    merchant_id: str = "M1",
    duration_minutes: int = 60,
    is_active: bool = True,
    name: str = "Full Groom",
) -> Service:
    """Helper to create a Service with sensible defaults."""
    return Service(
        id=service_id,
        merchant_id=merchant_id,
        name=name,
        category="Spa & Grooming",
        price_min=200000,
        price_max=450000,
        duration_minutes=duration_minutes,
        is_active=is_active,
    )


def make_booking(
    start_time: datetime,
    status: BookingStatus = BookingStatus.PENDING,
    service_id: str = "S1",
    merchant_id: str = "M1",
    customer_id: str = "C1",
    pet_id: str = "P1",
    booking_id: Optional[str] = None,
) -> Booking:
    """Helper to create a Booking without going through the store."""
    global _booking_seq
    _booking_seq += 1
    return Booking(
        id=booking_id or f"BK-TEST{_booking_seq:04d}",
        service_id=service_id,
        pet_id=pet_id,
        customer_id=customer_id,
        merchant_id=merchant_id,
        start_time=start_time,
        status=status,
    )


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def service_directory(service):
    return InMemoryServiceDirectory(
        [
            service,
            make_service("S2", merchant_id="M2", duration_minutes=120, name="Vet Check"),
            make_service("S3", is_active=False, name="Retired Service"),
        ]
    )


@pytest.fixture
def pet_directory():
    return InMemoryPetDirectory(
        [
            Pet(id="P1", owner_id="C1", name="Mochi", species="cat"),
            Pet(id="P2", owner_id="C1", name="Bap", species="dog"),
            Pet(id="P3", owner_id="C2", name="Lua", species="dog"),
        ]
    )


@pytest.fixture
def store():
    return InMemoryBookingStore(conflict_mode="exact", timezone_name="")


@pytest.fixture
def generator():
    return TimeSlotGenerator()


@pytest.fixture
def resolver(store, generator):
    return AvailabilityResolver(store, generator, conflict_mode="exact", timezone_name="")


@pytest.fixture
def lifecycle():
    return BookingLifecycle()


@pytest.fixture
def booking_service(store, service_directory, pet_directory, resolver, lifecycle):
    return BookingService(store, service_directory, pet_directory, resolver, lifecycle)


@pytest.fixture
def customer():
    return Actor(role=ActorRole.CUSTOMER, user_id="C1")


@pytest.fixture
def other_customer():
    return Actor(role=ActorRole.CUSTOMER, user_id="C2")


@pytest.fixture
def merchant():
    return Actor(role=ActorRole.MERCHANT, user_id="M1")


@pytest.fixture
def admin():
    return Actor(role=ActorRole.ADMIN, user_id="A1")


@pytest.fixture
def utc_zone():
    """Name of a zone the tz database is known to have; skips without one."""
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    try:
        ZoneInfo("UTC")
    except ZoneInfoNotFoundError:
        pytest.skip("no IANA time zone data available")
    return "UTC"
