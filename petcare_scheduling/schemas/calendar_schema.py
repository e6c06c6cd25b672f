"""Calendar and availability view models handed to the presentation layer."""

from datetime import date
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from petcare_scheduling.schemas.booking_schema import BookingStatus

T = TypeVar("T")


class DaySummary(BaseModel):
    """Booking counts per status for one calendar day."""
    day: date
    counts: dict[BookingStatus, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class BookingListFilter(str, Enum):
    """Tabs of the merchant booking list."""
    ALL = "ALL"
    TODAY = "TODAY"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Page(BaseModel, Generic[T]):
    """One page of a longer list."""
    items: list[T] = Field(default_factory=list)
    page: int = 1
    per_page: int = 6
    total_items: int = 0

    @property
    def total_pages(self) -> int:
        return -(-self.total_items // self.per_page) if self.total_items else 0


class BookedSlots(BaseModel):
    """Occupied HH:MM labels for a service-day, plus the pet's own commitments."""
    service_id: str
    day: date
    booked_slots: list[str] = Field(default_factory=list)
    pet_booked_slots: list[str] = Field(default_factory=list)
