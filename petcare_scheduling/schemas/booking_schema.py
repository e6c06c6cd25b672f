"""Service, pet and booking data models."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})


class ActorRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    MERCHANT = "MERCHANT"
    ADMIN = "ADMIN"


class Actor(BaseModel):
    """Whoever is asking for a booking change."""
    role: ActorRole
    user_id: str


class Service(BaseModel):
    """A bookable service offered by a merchant."""
    id: str
    merchant_id: str
    name: str
    category: str = ""
    price_min: float = Field(default=0, ge=0)
    price_max: float = Field(default=0, ge=0)
    duration_minutes: int = Field(default=60, ge=1)
    description: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def _check_price_range(self) -> "Service":
        if self.price_max < self.price_min:
            raise ValueError(
                f"price_max ({self.price_max}) must not be below price_min ({self.price_min})"
            )
        return self


class Pet(BaseModel):
    """A customer's pet."""
    id: str
    owner_id: str
    name: str
    species: str = ""
    breed: Optional[str] = None


class Booking(BaseModel):
    """A reservation of one service slot for one pet."""
    id: str
    service_id: str
    pet_id: str
    customer_id: str
    merchant_id: str
    start_time: datetime
    note: str = ""
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active


class BookingRequest(BaseModel):
    """Validated booking creation request emitted by the reservation wizard."""
    service_id: str
    pet_id: str
    customer_id: str
    start_time: datetime
    note: str = ""


class BookingQuery(BaseModel):
    """Filter passed to the booking store's list operation.

    Unset fields do not constrain the result.
    """
    customer_id: Optional[str] = None
    merchant_id: Optional[str] = None
    service_id: Optional[str] = None
    pet_id: Optional[str] = None
    statuses: Optional[frozenset[BookingStatus]] = None
    day: Optional[date] = None
