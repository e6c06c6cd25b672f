"""
Read-only service and pet lookups.

In production these wrap the marketplace catalog and pet profile APIs.
The scheduling core only reads from them to validate and label bookings.
"""

import logging
from typing import Iterable, Optional, Protocol

from petcare_scheduling.errors import NotFoundError
from petcare_scheduling.schemas.booking_schema import Pet, Service

logger = logging.getLogger(__name__)


class ServiceDirectory(Protocol):
    def get(self, service_id: str) -> Service:
        ...


class PetDirectory(Protocol):
    def get(self, pet_id: str) -> Pet:
        ...


class InMemoryServiceDirectory:
    """Service catalog keyed by service id."""

    def __init__(self, services: Iterable[Service] = ()) -> None:
        self._services: dict[str, Service] = {s.id: s for s in services}

    def get(self, service_id: str) -> Service:
        service = self._services.get(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    def list_services(
        self, merchant_id: Optional[str] = None, only_active: bool = True
    ) -> list[Service]:
        """Services in insertion order, optionally for one merchant."""
        return [
            s
            for s in self._services.values()
            if (merchant_id is None or s.merchant_id == merchant_id)
            and (s.is_active or not only_active)
        ]


class InMemoryPetDirectory:
    """Pet profiles keyed by pet id."""

    def __init__(self, pets: Iterable[Pet] = ()) -> None:
        self._pets: dict[str, Pet] = {p.id: p for p in pets}

    def get(self, pet_id: str) -> Pet:
        pet = self._pets.get(pet_id)
        if pet is None:
            raise NotFoundError("Pet", pet_id)
        return pet

    def pets_of(self, owner_id: str) -> list[Pet]:
        """All pets belonging to one customer."""
        return [p for p in self._pets.values() if p.owner_id == owner_id]
