from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, Field

from ..contracts import Restaurant


class ProviderError(RuntimeError):
    """A search/availability/booking call could not be completed."""


class ProviderUnavailable(ProviderError):
    """The provider is not configured or its upstream is unreachable."""


class AvailabilityResult(BaseModel):
    available: bool
    alternative_times: list[str] = Field(default_factory=list)
    message: str = ""


class BookingResult(BaseModel):
    success: bool
    confirmation_number: str | None = None
    requires_handoff: bool = False
    handoff_url: str | None = None
    failure_reason: str | None = None
    message: str = ""


class SearchProvider(Protocol):
    async def search(
        self,
        term: str,
        location: str,
        *,
        price: str | None = None,
        limit: int = 20,
        sort_by: str = "best_match",
    ) -> list[Restaurant]: ...

    async def check_availability(
        self,
        restaurant: Restaurant,
        location: str,
        date: str,
        time: str,
        party_size: int,
    ) -> AvailabilityResult: ...

    async def attempt_booking(
        self,
        restaurant: Restaurant,
        location: str,
        date: str,
        time: str,
        party_size: int,
    ) -> BookingResult: ...

    async def describe(self, restaurant: Restaurant) -> str: ...

    async def aclose(self) -> None: ...
