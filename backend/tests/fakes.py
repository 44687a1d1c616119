"""Scripted provider for driving the planner, selector and solver in tests."""

from __future__ import annotations

from collections.abc import Callable

from backend.app.contracts import Coordinates, Restaurant, RestaurantLocation
from backend.app.providers.base import AvailabilityResult, BookingResult, ProviderError


def make_restaurant(
    rid: str,
    *,
    name: str | None = None,
    categories: list[str] | None = None,
    price: str | None = "$$",
    rating: float = 4.0,
    reviews: int = 100,
    lat: float = 40.0,
    lon: float = -74.0,
    score: int | None = None,
) -> Restaurant:
    return Restaurant(
        id=rid,
        name=name or rid.upper(),
        rating=rating,
        review_count=reviews,
        price_level=price,
        categories=categories or [],
        location=RestaurantLocation(city="Testville", coordinates=Coordinates(latitude=lat, longitude=lon)),
        url=f"https://example.com/{rid}",
        vibe_match_score=score,
    )


class ScriptedProvider:
    """Answers from fixed tables and records every call it receives."""

    def __init__(
        self,
        restaurants: list[Restaurant] | None = None,
        *,
        by_term: dict[str, list[Restaurant]] | None = None,
        available: Callable[[str, str], bool] | None = None,
        bookings: dict[str, BookingResult] | None = None,
        search_error: bool = False,
        booking_errors: set[str] | None = None,
        descriptions: dict[str, str] | None = None,
    ) -> None:
        self.restaurants = restaurants or []
        self.by_term = by_term or {}
        self.available = available or (lambda rid, time: True)
        self.bookings = bookings or {}
        self.search_error = search_error
        self.booking_errors = booking_errors or set()
        self.descriptions = descriptions or {}
        self.searches: list[tuple[str, str, str | None]] = []
        self.booking_calls: list[tuple[str, str]] = []

    async def search(self, term, location, *, price=None, limit=20, sort_by="best_match"):
        self.searches.append((term, location, price))
        if self.search_error:
            raise ProviderError("search backend down")
        return list(self.by_term.get(term, self.restaurants))[:limit]

    async def check_availability(self, restaurant, location, date, time, party_size):
        return AvailabilityResult(available=self.available(restaurant.id, time))

    async def attempt_booking(self, restaurant, location, date, time, party_size):
        self.booking_calls.append((restaurant.id, time))
        if restaurant.id in self.booking_errors:
            raise ProviderError("booking backend down")
        return self.bookings.get(
            restaurant.id, BookingResult(success=True, confirmation_number=f"{restaurant.id}-1")
        )

    async def describe(self, restaurant):
        return self.descriptions.get(restaurant.id, "")

    async def aclose(self):
        return None
