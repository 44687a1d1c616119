from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx

from ..contracts import Coordinates, Restaurant, RestaurantLocation
from ..settings import settings
from .base import AvailabilityResult, BookingResult, ProviderError, ProviderUnavailable, SearchProvider

logger = logging.getLogger(__name__)

UNAVAILABLE_INDICATORS = (
    "no availability", "not available", "unavailable", "fully booked", "no tables", "booked up",
)
AVAILABLE_INDICATORS = ("available", "has availability", "can accommodate")
NOT_BOOKED_INDICATORS = UNAVAILABLE_INDICATORS + (
    "not booked", "not confirmed", "couldn't", "could not", "unable to",
)
BOOKED_INDICATORS = ("confirmed", "booked", "reservation is set")
HANDOFF_INDICATORS = ("can't complete", "cannot complete", "visit their", "call them", "book directly")

_TIME_PATTERN = re.compile(r"\d{1,2}(?::\d{2})?\s*(?:am|pm)", re.IGNORECASE)
_CONFIRMATION_PATTERN = re.compile(
    r"\bconf(?:irmation|\.)?(?![a-z])(?:\s*(?:#|number|code|no\.?)\s*)?(?:\s*is)?\s*:?\s*"
    r"([A-Z0-9]*\d[A-Z0-9-]*)",
    re.IGNORECASE,
)


def map_business(biz: dict[str, Any]) -> Restaurant:
    location = biz.get("location") or {}
    coordinates = biz.get("coordinates") or {}
    hours = biz.get("hours") or []
    return Restaurant(
        id=biz["id"],
        name=biz.get("name", ""),
        rating=biz.get("rating") or 0.0,
        review_count=biz.get("review_count") or 0,
        price_level=biz.get("price") or "$$",
        categories=[c.get("title", "") for c in biz.get("categories") or [] if c.get("title")],
        location=RestaurantLocation(
            address=location.get("address1") or "",
            city=location.get("city") or "",
            neighborhood=location.get("neighborhood"),
            coordinates=Coordinates(
                latitude=coordinates.get("latitude") or 0.0,
                longitude=coordinates.get("longitude") or 0.0,
            ),
        ),
        phone=biz.get("phone") or "",
        url=biz.get("url") or "",
        image_url=biz.get("image_url") or "",
        is_open_now=hours[0].get("is_open_now") if hours else None,
    )


def _mentions(lower: str, phrases: tuple[str, ...]) -> bool:
    return any(re.search(rf"(?<![a-z']){re.escape(p)}(?![a-z])", lower) for p in phrases)


def read_availability(text: str) -> AvailabilityResult:
    lower = text.lower()
    # negative phrases take precedence
    available = not _mentions(lower, UNAVAILABLE_INDICATORS) and _mentions(lower, AVAILABLE_INDICATORS)
    alternatives = list(dict.fromkeys(match.group(0) for match in _TIME_PATTERN.finditer(text)))
    return AvailabilityResult(available=available, alternative_times=alternatives, message=text)


def read_booking(text: str, handoff_url: str | None) -> BookingResult:
    lower = text.lower()
    success = not _mentions(lower, NOT_BOOKED_INDICATORS) and _mentions(lower, BOOKED_INDICATORS)
    requires_handoff = _mentions(lower, HANDOFF_INDICATORS)
    match = _CONFIRMATION_PATTERN.search(text)
    return BookingResult(
        success=success and not requires_handoff,
        confirmation_number=match.group(1) if match else None,
        requires_handoff=requires_handoff,
        handoff_url=handoff_url,
        failure_reason=None if success else (text or "No confirmation received"),
        message=text,
    )


class YelpProvider(SearchProvider):
    """Yelp Fusion search plus the conversational endpoint for availability and booking.

    Each chat call starts a fresh conversation so concurrent plans never share state.
    """

    def __init__(self, *, api_key: str | None = None, base_url: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.YELP_API_KEY
        self.base_url = (base_url or settings.YELP_API_BASE).rstrip("/")
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ProviderUnavailable("YELP_API_KEY not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    timeout = httpx.Timeout(
                        settings.YELP_TIMEOUT_SECONDS,
                        connect=settings.YELP_CONNECT_TIMEOUT_SECONDS,
                    )
                    self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        headers = self._headers()
        client = await self._get_client()
        try:
            response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(f"Yelp request failed: {exc}") from exc
        if response.status_code == 401:
            raise ProviderUnavailable("Yelp API authentication failed. Check YELP_API_KEY.")
        if response.status_code >= 400:
            raise ProviderError(f"Yelp error {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError("Invalid JSON from Yelp") from exc

    async def chat(self, message: str) -> tuple[str, list[dict[str, Any]]]:
        data = await self._request("POST", "/ai/chat", json={"query": message})
        body = data.get("response") or {}
        return body.get("text") or "", body.get("businesses") or []

    async def search(
        self,
        term: str,
        location: str,
        *,
        price: str | None = None,
        limit: int = 20,
        sort_by: str = "best_match",
    ) -> list[Restaurant]:
        params: dict[str, Any] = {"location": location, "limit": limit, "sort_by": sort_by}
        if term:
            params["term"] = term
        if price:
            params["price"] = price
        data = await self._request("GET", "/businesses/search", params=params)
        businesses = data.get("businesses") or []
        logger.info("Yelp search term=%r location=%r hits=%d", term, location, len(businesses))
        return [map_business(biz) for biz in businesses]

    async def check_availability(
        self,
        restaurant: Restaurant,
        location: str,
        date: str,
        time: str,
        party_size: int,
    ) -> AvailabilityResult:
        text, _ = await self.chat(
            f"Check availability at {restaurant.name} in {location} "
            f"for {party_size} people on {date} at {time}"
        )
        return read_availability(text)

    async def attempt_booking(
        self,
        restaurant: Restaurant,
        location: str,
        date: str,
        time: str,
        party_size: int,
    ) -> BookingResult:
        text, businesses = await self.chat(
            f"Book a table at {restaurant.name} in {location} "
            f"for {party_size} people on {date} at {time}"
        )
        handoff_url = (businesses[0].get("url") if businesses else None) or restaurant.url or None
        return read_booking(text, handoff_url)

    async def describe(self, restaurant: Restaurant) -> str:
        text, _ = await self.chat(
            f"Describe the atmosphere at {restaurant.name}. Is it dim or bright? Quiet or loud? "
            "Neighborhood feel or trendy scene? Casual or upscale? Traditional or experimental?"
        )
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["YelpProvider", "map_business", "read_availability", "read_booking"]
