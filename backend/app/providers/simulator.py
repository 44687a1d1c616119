"""Offline provider that fabricates a believable restaurant scene for any location.

Every answer is drawn from a ``random.Random`` seeded with a stable hash of the
call's inputs and ``SIMULATOR_SEED``, so the same venue, date, slot and party size
always produce the same availability and booking outcome.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import random
import re
from dataclasses import dataclass

from ..contracts import Coordinates, Restaurant, RestaurantLocation
from ..geo import haversine_miles, offset_coordinates
from ..settings import settings
from ..timeslots import parse_clock
from .base import AvailabilityResult, BookingResult, SearchProvider

logger = logging.getLogger(__name__)

BASE_AVAILABILITY = 0.65
MIN_AVAILABILITY = 0.2
MAX_AVAILABILITY = 0.85
FULLY_BOOKED_RATE = 0.15
DINNER_RADIUS_MILES = 0.6
NEARBY_RADIUS_MILES = 0.5

FAILURE_REASONS = [
    "That time slot was just booked by another party",
    "The restaurant is no longer accepting reservations for this time",
    "Unable to accommodate party size at this time",
    "Please try a different time or call the restaurant directly",
    "High demand - this slot filled while processing",
]

CITY_CENTERS: dict[str, tuple[float, float]] = {
    "new york": (40.7128, -74.0060),
    "nyc": (40.7128, -74.0060),
    "manhattan": (40.7831, -73.9712),
    "brooklyn": (40.6782, -73.9442),
    "san francisco": (37.7749, -122.4194),
    "sf": (37.7749, -122.4194),
    "los angeles": (34.0522, -118.2437),
    "la": (34.0522, -118.2437),
    "chicago": (41.8781, -87.6298),
    "austin": (30.2672, -97.7431),
    "seattle": (47.6062, -122.3321),
    "boston": (42.3601, -71.0589),
    "miami": (25.7617, -80.1918),
    "denver": (39.7392, -104.9903),
    "washington dc": (38.9072, -77.0369),
}

GENERIC_TERMS = {"restaurant", "restaurants", "food", "dinner", "eat", "eats"}
STOP_WORDS = {"and", "the", "a", "an", "of", "or", "with"}
DESSERT_TERMS = {"dessert", "desserts", "bakery", "ice", "cream", "gelato", "sweet", "sweets"}
DRINK_TERMS = {"cocktail", "cocktails", "bar", "bars", "lounge", "drinks", "wine", "pub", "speakeasy"}
# query words that name a category by a shorter form
SEARCH_ALIASES = {
    "steak": "steakhouse", "bbq": "barbeque", "barbecue": "barbeque", "veggie": "vegetarian",
}


@dataclass(slots=True, frozen=True)
class VenueTemplate:
    name: str
    kind: str  # dinner | dessert | drinks
    categories: tuple[str, ...]
    price: str
    rating: float
    reviews: int
    blurb: str


VENUES: tuple[VenueTemplate, ...] = (
    VenueTemplate("Osteria Lucia", "dinner", ("Italian", "Wine Bars"), "$$$", 4.6, 1240,
                  "Candlelit, intimate trattoria with classic handmade pasta and a quiet back room."),
    VenueTemplate("Sakura Omakase", "dinner", ("Japanese", "Sushi Bars"), "$$$$", 4.8, 860,
                  "Hushed, elegant counter serving an innovative omakase. Dress code encouraged."),
    VenueTemplate("Bangkok Garden", "dinner", ("Thai",), "$$", 4.4, 930,
                  "Bright, casual and bustling spot with authentic Thai street food."),
    VenueTemplate("Green Table", "dinner", ("Vegetarian", "Vegan", "New American"), "$$", 4.5, 610,
                  "Airy, relaxed room with natural light and creative plant-based plates."),
    VenueTemplate("Casa Roja", "dinner", ("Mexican", "Tacos"), "$", 4.3, 1500,
                  "Loud, lively taqueria popular with locals. Come as you are."),
    VenueTemplate("Le Petit Bistro", "dinner", ("French", "Wine Bars"), "$$$", 4.7, 720,
                  "Dim, romantic bistro with white tablecloth service and classic French cooking."),
    VenueTemplate("Seoul Fire", "dinner", ("Korean", "Barbeque"), "$$", 4.5, 1100,
                  "Energetic, buzzy grill-your-own spot with bold flavors."),
    VenueTemplate("Spice Route", "dinner", ("Indian", "Vegetarian"), "$$", 4.4, 540,
                  "Cozy neighborhood room with traditional curries and a calm atmosphere."),
    VenueTemplate("The Oyster House", "dinner", ("Seafood", "Raw Food"), "$$$", 4.6, 1980,
                  "Bright, bustling seafood hall and a popular scene on weekends."),
    VenueTemplate("Prime Cut", "dinner", ("Steakhouses",), "$$$$", 4.7, 2300,
                  "Dark, moody and formal steakhouse with old-school service."),
    VenueTemplate("Nonna's Pizza", "dinner", ("Pizza", "Italian"), "$", 4.2, 2600,
                  "Noisy, family-friendly pizzeria with no-frills classic pies."),
    VenueTemplate("Pho Saigon", "dinner", ("Vietnamese", "Noodles"), "$", 4.3, 480,
                  "Casual, unpretentious noodle shop loved by regulars."),
    VenueTemplate("Olive & Fig", "dinner", ("Mediterranean", "Greek"), "$$", 4.5, 690,
                  "Sunny, open space with big windows and a relaxed, familiar menu."),
    VenueTemplate("Golden Dragon", "dinner", ("Chinese", "Dim Sum"), "$$", 4.1, 1320,
                  "Packed, bustling dim sum hall with traditional carts."),
    VenueTemplate("Ramen Ya", "dinner", ("Ramen", "Japanese"), "$", 4.4, 1750,
                  "Crowded, lively ramen counter that is trendy with a young crowd."),
    VenueTemplate("Tapas Barcelona", "dinner", ("Tapas Bars", "Spanish"), "$$", 4.5, 880,
                  "Vibrant, energetic tapas bar with creative small plates."),
    VenueTemplate("Andes Kitchen", "dinner", ("Peruvian", "Latin American"), "$$", 4.6, 410,
                  "Hip, adventurous spot with fusion ceviche and bold flavors."),
    VenueTemplate("Smoke & Oak", "dinner", ("Barbeque", "Southern"), "$$", 4.3, 1450,
                  "Loud, casual smokehouse with comfort food and a chill vibe."),
    VenueTemplate("Addis Table", "dinner", ("Ethiopian", "Vegan"), "$$", 4.6, 350,
                  "Cozy, quiet family-run room with authentic, adventurous platters."),
    VenueTemplate("The Modern Table", "dinner", ("New American", "Cocktail Bars"), "$$$", 4.5, 1010,
                  "Sophisticated, trendy room with innovative tasting plates and a see and be seen crowd."),
    VenueTemplate("Bayou Kitchen", "dinner", ("Cajun/Creole", "Southern"), "$$", 4.3, 620,
                  "Lively, relaxed spot with classic comfort food."),
    VenueTemplate("Mezze Lounge", "dinner", ("Lebanese", "Middle Eastern", "Halal"), "$$", 4.4, 530,
                  "Dim, ambient lounge with a calm room and traditional mezze."),
    VenueTemplate("Kosher Grill", "dinner", ("Kosher", "Mediterranean"), "$$", 4.2, 270,
                  "Bright, casual grill with familiar dishes."),
    VenueTemplate("Gluten-Free Kitchen", "dinner", ("Gluten-Free", "American (New)"), "$$", 4.4, 390,
                  "Airy, peaceful cafe-style room with creative gluten-free dishes."),
    VenueTemplate("Izakaya Kenji", "dinner", ("Izakaya", "Japanese"), "$$$", 4.6, 940,
                  "Moody, buzzy izakaya with experimental small plates."),
    VenueTemplate("Harbor Grill", "dinner", ("American (Traditional)", "Seafood"), "$$", 4.0, 800,
                  "Casual, family-friendly room with classic comfort food."),
    VenueTemplate("Sweet Spot Bakery", "dessert", ("Bakery", "Desserts"), "$", 4.6, 780,
                  "Bright, cozy bakery with classic cakes and pies."),
    VenueTemplate("Scoops Ice Cream", "dessert", ("Ice Cream & Frozen Yogurt", "Desserts"), "$", 4.7, 1200,
                  "Lively, casual scoop shop with creative flavors."),
    VenueTemplate("Patisserie Claire", "dessert", ("Bakery", "Patisserie", "Desserts"), "$$", 4.8, 640,
                  "Elegant, quiet patisserie with classic French pastries."),
    VenueTemplate("Gelato Bella", "dessert", ("Gelato", "Ice Cream & Frozen Yogurt"), "$", 4.5, 520,
                  "Sunny, relaxed gelateria with authentic recipes."),
    VenueTemplate("Chocolate Lab", "dessert", ("Desserts", "Chocolatiers & Shops"), "$$", 4.4, 310,
                  "Moody, innovative dessert bar with experimental plated sweets."),
    VenueTemplate("The Velvet Lounge", "drinks", ("Cocktail Bars", "Lounges"), "$$$", 4.6, 900,
                  "Dim, sophisticated lounge with creative cocktails and a trendy crowd."),
    VenueTemplate("Barrel & Vine", "drinks", ("Wine Bars",), "$$", 4.5, 610,
                  "Quiet, intimate wine bar loved by locals."),
    VenueTemplate("Hidden Door", "drinks", ("Speakeasies", "Cocktail Bars"), "$$$", 4.7, 1340,
                  "Dark, hidden gem speakeasy with experimental cocktails."),
    VenueTemplate("Skyline Rooftop", "drinks", ("Lounges", "Rooftop Bars"), "$$$", 4.3, 1720,
                  "Bright, buzzy rooftop scene with a see and be seen crowd."),
    VenueTemplate("The Local Tap", "drinks", ("Pubs", "Beer Bar"), "$", 4.2, 850,
                  "Loud, casual neighborhood pub with no-frills pours."),
    VenueTemplate("Jazz Cellar", "drinks", ("Jazz & Blues", "Cocktail Bars"), "$$", 4.5, 470,
                  "Dim, moody cellar with live jazz and classic cocktails."),
)

_BLURBS = {venue.name: venue.blurb for venue in VENUES}


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "anywhere"


def _stable_int(*parts: object) -> int:
    raw = "|".join(str(part) for part in parts)
    return int.from_bytes(hashlib.sha256(raw.encode("utf-8")).digest()[:8], "big")


def _tokens(term: str) -> set[str]:
    return {token for token in re.split(r"[^a-z]+", term.lower()) if token and token not in STOP_WORDS}


def _matches(venue: VenueTemplate, tokens: set[str]) -> bool:
    text = " ".join((venue.name, *venue.categories)).lower()
    words = {SEARCH_ALIASES.get(token, token) for token in tokens}
    return any(re.search(rf"\b{re.escape(word)}(?:s|es)?\b", text) for word in words)


def _price_allowed(price: str | None) -> set[int] | None:
    if not price:
        return None
    return {int(part) for part in price.split(",") if part.strip().isdigit()}


def availability_rate(restaurant: Restaurant, time: str, party_size: int, date: str = "") -> float:
    """Chance a single slot is open, from popularity, prime time, party size and price."""
    rate = BASE_AVAILABILITY
    if restaurant.review_count > 1000:
        rate -= 0.15
    if restaurant.review_count > 2000:
        rate -= 0.1
    if restaurant.rating >= 4.5:
        rate -= 0.1
    if restaurant.rating >= 4.8:
        rate -= 0.1
    parsed = parse_clock(time)
    if parsed and parsed[0] in (19, 20):
        rate -= 0.1
    if party_size > 4:
        rate -= 0.1
    if party_size > 6:
        rate -= 0.15
    if "saturday" in date.lower() or "sunday" in date.lower():
        rate -= 0.1
    if restaurant.price_ordinal >= 3:
        rate -= 0.1
    return max(MIN_AVAILABILITY, min(MAX_AVAILABILITY, rate))


def booking_success_rate(party_size: int) -> float:
    if party_size > 8:
        return 0.6
    if party_size > 6:
        return 0.75
    return 0.9


def confirmation_number(name: str, rng: random.Random) -> str:
    initials = "".join(word[0] for word in re.split(r"[\s-]+", name) if word).upper()[:3]
    return f"{initials.ljust(3, 'X')}-{rng.randint(1000, 9999)}"


class SimulatedProvider(SearchProvider):
    """Deterministic stand-in for a live search and reservations API."""

    def __init__(self, *, seed: int | None = None, latency_seconds: float | None = None) -> None:
        self.seed = settings.SIMULATOR_SEED if seed is None else seed
        self.latency_seconds = (
            settings.SIMULATOR_LATENCY_SECONDS if latency_seconds is None else latency_seconds
        )

    def _rng(self, *parts: object) -> random.Random:
        return random.Random(_stable_int(self.seed, *parts))

    async def _pause(self) -> None:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

    def _center(self, location: str) -> Coordinates:
        key = location.split(",")[0].strip().lower()
        if key in CITY_CENTERS:
            lat, lon = CITY_CENTERS[key]
            return Coordinates(latitude=lat, longitude=lon)
        rng = self._rng("center", key)
        return Coordinates(latitude=rng.uniform(29.0, 47.0), longitude=rng.uniform(-122.0, -72.0))

    def _build(self, venue: VenueTemplate, location: str, center: Coordinates) -> Restaurant:
        rng = self._rng("venue", _slug(location), venue.name)
        radius = DINNER_RADIUS_MILES if venue.kind == "dinner" else NEARBY_RADIUS_MILES
        distance = radius * math.sqrt(rng.random())
        angle = rng.uniform(0, 2 * math.pi)
        coordinates = offset_coordinates(center, distance * math.cos(angle), distance * math.sin(angle))
        city = location.split(",")[0].strip()
        return Restaurant(
            id=f"sim-{_slug(location)}-{_slug(venue.name)}",
            name=venue.name,
            rating=venue.rating,
            review_count=venue.reviews,
            price_level=venue.price,
            categories=list(venue.categories),
            location=RestaurantLocation(
                address=f"{rng.randint(10, 999)} {rng.choice(['Main', 'Market', 'Union', 'Park', 'Grand'])} St",
                city=city,
                coordinates=coordinates,
            ),
            phone=f"+1-555-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}",
            url=f"https://www.yelp.com/biz/{_slug(venue.name)}-{_slug(city)}",
            image_url=f"/images/venues/{_slug(venue.name)}.jpg",
            is_open_now=True,
        )

    async def search(
        self,
        term: str,
        location: str,
        *,
        price: str | None = None,
        limit: int = 20,
        sort_by: str = "best_match",
    ) -> list[Restaurant]:
        await self._pause()
        tokens = _tokens(term)
        kinds: set[str] = set()
        if tokens & DESSERT_TERMS:
            kinds.add("dessert")
        if tokens & DRINK_TERMS:
            kinds.add("drinks")
        # dessert and drink words search only those venues
        kinds = kinds or {"dinner"}
        generic = not tokens or tokens <= GENERIC_TERMS
        allowed_prices = _price_allowed(price)

        center = self._center(location)
        results: list[Restaurant] = []
        for venue in VENUES:
            if venue.kind not in kinds:
                continue
            if not generic and not _matches(venue, tokens - GENERIC_TERMS):
                continue
            if allowed_prices is not None and len(venue.price) not in allowed_prices:
                continue
            results.append(self._build(venue, location, center))

        if sort_by == "rating":
            results.sort(key=lambda r: (-r.rating, -r.review_count))
        elif sort_by == "review_count":
            results.sort(key=lambda r: -r.review_count)
        elif sort_by == "distance":
            results.sort(key=lambda r: haversine_miles(center, r.location.coordinates))
        logger.debug("Simulated search term=%r location=%r hits=%d", term, location, len(results))
        return results[:limit]

    async def check_availability(
        self,
        restaurant: Restaurant,
        location: str,
        date: str,
        time: str,
        party_size: int,
    ) -> AvailabilityResult:
        await self._pause()
        if self._rng("fully-booked", restaurant.id, date).random() < FULLY_BOOKED_RATE:
            return AvailabilityResult(available=False, message=f"{restaurant.name} is fully booked")
        rate = availability_rate(restaurant, time, party_size, date)
        available = self._rng("slot", restaurant.id, date, time, party_size).random() < rate
        if available:
            message = f"{restaurant.name} has availability for {party_size} at {time}"
        else:
            message = f"No tables for {party_size} at {time}"
        return AvailabilityResult(available=available, message=message)

    async def attempt_booking(
        self,
        restaurant: Restaurant,
        location: str,
        date: str,
        time: str,
        party_size: int,
    ) -> BookingResult:
        await self._pause()
        rng = self._rng("booking", restaurant.id, date, time, party_size)
        if rng.random() < booking_success_rate(party_size):
            number = confirmation_number(restaurant.name, rng)
            return BookingResult(
                success=True,
                confirmation_number=number,
                message=f"Reservation confirmed at {restaurant.name}, confirmation {number}",
            )
        reason = rng.choice(FAILURE_REASONS)
        return BookingResult(
            success=False,
            handoff_url=restaurant.url or None,
            failure_reason=reason,
            message=reason,
        )

    async def describe(self, restaurant: Restaurant) -> str:
        return _BLURBS.get(restaurant.name, "")

    async def aclose(self) -> None:
        return None


__all__ = [
    "SimulatedProvider",
    "availability_rate",
    "booking_success_rate",
    "confirmation_number",
]
