import asyncio
import random
import re

import httpx
import pytest

from backend.app.contracts import Restaurant
from backend.app.planner import DRINKS_TERM
from backend.app.providers.base import ProviderError, ProviderUnavailable
from backend.app.providers.simulator import (
    VENUES,
    SimulatedProvider,
    availability_rate,
    booking_success_rate,
    confirmation_number,
)
from backend.app.providers.yelp import YelpProvider, map_business, read_availability, read_booking
from backend.tests.fakes import make_restaurant


def test_simulated_search_matches_cuisine_words():
    provider = SimulatedProvider(seed=1)
    results = asyncio.run(provider.search("thai", "Austin"))
    assert [r.name for r in results] == ["Bangkok Garden"]
    assert results[0].id == "sim-austin-bangkok-garden"
    assert results[0].location.city == "Austin"


def test_simulated_search_word_boundaries():
    provider = SimulatedProvider(seed=1)
    names = {r.name for r in asyncio.run(provider.search("ice cream", "Austin"))}
    assert names == {"Scoops Ice Cream", "Gelato Bella"}


def test_drinks_search_returns_only_bars():
    provider = SimulatedProvider(seed=7)
    names = {r.name for r in asyncio.run(provider.search(DRINKS_TERM, "Austin", limit=50))}
    drinks = {venue.name for venue in VENUES if venue.kind == "drinks"}
    assert names == drinks

    bbq = {r.name for r in asyncio.run(provider.search("bbq", "Austin", limit=50))}
    assert bbq == {"Seoul Fire", "Smoke & Oak"}


def test_generic_search_returns_dinner_only_and_honors_filters():
    provider = SimulatedProvider(seed=1)
    everything = asyncio.run(provider.search("restaurant", "Chicago", limit=50))
    assert len(everything) > 20
    assert "Scoops Ice Cream" not in {r.name for r in everything}

    cheap = asyncio.run(provider.search("restaurant", "Chicago", price="1", limit=50))
    assert cheap and {r.price_level for r in cheap} == {"$"}

    by_rating = asyncio.run(provider.search("restaurant", "Chicago", sort_by="rating", limit=10))
    ratings = [r.rating for r in by_rating]
    assert ratings == sorted(ratings, reverse=True)


def test_simulator_is_deterministic():
    a = SimulatedProvider(seed=3)
    b = SimulatedProvider(seed=3)
    venue = asyncio.run(a.search("italian", "Boston"))[0]

    def outcomes(provider):
        return [
            asyncio.run(provider.check_availability(venue, "Boston", "Friday, May 1, 2026", slot, 2)).available
            for slot in ("6:00 PM", "6:30 PM", "7:00 PM", "7:30 PM", "8:00 PM")
        ]

    assert outcomes(a) == outcomes(b)
    booking_a = asyncio.run(a.attempt_booking(venue, "Boston", "Friday", "7:00 PM", 2))
    booking_b = asyncio.run(b.attempt_booking(venue, "Boston", "Friday", "7:00 PM", 2))
    assert booking_a == booking_b


def test_nearby_venues_are_within_walking_distance():
    provider = SimulatedProvider(seed=1)
    dinner = asyncio.run(provider.search("italian", "Seattle"))[0]
    desserts = asyncio.run(provider.search("dessert bakery ice cream", "Seattle", sort_by="distance"))
    assert desserts
    assert {"Sweet Spot Bakery", "Patisserie Claire"} <= {r.name for r in desserts}
    assert dinner.location.coordinates.latitude == pytest.approx(47.6062, abs=0.02)


def test_availability_rate_is_clamped():
    busy = make_restaurant("busy", price="$$$$", rating=4.9, reviews=5000)
    assert availability_rate(busy, "7:00 PM", 8, "Saturday, May 2, 2026") == 0.2
    calm = make_restaurant("calm", price="$", rating=4.0, reviews=100)
    assert availability_rate(calm, "5:00 PM", 2, "Tuesday") == pytest.approx(0.65)


def test_booking_success_rate_by_party_size():
    assert booking_success_rate(2) == 0.9
    assert booking_success_rate(7) == 0.75
    assert booking_success_rate(9) == 0.6


def test_confirmation_number_format():
    assert re.fullmatch(r"LPB-\d{4}", confirmation_number("Le Petit Bistro", random.Random(1)))
    assert confirmation_number("Ramen Ya", random.Random(1)).startswith("RYX-")


def test_simulated_describe_returns_catalog_blurb():
    provider = SimulatedProvider(seed=1)
    venue = asyncio.run(provider.search("steak", "Denver"))[0]
    assert "steakhouse" in asyncio.run(provider.describe(venue)).lower()
    assert asyncio.run(provider.describe(Restaurant(id="x", name="Unknown"))) == ""


def test_map_business_reads_yelp_shape():
    restaurant = map_business(
        {
            "id": "abc",
            "name": "Osteria",
            "rating": 4.5,
            "review_count": 120,
            "price": "$$$",
            "categories": [{"alias": "italian", "title": "Italian"}],
            "location": {"address1": "1 Main St", "city": "Boston"},
            "coordinates": {"latitude": 42.1, "longitude": -71.0},
            "url": "https://yelp.example/osteria",
            "hours": [{"is_open_now": True}],
        }
    )
    assert restaurant.categories == ["Italian"]
    assert restaurant.location.coordinates.latitude == 42.1
    assert restaurant.is_open_now is True


def test_read_availability_text():
    yes = read_availability("Good news, Osteria has availability at 7:00 PM or 8:30 pm.")
    assert yes.available is True
    assert yes.alternative_times == ["7:00 PM", "8:30 pm"]
    assert read_availability("Sorry, there's no availability for 4 tonight.").available is False
    assert read_availability("").available is False
    assert read_availability("That time is unavailable.").available is False
    assert read_availability("They're fully booked, but 9:30 PM is available.").available is False


def test_read_booking_text():
    booked = read_booking("Your reservation is confirmed! Confirmation #ABC123.", None)
    assert booked.success is True
    assert booked.confirmation_number == "ABC123"

    plain = read_booking("You're booked and confirmed for 7pm.", None)
    assert plain.success is True
    assert plain.confirmation_number is None

    handoff = read_booking("I can't complete this booking, please book directly.", "https://x.example")
    assert handoff.success is False
    assert handoff.requires_handoff is True
    assert handoff.handoff_url == "https://x.example"

    refused = read_booking("Sorry, they're fully booked tonight.", None)
    assert refused.success is False
    assert refused.failure_reason == "Sorry, they're fully booked tonight."
    assert read_booking("I could not confirm a table, it was not booked.", None).success is False


def _yelp(handler) -> YelpProvider:
    provider = YelpProvider(api_key="test-key", base_url="https://yelp.test")
    provider._client = httpx.AsyncClient(base_url=provider.base_url, transport=httpx.MockTransport(handler))
    return provider


def test_yelp_search_and_chat_requests():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/businesses/search":
            return httpx.Response(200, json={"businesses": [{"id": "b1", "name": "Bistro"}]})
        return httpx.Response(200, json={"response": {"text": "Bistro has availability at 7:00 PM"}})

    provider = _yelp(handler)

    async def scenario():
        results = await provider.search("french", "Boston", price="3", limit=5)
        availability = await provider.check_availability(results[0], "Boston", "Friday", "7:00 PM", 2)
        await provider.aclose()
        return results, availability

    results, availability = asyncio.run(scenario())
    assert [r.id for r in results] == ["b1"]
    assert seen[0].headers["Authorization"] == "Bearer test-key"
    assert seen[0].url.params["price"] == "3"
    assert seen[1].url.path == "/ai/chat"
    assert availability.available is True


@pytest.mark.parametrize(("status", "error"), [(401, ProviderUnavailable), (500, ProviderError)])
def test_yelp_http_errors(status, error):
    provider = _yelp(lambda request: httpx.Response(status, json={"error": "nope"}))
    with pytest.raises(error):
        asyncio.run(provider.search("thai", "Boston"))


def test_yelp_without_key_is_unavailable():
    provider = YelpProvider(api_key="", base_url="https://yelp.test")
    with pytest.raises(ProviderUnavailable):
        asyncio.run(provider.search("thai", "Boston"))
