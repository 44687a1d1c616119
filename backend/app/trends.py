"""Trending-restaurant detection.

Signals are derived from search results: review velocity comes straight from
the review count, while social and press signals are drawn from a random
stream seeded per restaurant and per day, so one day's answers are stable.
"""

from __future__ import annotations

import hashlib
import logging
import math
import random
import re
from datetime import date

from .contracts import BookingPrediction, Restaurant, TrendingRestaurant, TrendSignal
from .metrics import provider_errors_total
from .providers.base import ProviderError, SearchProvider

logger = logging.getLogger(__name__)

SEARCH_POOL = 50
TREND_THRESHOLD = 40
SOURCE_WEIGHTS: dict[str, int] = {
    "tiktok": 25,
    "instagram": 20,
    "eater": 30,
    "infatuation": 25,
    "nytimes": 35,
    "yelp_reviews": 15,
}
PRESS_SOURCES = ("eater", "infatuation", "nytimes")


def _rng(seed: str, restaurant_id: str) -> random.Random:
    digest = hashlib.sha256(f"{seed}|{restaurant_id}".encode()).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))


def analyze_signals(restaurant: Restaurant, rng: random.Random) -> list[TrendSignal]:
    signals: list[TrendSignal] = []
    reviews = restaurant.review_count
    is_hot = restaurant.rating >= 4.5 and reviews > 500
    is_new = reviews < 200
    high_end = restaurant.price_ordinal >= 3

    if reviews > 100:
        velocity = min(reviews / 10, 50)
        if velocity > 10:
            signals.append(
                TrendSignal(
                    source="yelp_reviews",
                    metric="review_velocity",
                    value=round(velocity),
                    change=round(velocity * 2),
                )
            )

    if is_hot or is_new:
        if rng.random() > 0.4:
            signals.append(
                TrendSignal(
                    source="tiktok",
                    metric="mentions",
                    value=int(rng.random() * 50 + 10),
                    change=int(rng.random() * 300 + 100),
                )
            )
        if rng.random() > 0.3:
            signals.append(
                TrendSignal(
                    source="instagram",
                    metric="saves",
                    value=int(rng.random() * 1000 + 200),
                    change=int(rng.random() * 150 + 50),
                )
            )

    if restaurant.rating >= 4.5 and (high_end or rng.random() > 0.6):
        source = rng.choice(PRESS_SOURCES)
        slug = re.sub(r"\s", "-", restaurant.name.lower())
        signals.append(
            TrendSignal(
                source=source,
                metric="feature",
                value=1,
                change=100,
                url=f"https://{source}.com/article/{slug}",
            )
        )
    return signals


def trend_score(signals: list[TrendSignal]) -> int:
    """Weighted sum of signal growth, each signal capped at 3x its weight."""
    score = sum(SOURCE_WEIGHTS.get(s.source, 10) * min(s.change / 100, 3) for s in signals)
    return min(round(score), 100)


def predict_booking_difficulty(signals: list[TrendSignal], restaurant: Restaurant) -> BookingPrediction:
    popularity = (restaurant.rating / 5) * (math.log10(restaurant.review_count + 1) / 4)
    current = round(popularity * 7)
    multiplier = 1 + (trend_score(signals) / 100) * 2
    return BookingPrediction(
        current_wait_days=current,
        predicted_wait_days=round(current * multiplier),
        confidence=min(len(signals) / 5, 1.0),
    )


def opportunity_message(prediction: BookingPrediction, score: int) -> str:
    if score < 50:
        return "Solid pick, reliable availability"
    if prediction.predicted_wait_days > prediction.current_wait_days * 1.5:
        weeks = max(1, round(prediction.predicted_wait_days / 7))
        return f"Book now before {weeks}-week waits"
    if score > 80:
        return "About to blow up, grab a spot now"
    return "Getting buzz, good time to try it"


def analyze_restaurant(restaurant: Restaurant, seed: str) -> TrendingRestaurant:
    signals = analyze_signals(restaurant, _rng(seed, restaurant.id))
    score = trend_score(signals)
    prediction = predict_booking_difficulty(signals, restaurant)
    return TrendingRestaurant(
        restaurant=restaurant,
        trend_score=score,
        signals=signals,
        prediction=prediction,
        opportunity=opportunity_message(prediction, score),
    )


async def detect_trending(
    provider: SearchProvider,
    location: str,
    limit: int = 10,
    *,
    seed: str | None = None,
) -> list[TrendingRestaurant]:
    """Top-rated restaurants around ``location`` whose trend score clears the threshold."""
    seed = seed if seed is not None else date.today().isoformat()
    try:
        restaurants = await provider.search("restaurant", location, limit=SEARCH_POOL, sort_by="rating")
    except ProviderError as exc:
        provider_errors_total.labels(operation="search").inc()
        logger.warning("Trend search failed for %r: %s", location, exc)
        return []

    analyzed = [analyze_restaurant(restaurant, seed) for restaurant in restaurants]
    trending = [item for item in analyzed if item.trend_score > TREND_THRESHOLD]
    trending.sort(key=lambda item: item.trend_score, reverse=True)
    logger.info("Trends for %r: %d of %d restaurants trending", location, len(trending), len(analyzed))
    return trending[:limit]


__all__ = [
    "analyze_restaurant",
    "analyze_signals",
    "detect_trending",
    "opportunity_message",
    "predict_booking_difficulty",
    "trend_score",
]
