import asyncio

import pytest

from backend.app.contracts import BookingPrediction, TrendSignal
from backend.app.trends import (
    analyze_restaurant,
    detect_trending,
    opportunity_message,
    trend_score,
)
from backend.tests.fakes import ScriptedProvider, make_restaurant

SEED = "2026-10-19"


def test_steady_restaurant_only_shows_review_velocity():
    steady = make_restaurant("steady", rating=4.2, reviews=300, price="$$")
    result = analyze_restaurant(steady, SEED)

    assert [(s.source, s.metric, s.value, s.change) for s in result.signals] == [
        ("yelp_reviews", "review_velocity", 30, 60)
    ]
    assert result.trend_score == 9
    assert result.prediction.current_wait_days == 4
    assert result.prediction.predicted_wait_days == 5
    assert result.prediction.confidence == pytest.approx(0.2)
    assert result.opportunity == "Solid pick, reliable availability"


def test_acclaimed_high_end_restaurant_gets_press_feature():
    acclaimed = make_restaurant("chez", name="Chez Test", rating=4.8, reviews=1000, price="$$$$")
    first = analyze_restaurant(acclaimed, SEED)
    again = analyze_restaurant(acclaimed, SEED)

    press = [s for s in first.signals if s.metric == "feature"]
    assert len(press) == 1
    assert press[0].url == f"https://{press[0].source}.com/article/chez-test"
    assert first.signals == again.signals
    assert first.trend_score == again.trend_score
    assert 40 <= first.trend_score <= 100


def test_trend_score_is_capped():
    signals = [
        TrendSignal(source="tiktok", metric="mentions", value=40, change=1000),
        TrendSignal(source="nytimes", metric="feature", value=1, change=100),
    ]
    assert trend_score(signals) == 100
    assert trend_score([]) == 0


@pytest.mark.parametrize(
    ("current", "predicted", "score", "expected"),
    [
        (2, 6, 60, "Book now before 1-week waits"),
        (5, 6, 90, "About to blow up, grab a spot now"),
        (5, 6, 60, "Getting buzz, good time to try it"),
        (5, 20, 45, "Solid pick, reliable availability"),
    ],
)
def test_opportunity_message(current, predicted, score, expected):
    prediction = BookingPrediction(current_wait_days=current, predicted_wait_days=predicted, confidence=0.5)
    assert opportunity_message(prediction, score) == expected


def test_detect_trending_filters_and_sorts():
    steady = make_restaurant("steady", rating=4.2, reviews=300)
    hot = [make_restaurant(f"hot{i}", rating=4.9, reviews=2000, price="$$$$") for i in range(6)]
    provider = ScriptedProvider([steady, *hot])

    trending = asyncio.run(detect_trending(provider, "Austin", seed=SEED))

    assert trending
    assert "steady" not in {item.restaurant.id for item in trending}
    scores = [item.trend_score for item in trending]
    assert scores == sorted(scores, reverse=True)
    assert all(score > 40 for score in scores)
    assert provider.searches == [("restaurant", "Austin", None)]

    assert len(asyncio.run(detect_trending(provider, "Austin", limit=2, seed=SEED))) <= 2


def test_detect_trending_survives_search_outage():
    provider = ScriptedProvider(search_error=True)
    assert asyncio.run(detect_trending(provider, "Austin", seed=SEED)) == []
