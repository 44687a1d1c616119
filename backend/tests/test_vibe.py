import asyncio

from backend.app.contracts import ParsedIntent, UserVibeProfile, VibeVector
from backend.app.providers.base import ProviderError
from backend.app.vibe import (
    VIBE_PHOTOS,
    average_vectors,
    enrich_restaurants,
    explain_match,
    match_score,
    preference_vector,
    score_vibe,
    summarize_vibe,
    vibe_from_favorites,
    vibe_from_keywords,
    vibe_from_photos,
    vibe_from_text,
)
from backend.tests.fakes import ScriptedProvider, make_restaurant


def test_identical_vectors_score_100():
    vector = VibeVector(lighting=10, noise_level=90, crowd_vibe=30, formality=70, adventurousness=5, price_level=55)
    score, reasons = match_score(vector, vector)
    assert score == 100
    assert len(reasons) == 3


def test_match_score_is_symmetric_and_bounded():
    a = VibeVector(lighting=0, noise_level=0, crowd_vibe=0, formality=0, adventurousness=0, price_level=0)
    b = VibeVector(lighting=100, noise_level=100, crowd_vibe=100, formality=100, adventurousness=100, price_level=100)
    c = VibeVector(lighting=40, noise_level=80, crowd_vibe=20, formality=60, adventurousness=50, price_level=10)
    assert match_score(a, b)[0] == 0
    assert match_score(a, c)[0] == match_score(c, a)[0]
    assert 0 <= match_score(b, c)[0] <= 100


def test_explain_match_without_close_dimensions():
    a = VibeVector(lighting=0, noise_level=0, crowd_vibe=0, formality=0, adventurousness=0, price_level=0)
    b = VibeVector(lighting=100, noise_level=100, crowd_vibe=100, formality=100, adventurousness=100, price_level=100)
    assert explain_match("Nowhere", a, b) == "Nowhere offers a unique experience"


def test_score_vibe_neutral_without_metadata():
    restaurant = make_restaurant("plain", price=None)
    assert score_vibe(restaurant) == VibeVector()


def test_score_vibe_reads_categories_and_price():
    steakhouse = make_restaurant("steak", categories=["Steakhouses"], price="$$$$", reviews=2000)
    vector = score_vibe(steakhouse)
    assert vector.lighting < 50
    assert vector.formality > 50
    assert vector.price_level == 100
    # popular places lean towards a scene
    assert vector.crowd_vibe > 50


def test_vibe_from_text_uses_keyword_ratio():
    vector = vibe_from_text("A dim, quiet and intimate room", "$")
    assert vector.lighting == 0
    assert vector.noise_level == 0
    assert vector.price_level == 25
    assert vibe_from_text("", None) == VibeVector()


def test_vibe_from_keywords_none_when_nothing_maps():
    assert vibe_from_keywords([]) is None
    assert vibe_from_keywords(["rooftop"]) is None
    romantic = vibe_from_keywords(["romantic"])
    assert romantic is not None and romantic.lighting == 0


def test_vibe_from_photos_averages_selection():
    first, second = VIBE_PHOTOS[0], VIBE_PHOTOS[1]
    vector = vibe_from_photos([first.id, second.id, "missing"])
    expected = round((first.vibe_vector.lighting + second.vibe_vector.lighting) / 2)
    assert vector.lighting == expected
    assert vibe_from_photos(["missing"]) == VibeVector()


def test_preference_prefers_profile_over_prompt():
    intent = ParsedIntent(date="Friday", time="7:00 PM", vibe_keywords=["lively"])
    profile = UserVibeProfile(id="u1", vibe_vector=VibeVector(noise_level=5))
    assert preference_vector(intent, profile).noise_level == 5
    assert preference_vector(intent, None).noise_level == 100
    assert preference_vector(None, None) is None


def test_summarize_vibe_balanced():
    assert summarize_vibe(VibeVector()) == "balanced preferences"
    assert "dim lighting" in summarize_vibe(VibeVector(lighting=10))


def test_enrich_restaurants_sorts_by_match_without_mutating_input():
    loud = make_restaurant("loud")
    quiet = make_restaurant("quiet")
    provider = ScriptedProvider(descriptions={"loud": "loud buzzy packed room", "quiet": "quiet hushed calm room"})
    preference = VibeVector(noise_level=0)

    enriched = asyncio.run(enrich_restaurants([loud, quiet], preference, provider))

    assert [r.id for r in enriched] == ["quiet", "loud"]
    assert enriched[0].vibe_match_score > enriched[1].vibe_match_score
    assert loud.vibe_match_score is None


def test_enrich_restaurants_default_score_without_preference():
    enriched = asyncio.run(enrich_restaurants([make_restaurant("a"), make_restaurant("b")], None))
    assert [r.vibe_match_score for r in enriched] == [70, 70]
    assert [r.id for r in enriched] == ["a", "b"]
    assert enriched[0].vibe_match_reason == "Great option"


def test_enrich_falls_back_to_metadata_when_description_fails():
    class BrokenDescriptions(ScriptedProvider):
        async def describe(self, restaurant):
            raise ProviderError("chat down")

    restaurant = make_restaurant("steak", categories=["Steakhouses"], price="$$$$")
    enriched = asyncio.run(enrich_restaurants([restaurant], VibeVector(), BrokenDescriptions()))
    assert enriched[0].vibe_vector == score_vibe(restaurant)


def _favorites_provider():
    dim = make_restaurant("dim", name="Dim Place")
    bright = make_restaurant("bright", name="Bright Place")
    return ScriptedProvider(
        by_term={"Dim Place": [dim], "Dim Again": [dim], "Bright Place": [bright]},
        descriptions={"dim": "dim candlelit moody", "bright": "bright airy sunny"},
    )


def test_vibe_from_favorites_averages_found_places():
    provider = _favorites_provider()
    vector, found = asyncio.run(vibe_from_favorites(["Dim Place", "Bright Place"], "Testville", provider))
    assert [r.id for r in found] == ["dim", "bright"]
    assert vector.lighting == 50
    assert provider.searches == [("Dim Place", "Testville", None), ("Bright Place", "Testville", None)]


def test_vibe_from_favorites_dedupes_and_skips_unknown_names():
    provider = _favorites_provider()
    vector, found = asyncio.run(
        vibe_from_favorites(["Dim Place", "Nowhere", "Dim Again"], "Testville", provider)
    )
    assert [r.id for r in found] == ["dim"]
    assert vector.lighting == 0
    assert vector.price_level == 50

    nothing, none_found = asyncio.run(vibe_from_favorites(["Nowhere"], "Testville", provider))
    assert nothing is None
    assert none_found == []


def test_vibe_from_favorites_stops_after_three_places():
    pool = {f"Place {i}": [make_restaurant(f"p{i}")] for i in range(5)}
    provider = ScriptedProvider(by_term=pool)
    _, found = asyncio.run(vibe_from_favorites(list(pool), "Testville", provider))
    assert [r.id for r in found] == ["p0", "p1", "p2"]
    assert len(provider.searches) == 3


def test_average_vectors_matches_photo_average():
    picked = [VIBE_PHOTOS[0].vibe_vector, VIBE_PHOTOS[1].vibe_vector]
    assert average_vectors(picked) == vibe_from_photos([VIBE_PHOTOS[0].id, VIBE_PHOTOS[1].id])
    assert average_vectors([]) == VibeVector()
