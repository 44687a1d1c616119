"""Atmosphere vectors for restaurants and how well they match a diner's taste.

Restaurant vectors come from one of two deterministic heuristics: keyword
counting over a provider's free-text description, or category/price/review
metadata when no description is available. Preferences come from a saved photo
profile or, failing that, the vibe words in the parsed prompt.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from .contracts import VIBE_DIMENSIONS, ParsedIntent, Restaurant, UserVibeProfile, VibePhoto, VibeVector
from .providers.base import ProviderError

if TYPE_CHECKING:
    from .providers.base import SearchProvider

logger = logging.getLogger(__name__)

NEUTRAL = VibeVector()
DEFAULT_MATCH_SCORE = 70
DEFAULT_MATCH_REASON = "Great option"
MATCH_THRESHOLD = 20
MAX_REASONS = 3
MAX_FAVORITES = 3
POPULAR_REVIEW_COUNT = 1000
POPULARITY_BUMP = 10


def _photo(photo_id: str, description: str, **values: int) -> VibePhoto:
    return VibePhoto(
        id=photo_id,
        url=f"/images/vibe-photos/{photo_id}.jpg",
        vibe_vector=VibeVector(**values),
        description=description,
    )


VIBE_PHOTOS: list[VibePhoto] = [
    _photo("dim-romantic", "Dim candlelit dinner", lighting=15, noise_level=20, crowd_vibe=20,
           formality=60, adventurousness=40, price_level=70),
    _photo("bright-casual", "Bright casual spot", lighting=85, noise_level=60, crowd_vibe=40,
           formality=20, adventurousness=30, price_level=30),
    _photo("trendy-scene", "Trendy see-and-be-seen", lighting=40, noise_level=75, crowd_vibe=90,
           formality=50, adventurousness=70, price_level=60),
    _photo("cozy-neighborhood", "Cozy neighborhood gem", lighting=35, noise_level=40, crowd_vibe=15,
           formality=30, adventurousness=35, price_level=45),
    _photo("upscale-elegant", "Upscale fine dining", lighting=50, noise_level=25, crowd_vibe=55,
           formality=95, adventurousness=50, price_level=95),
    _photo("lively-bustling", "Lively bustling energy", lighting=70, noise_level=85, crowd_vibe=60,
           formality=25, adventurousness=55, price_level=40),
    _photo("intimate-quiet", "Intimate and quiet", lighting=25, noise_level=15, crowd_vibe=10,
           formality=55, adventurousness=45, price_level=65),
    _photo("hip-creative", "Hip creative space", lighting=55, noise_level=55, crowd_vibe=75,
           formality=20, adventurousness=85, price_level=50),
    _photo("classic-timeless", "Classic timeless elegance", lighting=45, noise_level=35, crowd_vibe=30,
           formality=70, adventurousness=15, price_level=75),
    _photo("outdoor-fresh", "Fresh outdoor dining", lighting=95, noise_level=50, crowd_vibe=45,
           formality=35, adventurousness=40, price_level=55),
    _photo("hidden-speakeasy", "Hidden speakeasy vibe", lighting=20, noise_level=45, crowd_vibe=65,
           formality=55, adventurousness=75, price_level=65),
    _photo("family-warm", "Warm family atmosphere", lighting=65, noise_level=60, crowd_vibe=25,
           formality=15, adventurousness=25, price_level=35),
]

# (low words, high words) per dimension for free text and prompt keywords
TEXT_CUES: dict[str, tuple[list[str], list[str]]] = {
    "lighting": (
        ["dim", "dark", "moody", "candlelit", "romantic", "intimate", "cozy", "low-light", "ambient"],
        ["bright", "airy", "sunny", "natural light", "open", "windows", "daylight", "well-lit"],
    ),
    "noise_level": (
        ["quiet", "peaceful", "serene", "calm", "hushed", "conversation", "soft music", "not too loud"],
        ["loud", "buzzy", "energetic", "lively", "bustling", "noisy", "vibrant", "packed", "crowded"],
    ),
    "crowd_vibe": (
        ["neighborhood", "locals", "regulars", "family", "unpretentious", "low-key", "chill", "hidden gem"],
        ["scene", "trendy", "hip", "instagram", "popular", "hot spot", "celebrities", "see and be seen"],
    ),
    "formality": (
        ["casual", "relaxed", "laid-back", "no dress code", "come as you are", "dive", "hole in the wall"],
        ["upscale", "fine dining", "elegant", "formal", "dress code", "white tablecloth",
         "sophisticated", "classy", "fancy", "swanky"],
    ),
    "adventurousness": (
        ["traditional", "classic", "authentic", "old-school", "comfort food", "familiar", "no-frills"],
        ["innovative", "creative", "experimental", "fusion", "molecular", "unique", "adventurous", "bold"],
    ),
    "price_level": (
        ["cheap", "budget", "affordable", "inexpensive", "bargain"],
        ["splurge", "expensive", "luxury", "high-end", "pricey"],
    ),
}

# (low words, high words) per dimension for provider category names
CATEGORY_CUES: dict[str, tuple[list[str], list[str]]] = {
    "lighting": (
        ["wine bar", "cocktail", "lounge", "speakeasy", "steakhouse", "jazz", "izakaya"],
        ["cafe", "coffee", "brunch", "breakfast", "bakery", "juice", "diner", "salad", "ice cream"],
    ),
    "noise_level": (
        ["tea", "wine bar", "french", "omakase", "kaiseki", "tasting menu"],
        ["sports bar", "pub", "beer", "karaoke", "dance", "tacos", "pizza", "brewer", "music"],
    ),
    "crowd_vibe": (
        ["diner", "deli", "comfort food", "barbeque", "family", "soul food", "sandwich"],
        ["cocktail", "lounge", "rooftop", "new american", "fusion", "club", "wine bar"],
    ),
    "formality": (
        ["pizza", "burger", "tacos", "food truck", "fast food", "deli", "diner", "pub", "hot dog"],
        ["french", "steakhouse", "fine dining", "omakase", "tasting menu", "seafood", "wine"],
    ),
    "adventurousness": (
        ["traditional", "american", "italian", "pizza", "burger", "diner", "steak", "comfort food"],
        ["fusion", "ethiopian", "korean", "peruvian", "vegan", "izakaya", "modern", "tapas", "molecular"],
    ),
}

DIMENSION_LABELS: dict[str, tuple[str, str]] = {
    "lighting": ("dim and moody", "bright and airy"),
    "noise_level": ("quiet and intimate", "lively and energetic"),
    "crowd_vibe": ("neighborhood feel", "trendy scene"),
    "formality": ("casual vibe", "upscale elegance"),
    "adventurousness": ("classic and familiar", "creative and bold"),
    "price_level": ("budget-friendly", "splurge-worthy"),
}


def _count(text: str, words: Iterable[str]) -> int:
    return sum(1 for word in words if word in text)


def _clamp(value: float) -> int:
    return max(0, min(100, round(value)))


def price_to_dimension(price_level: str | None) -> int:
    if not price_level:
        return 50
    return _clamp(min(len(price_level), 4) / 4 * 100)


def score_vibe(restaurant: Restaurant) -> VibeVector:
    """Deterministic vector from categories, price and review count."""
    if not restaurant.categories and not restaurant.price_level:
        return NEUTRAL.model_copy()
    text = " ".join(restaurant.categories).lower()
    values = NEUTRAL.values()
    for dim, (low_words, high_words) in CATEGORY_CUES.items():
        low = _count(text, low_words)
        high = _count(text, high_words)
        if low + high:
            # cues lean a dimension without pinning it to an extreme
            values[dim] = _clamp(50 + 40 * (high - low) / (high + low))
    values["price_level"] = price_to_dimension(restaurant.price_level)
    if restaurant.review_count > POPULAR_REVIEW_COUNT:
        values["crowd_vibe"] = _clamp(values["crowd_vibe"] + POPULARITY_BUMP)
    return VibeVector(**values)


def _vector_from_cues(text: str) -> tuple[dict[str, int], bool]:
    values = NEUTRAL.values()
    matched = False
    for dim, (low_words, high_words) in TEXT_CUES.items():
        low = _count(text, low_words)
        high = _count(text, high_words)
        if low + high:
            values[dim] = _clamp(high / (low + high) * 100)
            matched = True
    return values, matched


def vibe_from_text(text: str | None, price_level: str | None = None) -> VibeVector:
    """Vector from a free-text description; price always comes from ``price_level``."""
    values, _ = _vector_from_cues((text or "").lower())
    values["price_level"] = price_to_dimension(price_level)
    return VibeVector(**values)


def vibe_from_keywords(keywords: Sequence[str]) -> VibeVector | None:
    """Preference vector from prompt vibe words, or ``None`` when none of them map."""
    if not keywords:
        return None
    values, matched = _vector_from_cues(" ".join(keywords).lower())
    return VibeVector(**values) if matched else None


def vibe_from_photos(photo_ids: Iterable[str]) -> VibeVector:
    """Average the catalog photos the diner picked; neutral when none match."""
    wanted = set(photo_ids)
    return average_vectors([photo.vibe_vector for photo in VIBE_PHOTOS if photo.id in wanted])


def average_vectors(vectors: Sequence[VibeVector]) -> VibeVector:
    if not vectors:
        return NEUTRAL.model_copy()
    return VibeVector(
        **{
            dim: _clamp(sum(getattr(vector, dim) for vector in vectors) / len(vectors))
            for dim in VIBE_DIMENSIONS
        }
    )


def match_score(user: VibeVector, restaurant: VibeVector) -> tuple[int, list[str]]:
    """Similarity 0-100 plus up to three labels for dimensions that line up."""
    user_values = user.values()
    rest_values = restaurant.values()
    diffs = {dim: abs(user_values[dim] - rest_values[dim]) for dim in VIBE_DIMENSIONS}
    max_diff = len(VIBE_DIMENSIONS) * 100
    score = round(100 - sum(diffs.values()) / max_diff * 100)

    reasons: list[str] = []
    for dim in VIBE_DIMENSIONS:
        if diffs[dim] >= MATCH_THRESHOLD:
            continue
        low_label, high_label = DIMENSION_LABELS[dim]
        reasons.append(high_label if rest_values[dim] > 50 else low_label)
        if len(reasons) == MAX_REASONS:
            break
    return score, reasons


def explain_match(name: str, user: VibeVector, restaurant: VibeVector) -> str:
    _, reasons = match_score(user, restaurant)
    if not reasons:
        return f"{name} offers a unique experience"
    if len(reasons) == 1:
        return f"{reasons[0]} - just like your favorites"
    return f"{', '.join(reasons[:-1])} and {reasons[-1]}"


def summarize_vibe(vector: VibeVector) -> str:
    parts: list[str] = []
    if vector.lighting < 40:
        parts.append("dim lighting")
    elif vector.lighting > 60:
        parts.append("bright spaces")
    if vector.noise_level < 40:
        parts.append("quiet atmosphere")
    elif vector.noise_level > 60:
        parts.append("lively energy")
    if vector.crowd_vibe < 40:
        parts.append("neighborhood feel")
    elif vector.crowd_vibe > 60:
        parts.append("trendy scenes")
    if vector.formality > 60:
        parts.append("upscale elegance")
    elif vector.formality < 40:
        parts.append("casual vibe")
    if vector.adventurousness > 60:
        parts.append("bold flavors")
    elif vector.adventurousness < 40:
        parts.append("familiar classics")
    return ", ".join(parts) or "balanced preferences"


def preference_vector(
    intent: ParsedIntent | None, profile: UserVibeProfile | None = None
) -> VibeVector | None:
    if profile is not None:
        return profile.vibe_vector
    if intent is None:
        return None
    return vibe_from_keywords(intent.vibe_keywords)


async def describe_vibe(restaurant: Restaurant, provider: SearchProvider | None) -> VibeVector:
    """Prefer the provider's description; fall back to metadata on silence or failure."""
    if provider is not None:
        try:
            text = await provider.describe(restaurant)
        except ProviderError as exc:
            logger.warning("Vibe description failed for %s: %s", restaurant.id, exc)
            text = ""
        if text and text.strip():
            return vibe_from_text(text, restaurant.price_level)
    return score_vibe(restaurant)


async def enrich_restaurants(
    restaurants: Sequence[Restaurant],
    preference: VibeVector | None,
    provider: SearchProvider | None = None,
) -> list[Restaurant]:
    """Attach vector, match score and reason to each restaurant, best match first.

    Returns new ``Restaurant`` objects; equal scores keep the incoming order.
    """
    enriched: list[Restaurant] = []
    for restaurant in restaurants:
        vector = await describe_vibe(restaurant, provider)
        if preference is None:
            score, reason = DEFAULT_MATCH_SCORE, DEFAULT_MATCH_REASON
        else:
            score, _ = match_score(preference, vector)
            reason = explain_match(restaurant.name, preference, vector)
        enriched.append(
            restaurant.model_copy(
                update={"vibe_vector": vector, "vibe_match_score": score, "vibe_match_reason": reason}
            )
        )
    enriched.sort(key=lambda r: r.vibe_match_score or 0, reverse=True)
    return enriched


async def vibe_from_favorites(
    names: Sequence[str],
    location: str,
    provider: SearchProvider,
) -> tuple[VibeVector | None, list[Restaurant]]:
    """Average the vibe of a diner's favourite places, looked up by name.

    Each name takes its best search hit; the first ``MAX_FAVORITES`` distinct
    venues found are analyzed. Provider errors propagate to the caller.
    """
    found: dict[str, Restaurant] = {}
    for name in names:
        if len(found) >= MAX_FAVORITES:
            break
        hits = await provider.search(name, location, limit=1)
        if hits:
            found.setdefault(hits[0].id, hits[0])
    if not found:
        return None, []
    restaurants = list(found.values())
    vectors = [await describe_vibe(restaurant, provider) for restaurant in restaurants]
    return average_vectors(vectors), restaurants


__all__ = [
    "VIBE_PHOTOS",
    "average_vectors",
    "enrich_restaurants",
    "explain_match",
    "match_score",
    "preference_vector",
    "score_vibe",
    "summarize_vibe",
    "vibe_from_favorites",
    "vibe_from_keywords",
    "vibe_from_photos",
    "vibe_from_text",
]
