from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from ...contracts import UserVibeProfile, VibePhoto
from ...providers import ProviderError, SearchProvider, get_search_provider
from ...schemas import VibeExtractRequest, VibeExtractResponse, VibeProfileRequest, VibeProfileResponse
from ...store import ProfileRepository
from ...vibe import VIBE_PHOTOS, summarize_vibe, vibe_from_favorites, vibe_from_photos
from ..deps import profile_repository

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "New York"

router = APIRouter(prefix="/vibe", tags=["vibe"])


@router.get("/photos", response_model=list[VibePhoto])
async def list_photos():
    return VIBE_PHOTOS


@router.get("/profile", response_model=VibeProfileResponse)
async def get_profile(
    user_id: str | None = Query(default=None, max_length=64),
    profiles: ProfileRepository = Depends(profile_repository),
):
    if not user_id:
        raise HTTPException(400, "User ID required")
    profile = await profiles.get(user_id)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return VibeProfileResponse(profile=profile, summary=summarize_vibe(profile.vibe_vector))


@router.post("/profile", response_model=VibeProfileResponse)
async def save_profile(
    payload: VibeProfileRequest, profiles: ProfileRepository = Depends(profile_repository)
):
    if not payload.user_id:
        raise HTTPException(400, "User ID required")
    if payload.vibe_vector is None and not payload.favorite_photos:
        raise HTTPException(400, "Vibe vector or favorite photos required")

    vector = payload.vibe_vector or vibe_from_photos(payload.favorite_photos)
    existing = await profiles.get(payload.user_id)
    profile = UserVibeProfile(
        id=payload.user_id,
        vibe_vector=vector,
        favorite_photos=payload.favorite_photos,
        created_at=existing.created_at if existing else datetime.now(UTC),
    )
    await profiles.put(profile)
    return VibeProfileResponse(profile=profile, summary=summarize_vibe(vector))


@router.post("/extract", response_model=VibeExtractResponse)
async def extract_vibe(
    payload: VibeExtractRequest, provider: SearchProvider = Depends(get_search_provider)
):
    if payload.photo_ids:
        vector = vibe_from_photos(payload.photo_ids)
        return VibeExtractResponse(vibe_vector=vector, source="photos", summary=summarize_vibe(vector))
    if not payload.restaurant_names:
        raise HTTPException(400, "Restaurant names or photo IDs required")

    try:
        vector, restaurants = await vibe_from_favorites(
            payload.restaurant_names, payload.location or DEFAULT_LOCATION, provider
        )
    except ProviderError as exc:
        logger.warning("Vibe extraction search failed: %s", exc)
        raise HTTPException(502, "Failed to extract vibe") from exc
    if vector is None:
        raise HTTPException(404, "No restaurants found")
    return VibeExtractResponse(
        vibe_vector=vector,
        source="restaurants",
        analyzed_restaurants=[restaurant.name for restaurant in restaurants],
        summary=summarize_vibe(vector),
    )
