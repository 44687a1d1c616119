from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...providers import SearchProvider, get_search_provider
from ...schemas import TrendsResponse
from ...trends import detect_trending

router = APIRouter(tags=["trends"])


@router.get("/trends", response_model=TrendsResponse)
async def list_trends(
    location: str = Query(default="New York", min_length=1, max_length=120),
    limit: int = Query(default=10, ge=1, le=50),
    provider: SearchProvider = Depends(get_search_provider),
):
    return TrendsResponse(trending=await detect_trending(provider, location, limit))
