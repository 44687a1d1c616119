from __future__ import annotations

from functools import lru_cache

from ..settings import settings
from .base import SearchProvider
from .simulator import SimulatedProvider
from .yelp import YelpProvider


@lru_cache(maxsize=1)
def get_search_provider() -> SearchProvider:
    mode = (settings.PROVIDER_MODE or "simulated").lower()

    if mode == "simulated":
        return SimulatedProvider()

    if mode == "yelp":
        return YelpProvider()

    raise RuntimeError(
        f"Unsupported PROVIDER_MODE '{settings.PROVIDER_MODE}'. Set PROVIDER_MODE=simulated for the demo."
    )


async def close_search_provider() -> None:
    if get_search_provider.cache_info().currsize:
        await get_search_provider().aclose()
        get_search_provider.cache_clear()
