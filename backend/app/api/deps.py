"""FastAPI dependency providers; tests swap these through ``app.dependency_overrides``."""

from __future__ import annotations

from fastapi import Depends

from ..groups import GroupService
from ..providers import SearchProvider, get_search_provider
from ..store import GroupSessionRepository, KeyValueStore, PlanRepository, ProfileRepository, get_store


def plan_repository(store: KeyValueStore = Depends(get_store)) -> PlanRepository:
    return PlanRepository(store)


def profile_repository(store: KeyValueStore = Depends(get_store)) -> ProfileRepository:
    return ProfileRepository(store)


def group_service(
    store: KeyValueStore = Depends(get_store),
    provider: SearchProvider = Depends(get_search_provider),
) -> GroupService:
    return GroupService(GroupSessionRepository(store), provider)
