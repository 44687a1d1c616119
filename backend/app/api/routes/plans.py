from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...contracts import EveningPlan, UserVibeProfile
from ...planner import plan_evening, stream_plan
from ...providers import SearchProvider, get_search_provider
from ...schemas import PlanRequest, PlanResponse
from ...store import PlanRepository, ProfileRepository
from ..deps import plan_repository, profile_repository
from ..sse import event_stream

router = APIRouter(tags=["plans"])


async def _resolve_profile(
    payload: PlanRequest, profiles: ProfileRepository
) -> UserVibeProfile | None:
    if payload.user_vibe_profile is not None:
        return payload.user_vibe_profile
    if payload.user_id:
        return await profiles.get(payload.user_id)
    return None


@router.post("/plan", response_model=PlanResponse)
async def create_plan(
    payload: PlanRequest,
    provider: SearchProvider = Depends(get_search_provider),
    plans: PlanRepository = Depends(plan_repository),
    profiles: ProfileRepository = Depends(profile_repository),
):
    profile = await _resolve_profile(payload, profiles)
    plan, events = await plan_evening(
        payload.prompt,
        provider,
        user_profile=profile,
        repository=plans,
        user_id=payload.user_id or "anonymous",
    )
    return PlanResponse(plan=plan, events=events)


@router.post("/plan/stream")
async def create_plan_stream(
    payload: PlanRequest,
    provider: SearchProvider = Depends(get_search_provider),
    plans: PlanRepository = Depends(plan_repository),
    profiles: ProfileRepository = Depends(profile_repository),
):
    profile = await _resolve_profile(payload, profiles)
    return event_stream(
        stream_plan(
            payload.prompt,
            provider,
            user_profile=profile,
            repository=plans,
            user_id=payload.user_id or "anonymous",
        )
    )


@router.get("/plan/{plan_id}", response_model=EveningPlan)
async def get_plan(plan_id: str, plans: PlanRepository = Depends(plan_repository)):
    plan = await plans.get(plan_id)
    if plan is None:
        raise HTTPException(404, "Plan not found")
    return plan
