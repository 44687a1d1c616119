"""Turns a free-text request into a booked evening: dinner, then dessert and drinks nearby."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

from .booking import select_and_book
from .contracts import (
    BookingAttempt,
    EveningPlan,
    ParsedIntent,
    PlanningEvent,
    PlanStop,
    Restaurant,
    StopType,
    UserVibeProfile,
)
from .events import EventChannel, PlanningEmitter, planning_recorder
from .geo import nearest_within, walking_leg
from .intent_parser import map_to_price, parse_intent
from .matrix import build_matrix
from .metrics import plans_total, provider_errors_total
from .providers.base import SearchProvider
from .settings import settings
from .store import PlanRepository
from .timeslots import add_hours, generate_time_slots
from .vibe import enrich_restaurants, preference_vector

logger = logging.getLogger(__name__)

COST_PER_PRICE_POINT = 30
DESSERT_TERM = "dessert bakery ice cream"
DRINKS_TERM = "cocktail bar lounge"
DESSERT_OFFSET_HOURS = 1.5
DRINKS_OFFSET_HOURS = 2

COMPLETION_MESSAGES = {
    "confirmed": "Your evening is set!",
    "partial": "Plan ready - complete bookings to confirm",
    "failed": "Couldn't find anything bookable for this request",
}


class PlannerInputError(ValueError):
    """The request cannot be planned as written (e.g. no location)."""


def estimate_cost(stops: Sequence[PlanStop], party_size: int) -> int:
    return sum(stop.restaurant.price_ordinal * COST_PER_PRICE_POINT * party_size for stop in stops)


class EveningPlanner:
    def __init__(
        self,
        provider: SearchProvider,
        emit: PlanningEmitter,
        *,
        user_profile: UserVibeProfile | None = None,
        intent_parser: Callable[[str], ParsedIntent] = parse_intent,
    ) -> None:
        self.provider = provider
        self.emit = emit
        self.user_profile = user_profile
        self.intent_parser = intent_parser

    async def create_plan(self, prompt: str, *, user_id: str = "anonymous") -> EveningPlan:
        """Run the whole pipeline. Never raises: failures end in a ``failed`` plan."""
        plan = EveningPlan(prompt=prompt, user_id=user_id)
        try:
            await self._plan(plan)
        except PlannerInputError as exc:
            self.emit("error", str(exc))
            plan.status = "failed"
        except Exception as exc:
            logger.exception("Planning failed for plan %s", plan.id)
            self.emit("error", "Something went wrong", {"detail": str(exc)})
            plan.status = "failed"
        plans_total.labels(status=plan.status).inc()
        return plan

    async def _plan(self, plan: EveningPlan) -> None:
        self.emit("intent_parsed", "Understanding your request...")
        intent = self.intent_parser(plan.prompt)
        plan.parsed_intent = intent
        if not intent.location.strip():
            raise PlannerInputError("Where should we go? Add a city or neighborhood to your request.")
        cuisine_desc = "/".join(intent.cuisines) or "dinner"
        self.emit(
            "intent_parsed",
            f"Got it: {cuisine_desc} for {intent.party_size} in {intent.location}",
            intent,
        )

        self.emit("searching_restaurants", "Finding the perfect spots...")
        candidates = await self.find_dinner_candidates(intent)
        preference = preference_vector(intent, self.user_profile)
        candidates = await enrich_restaurants(candidates, preference, self.provider)
        self.emit("restaurants_found", f"Found {len(candidates)} restaurants", candidates)

        plan.status = "booking"
        time_slots = generate_time_slots(intent.time)
        plan.matrix = await build_matrix(candidates, time_slots, intent, self.provider, self.emit)
        dinner = await select_and_book(plan.matrix, intent, self.provider, self.emit, "dinner")

        if dinner is not None:
            plan.stops.append(dinner)
            if intent.include_dessert:
                self.emit("dessert_search", "Finding dessert nearby...")
                dessert = await self.find_nearby_stop(
                    dinner.restaurant,
                    intent,
                    "dessert",
                    DESSERT_TERM,
                    settings.DESSERT_RADIUS_MILES,
                    DESSERT_OFFSET_HOURS,
                )
                if dessert is not None:
                    plan.stops.append(dessert)
            if intent.include_drinks:
                self.emit("drinks_search", "Finding drinks nearby...")
                drinks = await self.find_nearby_stop(
                    plan.stops[-1].restaurant,
                    intent,
                    "drinks",
                    DRINKS_TERM,
                    settings.DRINKS_RADIUS_MILES,
                    DRINKS_OFFSET_HOURS,
                )
                if drinks is not None:
                    plan.stops.append(drinks)

        plan.total_estimated_cost = estimate_cost(plan.stops, intent.party_size)
        status = plan.derive_status()
        self.emit("plan_complete", COMPLETION_MESSAGES[status], plan)

    async def _search(self, term: str, location: str, **kwargs: Any) -> list[Restaurant]:
        try:
            return await self.provider.search(term, location, **kwargs)
        except Exception as exc:
            logger.warning("Search for %r in %r failed: %s", term, location, exc)
            provider_errors_total.labels(operation="search").inc()
            return []

    async def find_dinner_candidates(self, intent: ParsedIntent) -> list[Restaurant]:
        term = " ".join(intent.cuisines) or "restaurant"
        price = map_to_price(intent)
        params = {"limit": settings.PLANNER_CANDIDATE_LIMIT, "sort_by": "rating"}
        results = await self._search(term, intent.location, price=price, **params)
        if not results and price:
            logger.info("No results for %r at price %s; retrying without price", term, price)
            results = await self._search(term, intent.location, **params)
        return results

    async def find_nearby_stop(
        self,
        origin: Restaurant,
        intent: ParsedIntent,
        stop_type: StopType,
        term: str,
        radius_miles: float,
        offset_hours: float,
    ) -> PlanStop | None:
        venues = await self._search(
            term, intent.location, limit=settings.NEARBY_SEARCH_LIMIT, sort_by="distance"
        )
        found = nearest_within(origin, venues, radius_miles)
        if found is None:
            logger.info("No %s venue within %.2f mi of %s", stop_type, radius_miles, origin.name)
            return None
        venue, _ = found
        leg = walking_leg(origin, venue)
        self.emit(
            "walking_route_calculated",
            f"{leg.minutes} min walk to {venue.name}",
            {"from": origin.id, "to": venue.id, "walk": leg},
        )
        time = add_hours(intent.time, offset_hours)
        return PlanStop(
            type=stop_type,
            restaurant=venue,
            time=time,
            # walk-in venues: nothing to reserve
            booking=BookingAttempt(
                restaurant_id=venue.id,
                restaurant_name=venue.name,
                requested_time=time,
                requested_date=intent.date,
                party_size=intent.party_size,
                status="confirmed",
            ),
            walking_from_previous=leg,
        )


async def plan_evening(
    prompt: str,
    provider: SearchProvider,
    *,
    user_profile: UserVibeProfile | None = None,
    repository: PlanRepository | None = None,
    user_id: str = "anonymous",
) -> tuple[EveningPlan, list[PlanningEvent]]:
    recorder = planning_recorder()
    planner = EveningPlanner(provider, recorder.emit, user_profile=user_profile)
    plan = await planner.create_plan(prompt, user_id=user_id)
    if repository is not None:
        await repository.put(plan)
    return plan, recorder.events


async def stream_plan(
    prompt: str,
    provider: SearchProvider,
    *,
    user_profile: UserVibeProfile | None = None,
    repository: PlanRepository | None = None,
    user_id: str = "anonymous",
) -> AsyncIterator[dict[str, Any]]:
    """Yield progress events as they happen, then a ``final`` frame with the plan."""
    channel: EventChannel[PlanningEvent] = EventChannel(PlanningEvent)
    planner = EveningPlanner(provider, channel.emit, user_profile=user_profile)

    async def run() -> EveningPlan:
        try:
            plan = await planner.create_plan(prompt, user_id=user_id)
            if repository is not None:
                await repository.put(plan)
            return plan
        finally:
            channel.close()

    task = asyncio.create_task(run())
    async for event in channel:
        yield event.model_dump(mode="json")
    plan = await task
    yield {"type": "final", "plan": plan.model_dump(mode="json")}


__all__ = [
    "EveningPlanner",
    "PlannerInputError",
    "estimate_cost",
    "plan_evening",
    "stream_plan",
]
