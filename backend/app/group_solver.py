"""Pick one restaurant that a whole group can live with.

Each participant's constraints turn into a per-restaurant penalty (or bonus)
that is added to the candidate's running score. Addition commutes, so the
winner never depends on the order participants joined, and re-running the
solver on the same session always lands on the same answer.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from .contracts import EliminationStep, GroupConstraints, GroupParticipant, GroupSession, Restaurant, SolverResult
from .events import GroupEmitter
from .metrics import group_participants, group_solves_total, provider_errors_total
from .providers.base import SearchProvider
from .settings import settings

logger = logging.getLogger(__name__)

BASE_SCORE = 100
DIETARY_PENALTY = 30
EXCLUDED_CUISINE_PENALTY = 50
OVER_BUDGET_PENALTY = 20
DESIRED_CUISINE_BONUS = 15
DOLLARS_PER_PRICE_POINT = 25
MAX_CANDIDATES = 5

# restaurant category/name fragments that suggest a dietary need can be met
DIETARY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "vegetarian": (
        "vegetarian", "vegan", "indian", "thai", "salad", "mediterranean",
        "middle eastern", "asian", "japanese", "chinese", "mexican",
    ),
    "vegan": ("vegan", "vegetarian", "salad", "juice", "smoothie"),
    "gluten-free": ("gluten-free", "gluten free", "salad", "mexican", "steakhouse", "seafood"),
    "halal": ("halal", "middle eastern", "moroccan", "turkish", "mediterranean", "indian", "pakistani"),
    "kosher": ("kosher", "jewish", "deli"),
}
DIETARY_ALIASES = {"gluten free": "gluten-free", "dairy free": "dairy-free", "nut free": "nut-free"}


def _haystack(restaurant: Restaurant) -> tuple[str, str]:
    return " ".join(restaurant.categories).lower(), restaurant.name.lower()


def matches_dietary(restaurant: Restaurant, need: str) -> bool:
    key = DIETARY_ALIASES.get(need.lower(), need.lower())
    keywords = DIETARY_KEYWORDS.get(key, (key,))
    categories, name = _haystack(restaurant)
    return any(k in categories or k in name for k in keywords)


def serves_cuisine(restaurant: Restaurant, cuisine: str) -> bool:
    cuisine = cuisine.lower()
    return any(cuisine in category.lower() for category in restaurant.categories)


def price_ceiling(max_price: int) -> int:
    """Per-person budget in dollars -> highest acceptable "$" count."""
    return math.ceil(max_price / DOLLARS_PER_PRICE_POINT)


def participant_penalty(restaurant: Restaurant, constraints: GroupConstraints) -> tuple[int, list[str]]:
    """Net penalty (negative for a net bonus) one participant assigns to a restaurant."""
    penalty = 0
    reasons: list[str] = []
    contested = set(constraints.cuisine_yes) & set(constraints.cuisine_no)

    for need in constraints.dietary:
        if not matches_dietary(restaurant, need):
            penalty += DIETARY_PENALTY
            reasons.append(f"no {need} options")

    for cuisine in constraints.cuisine_no:
        if cuisine not in contested and serves_cuisine(restaurant, cuisine):
            penalty += EXCLUDED_CUISINE_PENALTY
            reasons.append(f"serves {cuisine}")

    if constraints.max_price and restaurant.price_ordinal > price_ceiling(constraints.max_price):
        penalty += OVER_BUDGET_PENALTY
        reasons.append("over budget")

    for cuisine in constraints.cuisine_yes:
        if cuisine not in contested and serves_cuisine(restaurant, cuisine):
            penalty -= DESIRED_CUISINE_BONUS

    return penalty, reasons


def summarize_constraints(constraints: GroupConstraints) -> str:
    parts: list[str] = []
    if constraints.dietary:
        parts.append(", ".join(constraints.dietary))
    if constraints.cuisine_no:
        parts.append(f"no {'/'.join(constraints.cuisine_no)}")
    if constraints.cuisine_yes:
        parts.append(f"wants {'/'.join(constraints.cuisine_yes)}")
    if constraints.max_price:
        parts.append(f"max ${constraints.max_price}pp")
    if constraints.accessibility:
        parts.append("accessible")
    return ", ".join(parts) or "flexible"


@dataclass(slots=True)
class ScoredCandidate:
    restaurant: Restaurant
    score: int = BASE_SCORE
    penalties: list[str] = field(default_factory=list)

    def rank_key(self) -> tuple[int, float, int, str]:
        return (-self.score, -self.restaurant.rating, -self.restaurant.review_count, self.restaurant.id)


class GroupConstraintSolver:
    """Stateless: everything is derived from the session passed to ``solve``."""

    def __init__(self, provider: SearchProvider, emit: GroupEmitter) -> None:
        self.provider = provider
        self.emit = emit

    async def _candidates(self, location: str) -> list[Restaurant] | None:
        try:
            return await self.provider.search(
                "restaurant", location, limit=settings.GROUP_CANDIDATE_POOL
            )
        except Exception as exc:
            logger.warning("Group candidate search in %r failed: %s", location, exc)
            provider_errors_total.labels(operation="search").inc()
            return None

    def _apply(self, scored: list[ScoredCandidate], participant: GroupParticipant) -> EliminationStep:
        affected = 0
        for item in scored:
            penalty, reasons = participant_penalty(item.restaurant, participant.constraints)
            item.score -= penalty
            if penalty > 0:
                affected += 1
                item.penalties.extend(reasons)
        remaining = sum(1 for item in scored if item.score > 0)
        step = EliminationStep(
            constraint=summarize_constraints(participant.constraints),
            participant_name=participant.name,
            eliminated_count=affected,
            remaining_count=remaining,
        )
        self.emit(
            "elimination_step",
            f"{participant.name}'s preferences: {affected} restaurants scored lower",
            {"participant": participant.name, "eliminated": affected, "remaining": remaining},
        )
        return step

    async def solve(self, session: GroupSession) -> SolverResult:
        self.emit(
            "solving_started",
            f"Finding a place that works for all {len(session.participants)} people...",
        )
        group_participants.observe(len(session.participants))

        candidates = await self._candidates(session.location)
        if candidates is None:
            self.emit("solution_found", "Could not search restaurants right now.", {"solution": None})
            group_solves_total.labels(result="no_candidates").inc()
            return SolverResult()
        if not candidates:
            self.emit(
                "solution_found",
                f"No restaurants found in {session.location}. Try a different location.",
                {"solution": None},
            )
            group_solves_total.labels(result="no_candidates").inc()
            return SolverResult()

        self.emit(
            "elimination_step",
            f"Starting with {len(candidates)} restaurants in {session.location}",
            {"remaining": len(candidates)},
        )
        scored = [ScoredCandidate(restaurant=r) for r in candidates]
        log = [self._apply(scored, participant) for participant in session.participants]

        scored.sort(key=ScoredCandidate.rank_key)
        # all-negative pools still yield the least-bad options
        viable = [item for item in scored if item.score > 0] or scored[:MAX_CANDIDATES]
        best = viable[0]
        solution = best.restaurant
        satisfaction = max(0, min(100, best.score))
        self.emit(
            "solution_found",
            f"Found it: {solution.name} works for everyone!",
            {"solution": solution, "satisfaction_score": satisfaction},
        )
        group_solves_total.labels(result="solved" if best.score > 0 else "compromise").inc()

        return SolverResult(
            candidates=[item.restaurant for item in viable[:MAX_CANDIDATES]],
            elimination_log=log,
            solution=solution,
            satisfaction_score=satisfaction,
        )


__all__ = [
    "DIETARY_KEYWORDS",
    "GroupConstraintSolver",
    "matches_dietary",
    "participant_penalty",
    "price_ceiling",
    "summarize_constraints",
]
