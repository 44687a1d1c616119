from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .validators import normalize_keywords

VIBE_DIMENSIONS: tuple[str, ...] = (
    "lighting",
    "noise_level",
    "crowd_vibe",
    "formality",
    "adventurousness",
    "price_level",
)

CellStatus = Literal[
    "idle",
    "checking",
    "available",
    "unavailable",
    "booking",
    "booked",
    "failed",
]
StopType = Literal["dinner", "drinks", "dessert"]
BookingStatus = Literal["pending", "confirmed", "failed", "handoff"]
PlanStatus = Literal["planning", "booking", "confirmed", "partial", "failed"]
SessionStatus = Literal["collecting", "solving", "solved", "booked"]

PlanningEventType = Literal[
    "intent_parsed",
    "searching_restaurants",
    "restaurants_found",
    "matrix_update",
    "cell_status_change",
    "booking_attempt",
    "booking_success",
    "booking_failed",
    "recovery_start",
    "vibe_match_calculated",
    "drinks_search",
    "dessert_search",
    "walking_route_calculated",
    "plan_complete",
    "error",
]
GroupEventType = Literal[
    "participant_joined",
    "constraint_added",
    "solving_started",
    "elimination_step",
    "solution_found",
    "booking_started",
    "booking_complete",
    "error",
]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Vibe ---
class VibeVector(BaseModel):
    """Six independent 0-100 atmosphere dimensions."""

    lighting: int = Field(default=50, ge=0, le=100)  # 0=dim/moody, 100=bright/airy
    noise_level: int = Field(default=50, ge=0, le=100)  # 0=quiet, 100=loud
    crowd_vibe: int = Field(default=50, ge=0, le=100)  # 0=locals, 100=scene
    formality: int = Field(default=50, ge=0, le=100)  # 0=casual, 100=formal
    adventurousness: int = Field(default=50, ge=0, le=100)  # 0=classic, 100=experimental
    price_level: int = Field(default=50, ge=0, le=100)  # 0=budget, 100=splurge

    def values(self) -> dict[str, int]:
        return {dim: getattr(self, dim) for dim in VIBE_DIMENSIONS}


class VibePhoto(BaseModel):
    id: str
    url: str
    vibe_vector: VibeVector
    description: str


class UserVibeProfile(BaseModel):
    id: str
    vibe_vector: VibeVector
    favorite_photos: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# --- Restaurants ---
class Coordinates(BaseModel):
    latitude: float = 0.0
    longitude: float = 0.0


class RestaurantLocation(BaseModel):
    address: str = ""
    city: str = ""
    neighborhood: str | None = None
    coordinates: Coordinates = Field(default_factory=Coordinates)


class Restaurant(BaseModel):
    id: str
    name: str
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    price_level: str | None = None  # "$".."$$$$"
    categories: list[str] = Field(default_factory=list)
    location: RestaurantLocation = Field(default_factory=RestaurantLocation)
    phone: str = ""
    url: str = ""
    image_url: str = ""
    is_open_now: bool | None = None
    vibe_vector: VibeVector | None = None
    vibe_match_score: int | None = Field(default=None, ge=0, le=100)
    vibe_match_reason: str | None = None

    @property
    def price_ordinal(self) -> int:
        if not self.price_level:
            return 2
        return max(1, min(4, len(self.price_level)))


# --- Intent ---
class ParsedIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    time: str
    party_size: int = Field(default=2, ge=1)
    location: str = ""
    cuisines: list[str] = Field(default_factory=list)
    vibe_keywords: list[str] = Field(default_factory=list)
    budget: int | None = None
    occasion: str | None = None
    include_drinks: bool = False
    include_dessert: bool = False
    dietary_restrictions: list[str] = Field(default_factory=list)


# --- Availability matrix ---
class AvailabilityCell(BaseModel):
    restaurant_id: str
    restaurant_name: str
    time: str
    status: CellStatus = "idle"
    vibe_match_score: int | None = None


class SelectedCell(BaseModel):
    row: int
    col: int


class AvailabilityMatrix(BaseModel):
    restaurants: list[Restaurant]
    time_slots: list[str]
    cells: list[list[AvailabilityCell]]
    selected_cell: SelectedCell | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> AvailabilityMatrix:
        if len(self.cells) != len(self.restaurants):
            raise ValueError("matrix must have one row per restaurant")
        width = len(self.time_slots)
        if any(len(row) != width for row in self.cells):
            raise ValueError("every matrix row must have one cell per time slot")
        return self

    def cell(self, row: int, col: int) -> AvailabilityCell:
        return self.cells[row][col]


# --- Booking & plan ---
class BookingAttempt(BaseModel):
    restaurant_id: str
    restaurant_name: str
    requested_time: str
    requested_date: str
    party_size: int = Field(ge=1)
    status: BookingStatus = "pending"
    confirmation_number: str | None = None
    handoff_url: str | None = None
    failure_reason: str | None = None
    attempted_at: datetime = Field(default_factory=_utcnow)


class WalkingLeg(BaseModel):
    minutes: int
    distance_miles: float


class PlanStop(BaseModel):
    type: StopType
    restaurant: Restaurant
    time: str
    booking: BookingAttempt
    walking_from_previous: WalkingLeg | None = None


class EveningPlan(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str = "anonymous"
    status: PlanStatus = "planning"
    prompt: str
    parsed_intent: ParsedIntent | None = None
    stops: list[PlanStop] = Field(default_factory=list)
    matrix: AvailabilityMatrix | None = None
    total_estimated_cost: int = 0
    created_at: datetime = Field(default_factory=_utcnow)

    def derive_status(self) -> PlanStatus:
        """Recompute ``status`` from the stops; it is never set independently."""
        if not self.stops:
            self.status = "failed"
        elif all(stop.booking.status == "confirmed" for stop in self.stops):
            self.status = "confirmed"
        else:
            self.status = "partial"
        return self.status


# --- Group sessions ---
class GroupConstraints(BaseModel):
    dietary: list[str] = Field(default_factory=list)
    cuisine_yes: list[str] = Field(default_factory=list)
    cuisine_no: list[str] = Field(default_factory=list)
    vibe_keywords: list[str] = Field(default_factory=list)
    max_price: int = Field(default=100, ge=0)  # per person
    accessibility: bool = False
    other: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize_lists(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("dietary", "cuisine_yes", "cuisine_no", "vibe_keywords"):
                if key in data:
                    data[key] = normalize_keywords(data[key], field=key)
        return data


class GroupParticipant(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    phone: str | None = None
    constraints: GroupConstraints = Field(default_factory=GroupConstraints)
    joined_at: datetime = Field(default_factory=_utcnow)


class GroupSession(BaseModel):
    id: str
    creator_id: str
    status: SessionStatus = "collecting"
    date: str
    time: str
    location: str
    participants: list[GroupParticipant] = Field(default_factory=list)
    solution: Restaurant | None = None
    booking: BookingAttempt | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    expires_at: datetime | None = None

    @model_validator(mode="after")
    def _default_expiry(self) -> GroupSession:
        if self.expires_at is None:
            self.expires_at = self.created_at + timedelta(hours=24)
        return self

    def participant(self, participant_id: str) -> GroupParticipant | None:
        return next((p for p in self.participants if p.id == participant_id), None)


class EliminationStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    constraint: str
    participant_name: str
    eliminated_count: int
    remaining_count: int


class SolverResult(BaseModel):
    candidates: list[Restaurant] = Field(default_factory=list)
    elimination_log: list[EliminationStep] = Field(default_factory=list)
    solution: Restaurant | None = None
    satisfaction_score: int = 0


# --- Trends ---
TrendSource = Literal["tiktok", "instagram", "eater", "infatuation", "nytimes", "yelp_reviews"]


class TrendSignal(BaseModel):
    source: TrendSource
    metric: str
    value: int
    change: int  # percent over the period
    period: str = "7d"
    url: str | None = None


class BookingPrediction(BaseModel):
    current_wait_days: int
    predicted_wait_days: int
    confidence: float = Field(ge=0, le=1)


class TrendingRestaurant(BaseModel):
    restaurant: Restaurant
    trend_score: int = Field(ge=0, le=100)
    signals: list[TrendSignal] = Field(default_factory=list)
    prediction: BookingPrediction
    opportunity: str
    detected_at: datetime = Field(default_factory=_utcnow)


# --- Progress events ---
class PlanningEvent(BaseModel):
    type: PlanningEventType
    message: str
    data: Any = None
    timestamp: datetime = Field(default_factory=_utcnow)


class GroupEvent(BaseModel):
    type: GroupEventType
    message: str
    data: Any = None
    timestamp: datetime = Field(default_factory=_utcnow)
