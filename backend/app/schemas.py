from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .contracts import (
    EveningPlan,
    GroupConstraints,
    GroupSession,
    PlanningEvent,
    TrendingRestaurant,
    UserVibeProfile,
    VibeVector,
)
from .validators import normalize_display_name, normalize_phone, normalize_prompt


class PlanRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=600)
    user_vibe_profile: UserVibeProfile | None = None
    user_id: str | None = Field(default=None, max_length=64)

    @field_validator("prompt")
    @classmethod
    def _prompt(cls, value: str) -> str:
        return normalize_prompt(value)


class PlanResponse(BaseModel):
    plan: EveningPlan
    events: list[PlanningEvent]


class BookRequest(BaseModel):
    """Direct booking request; every field is required but checked by the route (400)."""

    restaurant_name: str | None = None
    location: str | None = None
    date: str | None = None
    time: str | None = None
    party_size: int | None = Field(default=None, ge=1, le=50)

    def missing_fields(self) -> list[str]:
        missing: list[str] = []
        for name in ("restaurant_name", "location", "date", "time", "party_size"):
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing


class BookResponse(BaseModel):
    success: bool
    available: bool
    message: str = ""
    alternative_times: list[str] = Field(default_factory=list)
    confirmation_number: str | None = None
    requires_handoff: bool = False
    handoff_url: str | None = None


class GroupCreateRequest(BaseModel):
    creator_name: str | None = None
    date: str | None = None
    time: str | None = None
    location: str | None = None
    phone: str | None = None
    constraints: GroupConstraints | None = None

    @field_validator("creator_name")
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_display_name(value, field="creator_name")

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str | None) -> str | None:
        return normalize_phone(value)


class GroupCreateResponse(BaseModel):
    session_id: str
    creator_id: str
    join_url: str
    session: GroupSession


class GroupJoinRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    constraints: GroupConstraints | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_display_name(value)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str | None) -> str | None:
        return normalize_phone(value)


class GroupJoinResponse(BaseModel):
    participant_id: str
    session: GroupSession


class ConstraintsUpdateRequest(BaseModel):
    participant_id: str
    constraints: GroupConstraints


class ConstraintsUpdateResponse(BaseModel):
    success: bool = True
    session: GroupSession


class VibeProfileRequest(BaseModel):
    user_id: str | None = Field(default=None, max_length=64)
    vibe_vector: VibeVector | None = None
    favorite_photos: list[str] = Field(default_factory=list, max_length=24)


class VibeProfileResponse(BaseModel):
    profile: UserVibeProfile
    summary: str


class VibeExtractRequest(BaseModel):
    restaurant_names: list[str] = Field(default_factory=list, max_length=10)
    photo_ids: list[str] = Field(default_factory=list, max_length=24)
    location: str | None = Field(default=None, max_length=120)

    @field_validator("restaurant_names")
    @classmethod
    def _names(cls, value: list[str]) -> list[str]:
        return [normalize_display_name(name, field="restaurant name") for name in value if name.strip()]


class VibeExtractResponse(BaseModel):
    vibe_vector: VibeVector
    source: Literal["photos", "restaurants"]
    analyzed_restaurants: list[str] = Field(default_factory=list)
    summary: str


class TrendsResponse(BaseModel):
    trending: list[TrendingRestaurant]
