from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # human-readable console logs instead of JSON
    DEBUG: bool = False

    # CORS allow origins (comma-separated). Default empty (no cross-origin).
    CORS_ALLOW_ORIGINS: str = ""

    # Search / availability / booking provider
    PROVIDER_MODE: Literal["simulated", "yelp"] = "simulated"
    YELP_API_KEY: str | None = None
    YELP_API_BASE: str = "https://api.yelp.com/v3"
    YELP_TIMEOUT_SECONDS: float = 15.0
    YELP_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Simulator knobs. A fixed seed keeps availability reproducible per venue/slot.
    SIMULATOR_SEED: int = 7
    SIMULATOR_LATENCY_SECONDS: float = 0.0

    # Planner pacing (seconds between streamed cell checks / before booking)
    MATRIX_CHECK_DELAY_SECONDS: float = 0.0
    BOOKING_DELAY_SECONDS: float = 0.0

    PLANNER_CANDIDATE_LIMIT: int = 5
    GROUP_CANDIDATE_POOL: int = 50
    DESSERT_RADIUS_MILES: float = 0.4
    DRINKS_RADIUS_MILES: float = 0.5
    NEARBY_SEARCH_LIMIT: int = 5

    # Persistence
    GROUP_SESSION_TTL_SECONDS: int = 24 * 60 * 60
    PLAN_TTL_SECONDS: int = 7 * 24 * 60 * 60
    STORE_MAX_ENTRIES: int = 4096
    REDIS_URL: str | None = None  # e.g., "redis://localhost:6379/0"
    REDIS_ENABLED: bool = False

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def redis_configured(self) -> bool:
        return bool(self.REDIS_ENABLED and self.REDIS_URL)


settings = Settings()
