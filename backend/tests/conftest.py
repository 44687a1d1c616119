import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
os.environ["PROVIDER_MODE"] = "simulated"
os.environ["REDIS_ENABLED"] = "false"

from backend.app.main import app  # noqa: E402
from backend.app.providers import get_search_provider  # noqa: E402
from backend.app.providers.simulator import SimulatedProvider  # noqa: E402
from backend.app.settings import settings  # noqa: E402
from backend.app.store import MemoryStore, get_store  # noqa: E402


@pytest.fixture(autouse=True)
def fast_settings():
    settings.MATRIX_CHECK_DELAY_SECONDS = 0.0
    settings.BOOKING_DELAY_SECONDS = 0.0
    settings.SIMULATOR_LATENCY_SECONDS = 0.0
    settings.SENTRY_DSN = None
    yield


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(max_entries=256)


@pytest.fixture
def provider() -> SimulatedProvider:
    return SimulatedProvider(seed=7, latency_seconds=0)


@pytest.fixture
def client(store, provider):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_search_provider] = lambda: provider
    yield TestClient(app, base_url="http://api.testserver")
    app.dependency_overrides.clear()
