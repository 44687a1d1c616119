from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .api.routes import bookings as bookings_routes
from .api.routes import groups as groups_routes
from .api.routes import plans as plans_routes
from .api.routes import trends as trends_routes
from .api.routes import vibe as vibe_routes
from .logging_config import SERVICE_NAME, SERVICE_VERSION, configure_structlog, get_logger
from .metrics import PrometheusMiddleware, app_info, get_metrics
from .providers import close_search_provider
from .settings import settings
from .store import KeyValueStore, RedisStore, get_store
from .utils import add_cors, add_request_id_tracing, add_security_headers

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"{SERVICE_NAME}@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app_info.info({"version": SERVICE_VERSION, "provider_mode": settings.PROVIDER_MODE})
    logger.info("Starting up", provider_mode=settings.PROVIDER_MODE)
    yield
    await close_search_provider()
    store = get_store()
    if isinstance(store, RedisStore):
        await store.aclose()
    logger.info("Shut down")


app = FastAPI(
    title="Evening Planner API",
    version=SERVICE_VERSION,
    description="Plans and books a night out: dinner, dessert and drinks, solo or as a group",
    lifespan=lifespan,
)
add_cors(app)
add_security_headers(app)
add_request_id_tracing(app)
app.add_middleware(PrometheusMiddleware)

app.include_router(plans_routes.router)
app.include_router(bookings_routes.router)
app.include_router(groups_routes.router)
app.include_router(trends_routes.router)
app.include_router(vibe_routes.router)


@app.get("/health")
async def health(store: KeyValueStore = Depends(get_store)):
    """Return service health including the persistence backend."""
    checks: dict[str, dict[str, str]] = {"provider": {"status": "ok", "mode": settings.PROVIDER_MODE}}
    if isinstance(store, RedisStore):
        try:
            await store.client.ping()
            checks["store"] = {"status": "ok", "backend": "redis"}
        except Exception as exc:
            logger.warning("Redis health check failed", error=str(exc))
            checks["store"] = {"status": "error", "backend": "redis"}
    else:
        checks["store"] = {"status": "ok", "backend": "memory"}

    healthy = all(check["status"] == "ok" for check in checks.values())
    body = {
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }
    return JSONResponse(content=body, status_code=200 if healthy else 503)


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics."""
    try:
        return get_metrics()
    except Exception:  # pragma: no cover - defensive path
        logger.exception("Metrics export failed")
        raise HTTPException(status_code=503, detail="metrics unavailable")
