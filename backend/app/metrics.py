"""Prometheus metrics for monitoring and observability."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# ==============================================================================
# APPLICATION INFO
# ==============================================================================

app_info = Info("evening_planner", "Evening planner API information")
app_info.info({"version": "0.1.0", "service": "evening-planner-api"})

# ==============================================================================
# HTTP METRICS
# ==============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method", "endpoint"],
)

# ==============================================================================
# PLANNING METRICS
# ==============================================================================

plans_total = Counter(
    "evening_plans_total",
    "Evening plans produced, by final status",
    ["status"],
)

availability_checks_total = Counter(
    "availability_checks_total",
    "Matrix cell availability checks, by outcome",
    ["result"],  # available, unavailable, error
)

booking_attempts_total = Counter(
    "booking_attempts_total",
    "Booking attempts issued by the selector, by outcome",
    ["result"],  # confirmed, handoff, failed
)

provider_errors_total = Counter(
    "provider_errors_total",
    "Upstream provider calls that raised",
    ["operation"],
)

# ==============================================================================
# GROUP METRICS
# ==============================================================================

group_solves_total = Counter(
    "group_solves_total",
    "Group constraint solver runs, by outcome",
    ["result"],  # solved, compromise, no_candidates
)

group_participants = Histogram(
    "group_participants",
    "Participants per solved group session",
    buckets=(1, 2, 3, 4, 6, 8, 12, 20),
)


@lru_cache(maxsize=2048)
def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path to reduce cardinality.

    Examples:
        /group/3fa85f64/join -> /group/{id}/join
        /plans/550e8400-e29b-41d4-a716-446655440000 -> /plans/{id}
    """
    path = re.sub(
        r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "/{id}",
        path,
        flags=re.IGNORECASE,
    )
    # short hex session ids
    path = re.sub(r"/(?=[0-9a-f]*\d)[0-9a-f]{8}(?=/|$)", "/{id}", path)
    path = re.sub(r"/\d+", "/{id}", path)
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = normalize_endpoint(request.url.path)
        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            duration = time.time() - start_time
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "get_metrics",
    "normalize_endpoint",
    "plans_total",
    "availability_checks_total",
    "booking_attempts_total",
    "provider_errors_total",
    "group_solves_total",
    "group_participants",
]
