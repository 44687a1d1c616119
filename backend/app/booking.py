"""Pick the best open cell and book it, falling back to the next best on failure."""

from __future__ import annotations

import asyncio
import logging

from .contracts import AvailabilityMatrix, BookingAttempt, ParsedIntent, PlanStop, SelectedCell, StopType
from .events import PlanningEmitter
from .matrix import available_cells, set_cell_status
from .metrics import booking_attempts_total, provider_errors_total
from .providers.base import BookingResult, SearchProvider
from .settings import settings

logger = logging.getLogger(__name__)


def select_best_cell(matrix: AvailabilityMatrix) -> tuple[int, int] | None:
    """Highest vibe score among available cells; the first in row-major order wins ties."""
    best: tuple[int, int] | None = None
    best_score = -1
    for row, col in available_cells(matrix):
        score = matrix.cell(row, col).vibe_match_score or 0
        if score > best_score:
            best, best_score = (row, col), score
    return best


async def _attempt(
    provider: SearchProvider, matrix: AvailabilityMatrix, row: int, col: int, intent: ParsedIntent
) -> BookingResult:
    restaurant = matrix.restaurants[row]
    try:
        return await provider.attempt_booking(
            restaurant, intent.location, intent.date, matrix.time_slots[col], intent.party_size
        )
    except Exception as exc:
        logger.warning("Booking call failed for %s: %s", restaurant.name, exc)
        provider_errors_total.labels(operation="attempt_booking").inc()
        return BookingResult(success=False, failure_reason=str(exc) or "Booking request failed")


async def select_and_book(
    matrix: AvailabilityMatrix,
    intent: ParsedIntent,
    provider: SearchProvider,
    emit: PlanningEmitter,
    stop_type: StopType = "dinner",
) -> PlanStop | None:
    """Book the best available cell, retrying on the next best until one sticks.

    Each failed cell is retired to ``unavailable`` so the loop runs at most once
    per available cell. Returns ``None`` (after an ``error`` event) when nothing
    could be booked.
    """
    while True:
        choice = select_best_cell(matrix)
        if choice is None:
            emit("error", f"No {stop_type} availability found")
            return None

        row, col = choice
        restaurant = matrix.restaurants[row]
        cell = matrix.cell(row, col)
        emit(
            "booking_attempt",
            f"Booking {restaurant.name} at {cell.time}",
            {"row": row, "col": col, "restaurant": restaurant, "time": cell.time},
        )
        set_cell_status(matrix, row, col, "booking", emit)
        if settings.BOOKING_DELAY_SECONDS > 0:
            await asyncio.sleep(settings.BOOKING_DELAY_SECONDS)

        result = await _attempt(provider, matrix, row, col, intent)
        attempt = BookingAttempt(
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            requested_time=cell.time,
            requested_date=intent.date,
            party_size=intent.party_size,
        )

        if result.success or result.requires_handoff:
            set_cell_status(matrix, row, col, "booked", emit)
            matrix.selected_cell = SelectedCell(row=row, col=col)
            if result.success:
                attempt.status = "confirmed"
                attempt.confirmation_number = result.confirmation_number
                message = f"Booked {restaurant.name} at {cell.time}"
            else:
                attempt.status = "handoff"
                attempt.handoff_url = result.handoff_url or restaurant.url or None
                message = f"{restaurant.name} needs to be booked directly"
            booking_attempts_total.labels(result=attempt.status).inc()
            emit("booking_success", message, {"row": row, "col": col, "booking": attempt})
            if result.success:
                emit(
                    "vibe_match_calculated",
                    restaurant.vibe_match_reason or f"{restaurant.name} fits the evening",
                    {
                        "restaurant_id": restaurant.id,
                        "score": restaurant.vibe_match_score,
                        "reason": restaurant.vibe_match_reason,
                    },
                )
            return PlanStop(type=stop_type, restaurant=restaurant, time=cell.time, booking=attempt)

        booking_attempts_total.labels(result="failed").inc()
        set_cell_status(matrix, row, col, "failed", emit)
        emit(
            "booking_failed",
            f"Couldn't book {restaurant.name} at {cell.time}: {result.failure_reason or 'unknown reason'}",
            {"row": row, "col": col, "reason": result.failure_reason},
        )
        set_cell_status(matrix, row, col, "unavailable", emit)
        emit("recovery_start", "Trying the next best option")


__all__ = ["select_and_book", "select_best_cell"]
