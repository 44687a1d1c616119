"""Restaurant x time-slot availability grid, checked cell by cell."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from .contracts import AvailabilityCell, AvailabilityMatrix, CellStatus, ParsedIntent, Restaurant
from .events import PlanningEmitter
from .metrics import availability_checks_total, provider_errors_total
from .providers.base import SearchProvider
from .settings import settings

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "idle": frozenset({"checking"}),
    "checking": frozenset({"available", "unavailable"}),
    "available": frozenset({"booking"}),
    "booking": frozenset({"booked", "failed"}),
    "failed": frozenset({"unavailable"}),
    "unavailable": frozenset(),
    "booked": frozenset(),
}


class InvalidCellTransition(RuntimeError):
    def __init__(self, row: int, col: int, current: str, target: str) -> None:
        super().__init__(f"cell ({row}, {col}) cannot move from {current} to {target}")
        self.row = row
        self.col = col
        self.current = current
        self.target = target


def empty_matrix(restaurants: Sequence[Restaurant], time_slots: Sequence[str]) -> AvailabilityMatrix:
    return AvailabilityMatrix(
        restaurants=list(restaurants),
        time_slots=list(time_slots),
        cells=[
            [
                AvailabilityCell(
                    restaurant_id=restaurant.id,
                    restaurant_name=restaurant.name,
                    time=slot,
                    vibe_match_score=restaurant.vibe_match_score,
                )
                for slot in time_slots
            ]
            for restaurant in restaurants
        ],
    )


def set_cell_status(
    matrix: AvailabilityMatrix,
    row: int,
    col: int,
    status: CellStatus,
    emit: PlanningEmitter | None = None,
) -> AvailabilityCell:
    cell = matrix.cell(row, col)
    if status not in ALLOWED_TRANSITIONS[cell.status]:
        raise InvalidCellTransition(row, col, cell.status, status)
    cell.status = status
    if emit is not None:
        emit(
            "cell_status_change",
            f"{cell.restaurant_name} at {cell.time}: {status}",
            {"row": row, "col": col, "status": status, "cell": cell},
        )
    return cell


def available_cells(matrix: AvailabilityMatrix) -> list[tuple[int, int]]:
    return [
        (row, col)
        for row, cells in enumerate(matrix.cells)
        for col, cell in enumerate(cells)
        if cell.status == "available"
    ]


async def build_matrix(
    restaurants: Sequence[Restaurant],
    time_slots: Sequence[str],
    intent: ParsedIntent,
    provider: SearchProvider,
    emit: PlanningEmitter,
) -> AvailabilityMatrix:
    """Check every cell in row-major order; a failed check reads as unavailable."""
    matrix = empty_matrix(restaurants, time_slots)
    emit("matrix_update", "Checking availability", {"matrix": matrix})

    for row, restaurant in enumerate(matrix.restaurants):
        for col, slot in enumerate(matrix.time_slots):
            set_cell_status(matrix, row, col, "checking", emit)
            if settings.MATRIX_CHECK_DELAY_SECONDS > 0:
                await asyncio.sleep(settings.MATRIX_CHECK_DELAY_SECONDS)
            try:
                result = await provider.check_availability(
                    restaurant, intent.location, intent.date, slot, intent.party_size
                )
                available = result.available
            except Exception as exc:
                logger.warning("Availability check failed for %s at %s: %s", restaurant.name, slot, exc)
                provider_errors_total.labels(operation="check_availability").inc()
                available = False
            outcome: CellStatus = "available" if available else "unavailable"
            availability_checks_total.labels(result=outcome).inc()
            set_cell_status(matrix, row, col, outcome, emit)

    return matrix


__all__ = [
    "ALLOWED_TRANSITIONS",
    "InvalidCellTransition",
    "available_cells",
    "build_matrix",
    "empty_matrix",
    "set_cell_status",
]
