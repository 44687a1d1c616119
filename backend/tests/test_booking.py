import asyncio

from backend.app.booking import select_and_book, select_best_cell
from backend.app.contracts import ParsedIntent
from backend.app.events import planning_recorder
from backend.app.matrix import empty_matrix, set_cell_status
from backend.app.providers.base import BookingResult
from backend.tests.fakes import ScriptedProvider, make_restaurant

INTENT = ParsedIntent(date="Friday, May 1, 2026", time="7:00 PM", party_size=2, location="Testville")


def _open_matrix(restaurants, slots, closed=()):
    matrix = empty_matrix(restaurants, slots)
    for row in range(len(restaurants)):
        for col in range(len(slots)):
            set_cell_status(matrix, row, col, "checking")
            set_cell_status(matrix, row, col, "unavailable" if (row, col) in closed else "available")
    return matrix


def test_select_best_cell_prefers_score_then_row_major_order():
    matrix = _open_matrix(
        [make_restaurant("a", score=90), make_restaurant("b", score=70)], ["7:00 PM", "7:30 PM"]
    )
    assert select_best_cell(matrix) == (0, 0)

    tied = _open_matrix([make_restaurant("a", score=80), make_restaurant("b", score=80)], ["7:00 PM"], closed={(0, 0)})
    assert select_best_cell(tied) == (1, 0)


def test_select_best_cell_none_without_availability():
    matrix = _open_matrix([make_restaurant("a")], ["7:00 PM"], closed={(0, 0)})
    assert select_best_cell(matrix) is None


def test_books_highest_scoring_cell():
    matrix = _open_matrix(
        [make_restaurant("a", score=90), make_restaurant("b", score=70)], ["7:00 PM", "7:30 PM"]
    )
    recorder = planning_recorder()

    stop = asyncio.run(select_and_book(matrix, INTENT, ScriptedProvider(), recorder.emit))

    assert stop is not None
    assert stop.restaurant.id == "a"
    assert stop.time == "7:00 PM"
    assert stop.booking.status == "confirmed"
    assert stop.booking.confirmation_number == "a-1"
    assert matrix.cell(0, 0).status == "booked"
    assert matrix.selected_cell is not None
    assert (matrix.selected_cell.row, matrix.selected_cell.col) == (0, 0)
    assert "booking_success" in recorder.types


def test_failed_booking_recovers_on_next_best():
    restaurants = [make_restaurant("a", score=90), make_restaurant("b", score=70)]
    matrix = _open_matrix(restaurants, ["7:00 PM"])
    provider = ScriptedProvider(
        bookings={"a": BookingResult(success=False, failure_reason="Slot taken")}
    )
    recorder = planning_recorder()

    stop = asyncio.run(select_and_book(matrix, INTENT, provider, recorder.emit))

    assert stop is not None and stop.restaurant.id == "b"
    assert matrix.cell(0, 0).status == "unavailable"
    assert matrix.cell(1, 0).status == "booked"
    assert provider.booking_calls == [("a", "7:00 PM"), ("b", "7:00 PM")]
    types = [t for t in recorder.types if t != "cell_status_change"]
    assert types == [
        "booking_attempt",
        "booking_failed",
        "recovery_start",
        "booking_attempt",
        "booking_success",
        "vibe_match_calculated",
    ]


def test_provider_exception_counts_as_failure():
    restaurants = [make_restaurant("a", score=90), make_restaurant("b", score=70)]
    matrix = _open_matrix(restaurants, ["7:00 PM"])
    provider = ScriptedProvider(booking_errors={"a"})
    stop = asyncio.run(select_and_book(matrix, INTENT, provider, planning_recorder().emit))
    assert stop is not None and stop.restaurant.id == "b"


def test_handoff_counts_as_a_booking():
    matrix = _open_matrix([make_restaurant("a", score=90)], ["7:00 PM"])
    provider = ScriptedProvider(
        bookings={"a": BookingResult(success=False, requires_handoff=True, handoff_url="https://book.example/a")}
    )
    stop = asyncio.run(select_and_book(matrix, INTENT, provider, planning_recorder().emit))
    assert stop is not None
    assert stop.booking.status == "handoff"
    assert stop.booking.handoff_url == "https://book.example/a"
    assert matrix.selected_cell is not None


def test_all_failures_end_with_error_and_no_stop():
    matrix = _open_matrix([make_restaurant("a"), make_restaurant("b")], ["7:00 PM"])
    provider = ScriptedProvider(bookings={
        "a": BookingResult(success=False, failure_reason="full"),
        "b": BookingResult(success=False, failure_reason="full"),
    })
    recorder = planning_recorder()

    stop = asyncio.run(select_and_book(matrix, INTENT, provider, recorder.emit, "dinner"))

    assert stop is None
    assert len(provider.booking_calls) == 2
    assert recorder.events[-1].type == "error"
    assert recorder.events[-1].message == "No dinner availability found"
    assert matrix.selected_cell is None


def test_empty_matrix_books_nothing():
    matrix = empty_matrix([], [])
    recorder = planning_recorder()
    assert asyncio.run(select_and_book(matrix, INTENT, ScriptedProvider(), recorder.emit)) is None
    assert recorder.types == ["error"]
