import pytest

from backend.app.contracts import Coordinates
from backend.app.geo import haversine_miles, nearest_within, offset_coordinates, walking_leg
from backend.app.timeslots import DEFAULT_SLOTS, add_hours, generate_time_slots, parse_clock
from backend.tests.fakes import make_restaurant


@pytest.mark.parametrize(
    ("value", "expected"),
    [("7:30 PM", (19, 30)), ("7pm", (19, 0)), ("12:00 AM", (0, 0)), ("12:15 PM", (12, 15)), ("noon", None)],
)
def test_parse_clock(value, expected):
    assert parse_clock(value) == expected


def test_slots_surround_requested_time():
    assert generate_time_slots("7:00 PM") == [
        "6:00 PM",
        "6:30 PM",
        "7:00 PM",
        "7:30 PM",
        "8:00 PM",
        "8:30 PM",
    ]


def test_slots_clip_to_dinner_window():
    slots = generate_time_slots("10:00 PM")
    assert slots[0] == "9:00 PM"
    assert slots[-1] == "10:30 PM"
    assert len(slots) == 4


def test_slots_fall_back_when_unparseable_or_outside_dinner():
    assert generate_time_slots("whenever") == DEFAULT_SLOTS
    assert generate_time_slots("9:00 AM") == DEFAULT_SLOTS


def test_add_hours_handles_fractions_and_midnight():
    assert add_hours("7:00 PM", 1.5) == "8:30 PM"
    assert add_hours("11:30 PM", 2) == "1:30 AM"
    assert add_hours("late", 2) == "late"


def test_haversine_zero_and_known_distance():
    origin = Coordinates(latitude=40.0, longitude=-74.0)
    assert haversine_miles(origin, origin) == 0
    shifted = offset_coordinates(origin, 1.0, 0.0)
    assert haversine_miles(origin, shifted) == pytest.approx(1.0, rel=1e-3)


def test_nearest_within_skips_origin_and_far_venues():
    origin = make_restaurant("origin", lat=40.0, lon=-74.0)
    near = make_restaurant("near", lat=40.003, lon=-74.0)
    nearer = make_restaurant("nearer", lat=40.001, lon=-74.0)
    far = make_restaurant("far", lat=40.1, lon=-74.0)

    found = nearest_within(origin, [origin, far, near, nearer], 0.5)
    assert found is not None and found[0].id == "nearer"
    assert nearest_within(origin, [origin, far], 0.5) is None


def test_walking_leg_uses_three_mph():
    origin = make_restaurant("a", lat=40.0, lon=-74.0)
    shifted = offset_coordinates(origin.location.coordinates, 0.3, 0.0)
    destination = make_restaurant("b", lat=shifted.latitude, lon=shifted.longitude)
    leg = walking_leg(origin, destination)
    assert leg.minutes == 6
    assert leg.distance_miles == pytest.approx(0.3, abs=0.01)
