"""Straight-line distance helpers for chaining nearby stops."""

from __future__ import annotations

import math

from .contracts import Coordinates, Restaurant, WalkingLeg

EARTH_RADIUS_MILES = 3959.0
# 3 mph walking pace
MINUTES_PER_MILE = 20


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two coordinates in miles."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)

    x = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(x), math.sqrt(1 - x))


def walking_minutes(miles: float) -> int:
    return round(miles * MINUTES_PER_MILE)


def distance_between(a: Restaurant, b: Restaurant) -> float:
    return haversine_miles(a.location.coordinates, b.location.coordinates)


def walking_leg(origin: Restaurant, destination: Restaurant) -> WalkingLeg:
    miles = distance_between(origin, destination)
    return WalkingLeg(minutes=walking_minutes(miles), distance_miles=round(miles, 2))


def nearest_within(
    origin: Restaurant, candidates: list[Restaurant], radius_miles: float
) -> tuple[Restaurant, float] | None:
    """Closest candidate strictly inside ``radius_miles`` of ``origin``.

    Ties keep the provider's order. The origin itself is never returned.
    """
    best: tuple[Restaurant, float] | None = None
    for candidate in candidates:
        if candidate.id == origin.id:
            continue
        miles = distance_between(origin, candidate)
        if miles >= radius_miles:
            continue
        if best is None or miles < best[1]:
            best = (candidate, miles)
    return best


def offset_coordinates(origin: Coordinates, north_miles: float, east_miles: float) -> Coordinates:
    """Shift a coordinate by a small distance; accurate enough for city blocks."""
    d_lat = north_miles / EARTH_RADIUS_MILES
    cos_lat = math.cos(math.radians(origin.latitude)) or 1e-9
    d_lon = east_miles / (EARTH_RADIUS_MILES * cos_lat)
    return Coordinates(
        latitude=origin.latitude + math.degrees(d_lat),
        longitude=origin.longitude + math.degrees(d_lon),
    )


__all__ = [
    "distance_between",
    "haversine_miles",
    "nearest_within",
    "offset_coordinates",
    "walking_leg",
    "walking_minutes",
]
