"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Callable, Iterable, TypeVar

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0

T = TypeVar("T")


def haversine_km(origin: Coordinate, target: Coordinate) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(origin.latitude), math.radians(target.latitude)
    d_phi = math.radians(target.latitude - origin.latitude)
    d_lambda = math.radians(target.longitude - origin.longitude)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def sort_by_proximity(
    origin: Coordinate,
    items: Iterable[T],
    key: Callable[[T], Coordinate],
) -> list[tuple[T, float]]:
    """Return ``(item, distance_km)`` pairs ordered nearest first.

    Ties keep their input order.
    """

    measured = [(item, haversine_km(origin, key(item))) for item in items]
    measured.sort(key=lambda pair: pair[1])
    return measured
