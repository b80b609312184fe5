"""Geospatial helper functions.

Distances here are great-circle (straight-line) approximations. They are used
to order stops and to report a comparable route length, never as an ETA.
"""

from __future__ import annotations

import math
from typing import Iterable

from ..errors import InvalidCoordinate
from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def validate_coordinate(lat: float, lon: float) -> Coordinate:
    """Build a ``Coordinate``, raising ``InvalidCoordinate`` for out-of-range input."""
    if isinstance(lat, bool) or isinstance(lon, bool):
        raise InvalidCoordinate(lat, lon)
    try:
        return Coordinate(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError) as exc:
        if isinstance(exc, InvalidCoordinate):
            raise
        raise InvalidCoordinate(lat, lon) from exc


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push ``a`` a hair past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres between two coordinates."""
    if a == b:
        return 0.0
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def path_distance_km(points: Iterable[Coordinate]) -> float:
    """Sum of consecutive great-circle distances along ``points``."""
    total = 0.0
    previous: Coordinate | None = None
    for point in points:
        if previous is not None:
            total += distance(previous, point)
        previous = point
    return total
