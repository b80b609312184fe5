"""Domain models for coordinates, stops and planned routes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Optional

from ..errors import InvalidCoordinate, InvalidRouteRequest

OrderSource = Literal["heuristic", "provider"]


@dataclass(frozen=True, slots=True)
class Coordinate:
    """WGS-84 position in degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat, lon = self.latitude, self.longitude
        if isinstance(lat, bool) or isinstance(lon, bool):
            raise InvalidCoordinate(lat, lon)
        if not (isinstance(lat, (int, float)) and isinstance(lon, (int, float))):
            raise InvalidCoordinate(lat, lon)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidCoordinate(lat, lon)
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise InvalidCoordinate(lat, lon)

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class ResolvedAddress:
    """Geocoded address with the locality fields the provider reported."""

    raw_address: str
    formatted_address: str
    coordinate: Coordinate
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @classmethod
    def from_coordinate(cls, coordinate: Coordinate, label: str | None = None) -> "ResolvedAddress":
        """Wrap a caller-supplied coordinate that needs no geocoding."""
        text = label or f"{coordinate.latitude:.6f},{coordinate.longitude:.6f}"
        return cls(raw_address=text, formatted_address=text, coordinate=coordinate)


@dataclass(frozen=True, slots=True)
class Stop:
    """A field-visit target; ``stop_id`` maps the result back to domain records."""

    stop_id: str
    address: ResolvedAddress

    @property
    def coordinate(self) -> Coordinate:
        return self.address.coordinate


@dataclass(frozen=True, slots=True)
class RouteRequest:
    origin: Coordinate
    destination: Coordinate
    stops: tuple[Stop, ...] = ()

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored as tuples.
        object.__setattr__(self, "stops", tuple(self.stops))
        seen: set[str] = set()
        for stop in self.stops:
            if stop.stop_id in seen:
                raise InvalidRouteRequest(f"Duplicate stop identifier '{stop.stop_id}' in route request.")
            seen.add(stop.stop_id)


@dataclass(frozen=True, slots=True)
class RoutePath:
    """Provider path, passed through to the presentation layer."""

    provider: str
    polyline: Optional[str]
    coordinates: tuple[tuple[float, float], ...] = ()
    distance_m: Optional[float] = None
    duration_s: Optional[float] = None


@dataclass(frozen=True, slots=True)
class RouteResult:
    ordered_stops: tuple[Stop, ...]
    total_distance_km: float
    path: Optional[RoutePath] = None
    order_source: OrderSource = "heuristic"
    origin: Optional[Coordinate] = None
    destination: Optional[Coordinate] = None
    metadata: dict = field(default_factory=dict, compare=False)
