"""Serializers for planned routes."""

from __future__ import annotations

import csv
import io
from typing import Any

from ...models.domain import Coordinate, ResolvedAddress, RoutePath, RouteResult, Stop
from ..geospatial import distance


def resolved_address_to_json(address: ResolvedAddress) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "rawAddress": address.raw_address,
        "formattedAddress": address.formatted_address,
        "latitude": address.coordinate.latitude,
        "longitude": address.coordinate.longitude,
    }
    # Missing locality fields are omitted rather than emitted as null.
    if address.city is not None:
        payload["city"] = address.city
    if address.state is not None:
        payload["state"] = address.state
    if address.zip_code is not None:
        payload["zipCode"] = address.zip_code
    return payload


def _coordinate_to_json(point: Coordinate) -> dict[str, float]:
    return {"latitude": point.latitude, "longitude": point.longitude}


def _stop_to_json(stop: Stop, sequence: int) -> dict[str, Any]:
    return {"stopId": stop.stop_id, "sequence": sequence, **resolved_address_to_json(stop.address)}


def _path_to_json(path: RoutePath) -> dict[str, Any]:
    return {
        "provider": path.provider,
        "polyline": path.polyline,
        "coordinates": [[lat, lon] for lat, lon in path.coordinates],
        "distanceMeters": path.distance_m,
        "durationSeconds": path.duration_s,
    }


def route_result_to_json(result: RouteResult) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "orderedStops": [_stop_to_json(stop, index) for index, stop in enumerate(result.ordered_stops, start=1)],
        "totalDistanceKm": result.total_distance_km,
        "orderSource": result.order_source,
    }
    if result.origin is not None:
        payload["origin"] = _coordinate_to_json(result.origin)
    if result.destination is not None:
        payload["destination"] = _coordinate_to_json(result.destination)
    if result.path is not None:
        payload["path"] = _path_to_json(result.path)
    if "provider" in result.metadata:
        payload["provider"] = result.metadata["provider"]
    if result.metadata.get("no_viable_route"):
        payload["noViableRoute"] = True
    if "directions_error" in result.metadata:
        payload["directionsError"] = result.metadata["directions_error"]
    return payload


def route_result_to_csv(result: RouteResult) -> str:
    """One row per stop with the leg distance from the previous point."""
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "stop_id",
        "formatted_address",
        "latitude",
        "longitude",
        "distance_from_prev_km",
        "total_distance_km",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    previous = result.origin
    for sequence, stop in enumerate(result.ordered_stops, start=1):
        leg_km = distance(previous, stop.coordinate) if previous is not None else 0.0
        writer.writerow(
            {
                "sequence": sequence,
                "stop_id": stop.stop_id,
                "formatted_address": stop.address.formatted_address,
                "latitude": stop.coordinate.latitude,
                "longitude": stop.coordinate.longitude,
                "distance_from_prev_km": round(leg_km, 3),
                "total_distance_km": round(result.total_distance_km, 3),
            }
        )
        previous = stop.coordinate
    return buffer.getvalue()
