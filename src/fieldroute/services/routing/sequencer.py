"""Stop sequencing heuristics.

The routing provider is preferred for the final visit order; this module is
the deterministic local fallback. It solves an open-path TSP with fixed
endpoints: origin and destination bound the route but are not permuted.

Nearest neighbour is O(n^2) and field routes hold tens of stops, so an
optional 2-opt pass on top stays cheap.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from ...errors import InvalidRouteRequest
from ...models.domain import Coordinate, OrderSource, RoutePath, RouteRequest, RouteResult, Stop
from ..geospatial import distance, path_distance_km

logger = logging.getLogger(__name__)

# Minimum gain (km) for a 2-opt move; avoids cycling on float noise.
_IMPROVEMENT_EPSILON_KM = 1e-9


def route_distance_km(origin: Coordinate, stops: Sequence[Stop], destination: Coordinate) -> float:
    """Great-circle length of origin -> stops -> destination."""
    return path_distance_km([origin, *(stop.coordinate for stop in stops), destination])


def nearest_neighbor_order(origin: Coordinate, stops: Sequence[Stop]) -> list[Stop]:
    """Greedy order from ``origin``; ties go to the lowest stop id."""
    unvisited = sorted(stops, key=lambda stop: stop.stop_id)
    ordered: list[Stop] = []
    current = origin
    while unvisited:
        best_index = 0
        best_distance = distance(current, unvisited[0].coordinate)
        for index in range(1, len(unvisited)):
            candidate_distance = distance(current, unvisited[index].coordinate)
            # Strict comparison keeps the earlier (lower id) stop on ties.
            if candidate_distance < best_distance:
                best_index = index
                best_distance = candidate_distance
        chosen = unvisited.pop(best_index)
        ordered.append(chosen)
        current = chosen.coordinate
    return ordered


def two_opt(
    origin: Coordinate,
    stops: Sequence[Stop],
    destination: Coordinate,
    max_passes: int = 50,
) -> list[Stop]:
    """Improve an open path with fixed endpoints by reversing segments.

    First-improvement scan in index order, so the result depends only on the
    input order.
    """
    route = list(stops)
    if len(route) < 2:
        return route

    for _ in range(max_passes):
        improved = False
        points = [origin, *(stop.coordinate for stop in route), destination]
        # Reversing route[i:j+1] replaces edges (i, i+1) and (j+1, j+2) in ``points``.
        for i in range(len(route) - 1):
            for j in range(i + 1, len(route)):
                a, b = points[i], points[i + 1]
                c, d = points[j + 1], points[j + 2]
                delta = (distance(a, c) + distance(b, d)) - (distance(a, b) + distance(c, d))
                if delta < -_IMPROVEMENT_EPSILON_KM:
                    route[i : j + 1] = reversed(route[i : j + 1])
                    points[i + 1 : j + 2] = reversed(points[i + 1 : j + 2])
                    improved = True
        if not improved:
            break
    return route


def apply_order(
    request: RouteRequest,
    ordered_stops: Sequence[Stop],
    *,
    path: Optional[RoutePath] = None,
    order_source: OrderSource = "heuristic",
) -> RouteResult:
    """Build a ``RouteResult`` for ``ordered_stops``, recomputing the distance locally."""
    ordered = tuple(ordered_stops)
    expected = sorted(stop.stop_id for stop in request.stops)
    actual = sorted(stop.stop_id for stop in ordered)
    if expected != actual:
        raise InvalidRouteRequest("Ordered stops are not a permutation of the requested stops.")
    return RouteResult(
        ordered_stops=ordered,
        total_distance_km=route_distance_km(request.origin, ordered, request.destination),
        path=path,
        order_source=order_source,
        origin=request.origin,
        destination=request.destination,
    )


def sequence(
    request: RouteRequest,
    *,
    improve: bool | None = None,
    max_passes: int | None = None,
) -> RouteResult:
    """Order the request's stops with nearest neighbour (plus optional 2-opt)."""
    if not request.stops:
        return RouteResult(
            ordered_stops=(),
            total_distance_km=distance(request.origin, request.destination),
            origin=request.origin,
            destination=request.destination,
        )

    improve = settings.sequencer_two_opt if improve is None else improve
    ordered = nearest_neighbor_order(request.origin, request.stops)
    if improve:
        ordered = two_opt(
            request.origin,
            ordered,
            request.destination,
            max_passes=settings.sequencer_max_two_opt_passes if max_passes is None else max_passes,
        )
    logger.debug(f"Sequenced {len(ordered)} stops locally (two_opt={improve})")
    return apply_order(request, ordered)
