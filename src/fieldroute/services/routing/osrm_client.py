"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from ...config import settings
from ...errors import ProviderUnavailable
from ...models.domain import Coordinate, RoutePath
from ..http import get_json
from .base import RouterResponse
from .polyline import decode_polyline

logger = logging.getLogger(__name__)

PROVIDER_NAME = "osrm"

# OSRM codes that describe the input rather than the service.
NO_ROUTE_CODES = frozenset({"NoRoute", "NoTrips", "NoSegment", "NoMatch"})


def build_coordinate_list(
    origin: Coordinate,
    waypoints: Sequence[Coordinate],
    destination: Coordinate,
) -> list[tuple[float, float]]:
    """Build the (lat, lon) list OSRM sees: ``[origin, *waypoints, destination]``."""
    return [origin.as_tuple(), *(point.as_tuple() for point in waypoints), destination.as_tuple()]


class OSRMClient:
    name = PROVIDER_NAME

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.provider_backoff_seconds
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self._transport,
        )

    async def _request(self, service: str, coordinates: Sequence[tuple[float, float]], params: dict) -> dict:
        # OSRM expects "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        url = f"{self.base_url}/{service}/v1/{self.profile}/{coordinate_str}"
        async with self._client() as client:
            status_code, data = await get_json(
                client,
                url,
                provider=self.name,
                params=params,
                max_retries=self.max_retries,
                backoff_seconds=self.backoff_seconds,
            )
        code = data.get("code")
        if code == "Ok":
            return data
        if code in NO_ROUTE_CODES:
            logger.info(f"OSRM {service} found no route: {data.get('message', code)}")
            return data
        message = data.get("message", "Unknown OSRM error")
        raise ProviderUnavailable(self.name, f"{service} request failed (HTTP {status_code}, {code}): {message}")

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Coordinate],
        optimize_waypoints: bool,
    ) -> RouterResponse:
        """Get a street-following path through the waypoints.

        With ``optimize_waypoints`` the trip service reorders the waypoints
        while keeping the first and last coordinate fixed.
        """
        coordinates = build_coordinate_list(origin, waypoints, destination)
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }
        if optimize_waypoints and len(waypoints) > 1:
            params.update({"source": "first", "destination": "last", "roundtrip": "false"})
            data = await self._request("trip", coordinates, params)
            if data.get("code") != "Ok":
                return RouterResponse.no_route()
            trips = data.get("trips") or []
            if not trips:
                return RouterResponse.no_route()
            return RouterResponse(
                status="ok",
                ordered_waypoint_indices=_trip_order(data.get("waypoints") or [], len(waypoints)),
                path=_to_path(trips[0]),
            )

        data = await self._request("route", coordinates, params)
        if data.get("code") != "Ok":
            return RouterResponse.no_route()
        routes = data.get("routes") or []
        if not routes:
            return RouterResponse.no_route()
        return RouterResponse(status="ok", path=_to_path(routes[0]))


def _trip_order(osrm_waypoints: list[dict[str, Any]], waypoint_count: int) -> tuple[int, ...] | None:
    """Translate trip ``waypoint_index`` values into an order over the intermediate waypoints.

    ``osrm_waypoints`` is in input order (origin first, destination last) and
    each entry carries its position in the trip.
    """
    if len(osrm_waypoints) != waypoint_count + 2:
        return None
    try:
        positions = [int(entry["waypoint_index"]) for entry in osrm_waypoints[1:-1]]
    except (KeyError, TypeError, ValueError):
        return None
    return tuple(sorted(range(waypoint_count), key=lambda index: positions[index]))


def _to_path(leg: dict[str, Any]) -> RoutePath:
    geometry = leg.get("geometry")
    coordinates: tuple[tuple[float, float], ...] = ()
    if isinstance(geometry, str) and geometry:
        try:
            coordinates = tuple(decode_polyline(geometry))
        except ValueError:
            logger.warning("OSRM returned an undecodable route geometry")
    return RoutePath(
        provider=PROVIDER_NAME,
        polyline=geometry if isinstance(geometry, str) else None,
        coordinates=coordinates,
        distance_m=leg.get("distance"),
        duration_s=leg.get("duration"),
    )


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal two-point route request.

    Public OSRM endpoints may not have a /health endpoint.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
