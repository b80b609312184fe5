"""HTTP client for the Google Directions web service."""

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

PROVIDER_NAME = "google-directions"

NO_ROUTE_STATUSES = frozenset(
    {
        "ZERO_RESULTS",
        "NOT_FOUND",
        "INVALID_REQUEST",
        "MAX_WAYPOINTS_EXCEEDED",
        "MAX_ROUTE_LENGTH_EXCEEDED",
    }
)


def _latlng(point: Coordinate) -> str:
    return f"{point.latitude},{point.longitude}"


class GoogleDirectionsClient:
    name = PROVIDER_NAME

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = base_url or settings.google_directions_url
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

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Coordinate],
        optimize_waypoints: bool,
    ) -> RouterResponse:
        params: dict[str, Any] = {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "mode": "driving",
            "key": self.api_key,
        }
        if waypoints:
            prefix = ["optimize:true"] if optimize_waypoints else []
            params["waypoints"] = "|".join([*prefix, *(_latlng(point) for point in waypoints)])

        async with self._client() as client:
            _, data = await get_json(
                client,
                self.base_url,
                provider=self.name,
                params=params,
                max_retries=self.max_retries,
                backoff_seconds=self.backoff_seconds,
            )

        status = data.get("status")
        if status in NO_ROUTE_STATUSES:
            logger.info(f"Google Directions found no route: {status}")
            return RouterResponse.no_route()
        if status != "OK":
            message = data.get("error_message") or "Unknown directions error"
            raise ProviderUnavailable(self.name, f"{status}: {message}")

        routes = data.get("routes") or []
        if not routes:
            return RouterResponse.no_route()
        route = routes[0]

        order = None
        if optimize_waypoints and waypoints:
            raw_order = route.get("waypoint_order")
            if isinstance(raw_order, list):
                try:
                    order = tuple(int(index) for index in raw_order)
                except (TypeError, ValueError):
                    order = None

        return RouterResponse(status="ok", ordered_waypoint_indices=order, path=_to_path(route))


def _to_path(route: dict[str, Any]) -> RoutePath:
    legs = route.get("legs") or []
    distance_m = sum(float((leg.get("distance") or {}).get("value") or 0) for leg in legs)
    duration_s = sum(float((leg.get("duration") or {}).get("value") or 0) for leg in legs)
    points = (route.get("overview_polyline") or {}).get("points")
    coordinates: tuple[tuple[float, float], ...] = ()
    if isinstance(points, str) and points:
        try:
            coordinates = tuple(decode_polyline(points))
        except ValueError:
            logger.warning("Google Directions returned an undecodable overview polyline")
    return RoutePath(
        provider=PROVIDER_NAME,
        polyline=points if isinstance(points, str) else None,
        coordinates=coordinates,
        distance_m=distance_m if legs else None,
        duration_s=duration_s if legs else None,
    )
