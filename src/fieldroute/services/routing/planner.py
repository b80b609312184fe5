"""Route planning orchestration service.

``RoutePlanner.plan_route`` is the caller-facing entry point: it resolves
addresses, orders the stops locally, then lets the routing provider supply the
drivable path (and its own order when it optimizes waypoints).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Union

from ...config import settings
from ...errors import AddressNotFound, InvalidRouteRequest, ProviderUnavailable
from ...models.domain import Coordinate, ResolvedAddress, RouteRequest, RouteResult, Stop
from ..geocoding.cache import build_cache, normalize_address
from ..geocoding.resolver import CoordinateResolver
from .directions import DirectionsAdapter
from .sequencer import apply_order, sequence

logger = logging.getLogger(__name__)

Location = Union[Coordinate, str]


@dataclass(frozen=True, slots=True)
class StopTarget:
    """Caller input for one stop: an address to geocode or a known coordinate."""

    stop_id: str
    address: Optional[str] = None
    coordinate: Optional[Coordinate] = None

    def __post_init__(self) -> None:
        if self.coordinate is None and not (self.address and self.address.strip()):
            raise InvalidRouteRequest(f"Stop '{self.stop_id}' needs an address or a coordinate.")


class RoutePlanner:
    def __init__(
        self,
        resolver: CoordinateResolver,
        directions: DirectionsAdapter | None = None,
        two_opt: bool | None = None,
    ) -> None:
        self.resolver = resolver
        self.directions = directions
        self.two_opt = settings.sequencer_two_opt if two_opt is None else two_opt

    async def plan_route(
        self,
        targets: Sequence[StopTarget],
        origin: Location,
        destination: Location | None = None,
    ) -> RouteResult:
        """Plan a route through ``targets``.

        When ``destination`` is omitted the route returns to ``origin``. Any
        address that cannot be located fails the whole plan.
        """
        _check_unique_ids(targets)
        destination = origin if destination is None else destination

        addresses = [location for location in (origin, destination) if isinstance(location, str)]
        addresses.extend(target.address for target in targets if target.coordinate is None)
        resolved = await self._resolve(addresses, targets)

        def locate(location: Location) -> Coordinate:
            if isinstance(location, Coordinate):
                return location
            return resolved[normalize_address(location)].coordinate

        stops = [
            Stop(
                stop_id=target.stop_id,
                address=(
                    ResolvedAddress.from_coordinate(target.coordinate, label=target.address)
                    if target.coordinate is not None
                    else resolved[normalize_address(target.address or "")]
                ),
            )
            for target in targets
        ]
        request = RouteRequest(origin=locate(origin), destination=locate(destination), stops=tuple(stops))
        return await self.plan_request(request)

    async def plan_request(self, request: RouteRequest) -> RouteResult:
        """Order an already-resolved request and attach the provider path."""
        local = sequence(request, improve=self.two_opt)
        if self.directions is None:
            return local

        try:
            directions = await self.directions.fetch_path(request.origin, request.destination, local.ordered_stops)
        except ProviderUnavailable as exc:
            logger.warning(f"Directions unavailable, using heuristic order: {exc}")
            return replace(local, metadata={"directions_error": exc.reason})

        if directions is None:
            return replace(local, metadata={"no_viable_route": True})

        routed = apply_order(
            request,
            directions.ordered_stops,
            path=directions.path,
            order_source="provider" if directions.optimized else "heuristic",
        )
        return replace(routed, metadata={"provider": self.directions.provider_name})

    def plan_route_sync(
        self,
        targets: Sequence[StopTarget],
        origin: Location,
        destination: Location | None = None,
    ) -> RouteResult:
        """Blocking wrapper around ``plan_route`` for callers without an event loop."""
        return asyncio.run(self.plan_route(targets, origin, destination))

    async def _resolve(
        self,
        addresses: Sequence[str],
        targets: Sequence[StopTarget],
    ) -> dict[str, ResolvedAddress]:
        if not addresses:
            return {}
        try:
            return await self.resolver.resolve_many(addresses)
        except AddressNotFound as exc:
            failed_key = normalize_address(exc.address)
            for target in targets:
                if target.coordinate is None and normalize_address(target.address or "") == failed_key:
                    raise exc.for_stop(target.stop_id) from exc
            raise


def _check_unique_ids(targets: Sequence[StopTarget]) -> None:
    seen: set[str] = set()
    for target in targets:
        if target.stop_id in seen:
            raise InvalidRouteRequest(f"Duplicate stop identifier '{target.stop_id}' in route request.")
        seen.add(target.stop_id)


def build_router():
    """Routing collaborator for the configured provider, or ``None`` when disabled."""
    provider = settings.routing_provider
    if provider == "osrm":
        from .osrm_client import OSRMClient

        return OSRMClient()
    if provider == "google":
        from .google_directions import GoogleDirectionsClient

        return GoogleDirectionsClient()
    return None


def build_planner() -> RoutePlanner:
    """Wire a planner from settings. Raises ``ValueError`` when a provider is not configured."""
    from ..geocoding.google_client import GoogleGeocoder

    resolver = CoordinateResolver(
        geocoder=GoogleGeocoder(),
        cache=build_cache(settings.geocode_cache_ttl_seconds),
        timeout_seconds=settings.geocode_timeout_seconds,
    )
    router = build_router()
    directions = DirectionsAdapter(router) if router is not None else None
    logger.info(
        f"Route planner ready (geocoder={settings.geocoding_provider}, "
        f"router={settings.routing_provider}, cache={resolver.cache.policy!r})"
    )
    return RoutePlanner(resolver=resolver, directions=directions)
