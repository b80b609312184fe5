"""Directions adapter: ordered stops in, provider path (and provider order) out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Coordinate, RoutePath, Stop
from .base import Router

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Directions:
    """Path to drive, with the stops in the order the path visits them.

    ``optimized`` is True when the provider supplied that order.
    """

    ordered_stops: tuple[Stop, ...]
    path: RoutePath
    optimized: bool


def _is_permutation(indices: Sequence[int], size: int) -> bool:
    return len(indices) == size and sorted(indices) == list(range(size))


class DirectionsAdapter:
    def __init__(self, router: Router, optimize_waypoints: bool | None = None) -> None:
        self.router = router
        self.optimize_waypoints = (
            settings.optimize_waypoints if optimize_waypoints is None else optimize_waypoints
        )

    @property
    def provider_name(self) -> str:
        return getattr(self.router, "name", type(self.router).__name__)

    async def fetch_path(
        self,
        origin: Coordinate,
        destination: Coordinate,
        ordered_stops: Sequence[Stop],
    ) -> Optional[Directions]:
        """Ask the provider for a path through ``ordered_stops``.

        Returns ``None`` when the provider reports no viable route.
        ``ProviderUnavailable`` from the router propagates.
        """
        stops = tuple(ordered_stops)
        response = await self.router.route(
            origin,
            destination,
            [stop.coordinate for stop in stops],
            self.optimize_waypoints,
        )
        if response.status != "ok" or response.path is None:
            logger.info(f"{self.provider_name} reported no viable route for {len(stops)} stops")
            return None

        indices = response.ordered_waypoint_indices
        if not self.optimize_waypoints or len(stops) < 2:
            return Directions(ordered_stops=stops, path=response.path, optimized=False)
        if indices is None:
            logger.warning(f"{self.provider_name} omitted waypoint order; keeping the local order")
            return Directions(ordered_stops=stops, path=response.path, optimized=False)
        if not _is_permutation(indices, len(stops)):
            logger.warning(
                f"{self.provider_name} returned an invalid waypoint order {list(indices)} "
                f"for {len(stops)} stops; keeping the local order"
            )
            return Directions(ordered_stops=stops, path=response.path, optimized=False)

        return Directions(
            ordered_stops=tuple(stops[index] for index in indices),
            path=response.path,
            optimized=True,
        )
