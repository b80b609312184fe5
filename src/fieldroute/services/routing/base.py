"""Routing collaborator contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Sequence

from ...models.domain import Coordinate, RoutePath

RouterStatus = Literal["ok", "no_route"]


@dataclass(frozen=True, slots=True)
class RouterResponse:
    """Provider answer for a directions query.

    ``ordered_waypoint_indices`` lists input waypoint indices in driving order
    when the provider optimized them, otherwise ``None``.
    """

    status: RouterStatus
    ordered_waypoint_indices: Optional[tuple[int, ...]] = None
    path: Optional[RoutePath] = None

    @classmethod
    def no_route(cls) -> "RouterResponse":
        return cls(status="no_route")


class Router(Protocol):
    """Routing collaborator.

    "No route" outcomes come back as ``RouterResponse.no_route()``; transport
    and credential failures raise ``ProviderUnavailable``.
    """

    name: str

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Sequence[Coordinate],
        optimize_waypoints: bool,
    ) -> RouterResponse:
        ...
