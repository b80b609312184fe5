"""Provider-agnostic geocoding interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ...models.domain import Coordinate


@dataclass(frozen=True, slots=True)
class AddressComponent:
    long_name: str
    short_name: str
    types: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GeocodeCandidate:
    coordinate: Coordinate
    formatted_address: str
    components: tuple[AddressComponent, ...] = field(default_factory=tuple)


class Geocoder(Protocol):
    """Geocoding collaborator.

    Returns every candidate the provider found, best first. An empty list means
    the address is unknown; transport or credential problems must raise
    ``ProviderUnavailable`` instead.
    """

    name: str

    async def geocode(self, address: str) -> Sequence[GeocodeCandidate]:
        ...
