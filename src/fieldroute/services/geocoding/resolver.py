"""Coordinate resolver: free-text address to ``ResolvedAddress``.

Looks the address up through a ``Geocoder`` collaborator, keeps only the first
candidate and extracts city/state/zip from the typed address components.
Successful lookups are cached by normalized address text so repeated requests
for the same address cost a single remote call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from ...errors import AddressNotFound, ProviderUnavailable
from ...models.domain import ResolvedAddress
from .base import AddressComponent, GeocodeCandidate, Geocoder
from .cache import AddressCache, normalize_address

logger = logging.getLogger(__name__)

LOCALITY = "locality"
STATE = "administrative_area_level_1"
POSTAL_CODE = "postal_code"


def extract_locality(components: Iterable[AddressComponent]) -> dict[str, str]:
    """Map typed components to ``city``/``state``/``zip_code``.

    ``state`` uses the short form (``"CA"``), the others the long form. A
    component fills at most one field, a later component with the same tag
    overwrites an earlier one, and absent tags are simply left out.
    """
    fields: dict[str, str] = {}
    for component in components:
        if LOCALITY in component.types:
            value, key = component.long_name, "city"
        elif STATE in component.types:
            value, key = component.short_name, "state"
        elif POSTAL_CODE in component.types:
            value, key = component.long_name, "zip_code"
        else:
            continue
        if value:
            fields[key] = value
    return fields


def candidate_to_address(raw_address: str, candidate: GeocodeCandidate) -> ResolvedAddress:
    return ResolvedAddress(
        raw_address=raw_address,
        formatted_address=candidate.formatted_address or raw_address,
        coordinate=candidate.coordinate,
        **extract_locality(candidate.components),
    )


class CoordinateResolver:
    def __init__(
        self,
        geocoder: Geocoder,
        cache: AddressCache | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.cache = cache if cache is not None else AddressCache()
        self.timeout_seconds = timeout_seconds

    @property
    def provider_name(self) -> str:
        return getattr(self.geocoder, "name", type(self.geocoder).__name__)

    async def resolve(self, raw_address: str) -> ResolvedAddress:
        key = normalize_address(raw_address)
        if not key:
            raise AddressNotFound(raw_address)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Address cache hit for '{key}'")
            return cached

        candidates = await self._lookup(raw_address)
        if not candidates:
            raise AddressNotFound(raw_address)

        resolved = candidate_to_address(raw_address, candidates[0])
        self.cache.put(key, resolved)
        return resolved

    async def resolve_many(self, raw_addresses: Sequence[str]) -> dict[str, ResolvedAddress]:
        """Resolve addresses concurrently, one lookup per distinct normalized text.

        Returns a mapping keyed by normalized address. The first failure is
        raised once every lookup has settled.
        """
        distinct: dict[str, str] = {}
        for raw in raw_addresses:
            distinct.setdefault(normalize_address(raw), raw)

        keys = list(distinct)
        outcomes = await asyncio.gather(
            *(self.resolve(distinct[key]) for key in keys),
            return_exceptions=True,
        )
        resolved: dict[str, ResolvedAddress] = {}
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, BaseException):
                raise outcome
            resolved[key] = outcome
        return resolved

    async def _lookup(self, raw_address: str) -> Sequence[GeocodeCandidate]:
        try:
            if self.timeout_seconds is None:
                return await self.geocoder.geocode(raw_address)
            return await asyncio.wait_for(self.geocoder.geocode(raw_address), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise ProviderUnavailable(self.provider_name, "lookup timed out", address=raw_address) from exc
        except ProviderUnavailable as exc:
            if exc.address is None:
                raise ProviderUnavailable(exc.provider, exc.reason, address=raw_address) from exc
            raise
        except Exception as exc:
            logger.warning(f"Geocoder {self.provider_name} failed for '{raw_address}': {exc!r}")
            raise ProviderUnavailable(
                self.provider_name, str(exc) or type(exc).__name__, address=raw_address
            ) from exc
