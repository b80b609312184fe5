"""HTTP client for the Google Geocoding web service."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from ...errors import ProviderUnavailable
from ...models.domain import Coordinate
from ..http import get_json
from .base import AddressComponent, GeocodeCandidate

logger = logging.getLogger(__name__)

PROVIDER_NAME = "google-geocoding"

# Statuses that mean "no such address", as opposed to a provider fault.
NOT_FOUND_STATUSES = frozenset({"ZERO_RESULTS"})


class GoogleGeocoder:
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
        self.base_url = base_url or settings.google_geocoding_url
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

    async def geocode(self, address: str) -> list[GeocodeCandidate]:
        params = {"address": address, "key": self.api_key}
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
        if status in NOT_FOUND_STATUSES:
            return []
        if status != "OK":
            message = data.get("error_message") or "Unknown geocoding error"
            raise ProviderUnavailable(self.name, f"{status}: {message}")

        candidates: list[GeocodeCandidate] = []
        for result in data.get("results") or []:
            candidate = _parse_candidate(result)
            if candidate is not None:
                candidates.append(candidate)
        return candidates


def _parse_candidate(result: dict[str, Any]) -> GeocodeCandidate | None:
    location = (result.get("geometry") or {}).get("location") or {}
    try:
        coordinate = Coordinate(latitude=float(location["lat"]), longitude=float(location["lng"]))
    except (KeyError, TypeError, ValueError):
        logger.warning(f"Skipping geocoding result without a usable location: {result.get('formatted_address')!r}")
        return None

    components = tuple(
        AddressComponent(
            long_name=str(component.get("long_name") or ""),
            short_name=str(component.get("short_name") or ""),
            types=tuple(component.get("types") or ()),
        )
        for component in result.get("address_components") or []
    )
    return GeocodeCandidate(
        coordinate=coordinate,
        formatted_address=str(result.get("formatted_address") or ""),
        components=components,
    )
