"""Exceptions raised by the route planning components."""

from __future__ import annotations

from typing import Optional


class RoutePlanningError(Exception):
    """Base class for route planning failures."""


class InvalidCoordinate(RoutePlanningError, ValueError):
    """Latitude or longitude outside WGS-84 bounds (or not a finite number)."""

    def __init__(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"Invalid coordinate ({latitude}, {longitude}): latitude must be within [-90, 90] "
            f"and longitude within [-180, 180]."
        )


class InvalidRouteRequest(RoutePlanningError, ValueError):
    """A route request that breaks its own invariants (e.g. duplicate stop ids)."""


class AddressNotFound(RoutePlanningError):
    """The geocoding provider returned no candidates for an address."""

    def __init__(self, address: str, stop_id: Optional[str] = None) -> None:
        self.address = address
        self.stop_id = stop_id
        if stop_id is not None:
            message = f"Could not locate address '{address}' for stop '{stop_id}'."
        else:
            message = f"Could not locate address '{address}'."
        super().__init__(message)

    def for_stop(self, stop_id: str) -> "AddressNotFound":
        return AddressNotFound(self.address, stop_id=stop_id)


class ProviderUnavailable(RoutePlanningError):
    """An external provider errored, rejected credentials or timed out.

    Transient from the caller's point of view: retrying later may succeed.
    """

    def __init__(self, provider: str, reason: str, address: Optional[str] = None) -> None:
        self.provider = provider
        self.reason = reason
        self.address = address
        if address is not None:
            message = f"{provider} provider unavailable while resolving '{address}': {reason}"
        else:
            message = f"{provider} provider unavailable: {reason}"
        super().__init__(message)
