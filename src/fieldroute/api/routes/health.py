"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_osrm_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.osrm_client import check_health as osrm_health_check
    return osrm_health_check


@router.get("/health/providers", status_code=status.HTTP_200_OK)
def health_providers() -> dict:
    """Report which providers are configured and whether the router answers."""
    routing: dict = {"provider": settings.routing_provider}
    if settings.routing_provider == "osrm":
        try:
            routing["healthy"] = _get_osrm_health_check()()
        except Exception as e:
            routing["healthy"] = False
            routing["error"] = str(e)
    elif settings.routing_provider == "google":
        routing["configured"] = bool(settings.google_maps_api_key)

    return {
        "geocoding": {
            "provider": settings.geocoding_provider,
            "configured": bool(settings.google_maps_api_key),
        },
        "routing": routing,
    }
