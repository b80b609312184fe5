"""Shared FastAPI dependencies."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import HTTPException, status

from ..services.routing.planner import RoutePlanner, build_planner


@lru_cache()
def _cached_planner() -> RoutePlanner:
    # One planner per process so the address cache is shared across requests.
    return build_planner()


def get_route_planner() -> RoutePlanner:
    try:
        return _cached_planner()
    except ValueError as exc:
        logging.error(f"Route planner is not configured: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Route planning is not configured: {exc}",
        ) from exc
