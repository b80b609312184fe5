"""Address resolution endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import AddressNotFound, ProviderUnavailable
from ...schemas.routing import AddressResolveRequest, ResolvedAddressModel
from ...services.outputs.routing_formatter import resolved_address_to_json
from ...services.routing.planner import RoutePlanner
from ..dependencies import get_route_planner

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.post(
    "/resolve",
    response_model=ResolvedAddressModel,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def resolve_address(
    payload: AddressResolveRequest,
    planner: RoutePlanner = Depends(get_route_planner),
) -> dict:
    """Geocode a single address (served from the address cache when possible)."""
    try:
        resolved = await planner.resolver.resolve(payload.address)
    except AddressNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ProviderUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return resolved_address_to_json(resolved)
