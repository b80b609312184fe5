"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...errors import AddressNotFound, InvalidRouteRequest, ProviderUnavailable
from ...models.domain import Coordinate
from ...schemas.routing import LocationModel, RoutePlanRequest, RoutePlanResponse
from ...services.outputs.routing_formatter import route_result_to_csv, route_result_to_json
from ...services.routing.planner import Location, RoutePlanner, StopTarget
from ..dependencies import get_route_planner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


def _to_location(model: LocationModel) -> Location:
    if model.latitude is not None and model.longitude is not None:
        return Coordinate(latitude=model.latitude, longitude=model.longitude)
    return model.address or ""


def _to_targets(payload: RoutePlanRequest) -> list[StopTarget]:
    return [
        StopTarget(
            stop_id=stop.stop_id,
            address=stop.address,
            coordinate=(
                Coordinate(latitude=stop.latitude, longitude=stop.longitude)
                if stop.latitude is not None and stop.longitude is not None
                else None
            ),
        )
        for stop in payload.stops
    ]


@router.post(
    "/plan",
    response_model=RoutePlanResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def plan(
    payload: RoutePlanRequest,
    response_format: str = Query(default="json", alias="format", pattern="^(json|csv)$"),
    planner: RoutePlanner = Depends(get_route_planner),
):
    try:
        result = await planner.plan_route(
            _to_targets(payload),
            origin=_to_location(payload.origin),
            destination=_to_location(payload.destination) if payload.destination else None,
        )
    except AddressNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ProviderUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except (InvalidRouteRequest, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}",
        ) from exc

    if response_format == "csv":
        return Response(content=route_result_to_csv(result), media_type="text/csv")
    return route_result_to_json(result)
