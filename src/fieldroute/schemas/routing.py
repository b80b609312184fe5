"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationModel(BaseModel):
    """Origin or destination given as an address or a coordinate."""

    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def _require_address_or_coordinate(self) -> "LocationModel":
        has_coordinate = self.latitude is not None and self.longitude is not None
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together.")
        if not has_coordinate and not (self.address and self.address.strip()):
            raise ValueError("Provide either an address or latitude/longitude.")
        return self


class StopModel(LocationModel):
    stop_id: str = Field(..., min_length=1, description="Caller identifier, e.g. a contact id.")

    @field_validator("stop_id", mode="before")
    @classmethod
    def _coerce_stop_id(cls, value: Union[str, int]) -> str:
        return str(value).strip() if value is not None else value


class RoutePlanRequest(BaseModel):
    origin: LocationModel
    destination: Optional[LocationModel] = Field(
        default=None,
        description="Where the route ends. Defaults to the origin (round trip).",
    )
    stops: List[StopModel] = Field(default_factory=list)

    @field_validator("stops")
    @classmethod
    def _unique_stop_ids(cls, stops: List[StopModel]) -> List[StopModel]:
        seen: set[str] = set()
        for stop in stops:
            if stop.stop_id in seen:
                raise ValueError(f"Duplicate stop identifier '{stop.stop_id}'.")
            seen.add(stop.stop_id)
        return stops


class AddressResolveRequest(BaseModel):
    address: str = Field(..., min_length=1)


class ResolvedAddressModel(BaseModel):
    rawAddress: str
    formattedAddress: str
    latitude: float
    longitude: float
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None


class OrderedStopModel(ResolvedAddressModel):
    stopId: str
    sequence: int


class RoutePathModel(BaseModel):
    provider: str
    polyline: Optional[str] = None
    coordinates: List[List[float]] = Field(default_factory=list)
    distanceMeters: Optional[float] = None
    durationSeconds: Optional[float] = None


class RoutePlanResponse(BaseModel):
    orderedStops: List[OrderedStopModel]
    totalDistanceKm: float
    orderSource: Literal["heuristic", "provider"]
    origin: Optional[CoordinateModel] = None
    destination: Optional[CoordinateModel] = None
    path: Optional[RoutePathModel] = None
    provider: Optional[str] = None
    noViableRoute: Optional[bool] = None
    directionsError: Optional[str] = None
