import asyncio

import pytest

from fakes import FakeGeocoder, FakeRouter, candidate
from fieldroute.errors import AddressNotFound, InvalidRouteRequest, ProviderUnavailable
from fieldroute.models.domain import Coordinate, RoutePath
from fieldroute.services.geocoding.resolver import CoordinateResolver
from fieldroute.services.routing.base import RouterResponse
from fieldroute.services.routing.directions import DirectionsAdapter
from fieldroute.services.routing.planner import RoutePlanner, StopTarget
from fieldroute.services.routing.sequencer import route_distance_km

DEPOT = Coordinate(0, 0)
END = Coordinate(0, 3)

ADDRESSES = {
    "1 First St": [candidate(0.0, 1.0, "1 First St, Springfield", city="Springfield", state=("Illinois", "IL"))],
    "2 Second St": [candidate(0.0, 2.0, "2 Second St, Springfield", zip_code="62701")],
    "Depot Rd": [candidate(0.0, 0.0, "Depot Rd, Springfield")],
}

PATH = RoutePath(provider="fake-router", polyline="??", coordinates=((0.0, 0.0), (0.0, 3.0)), distance_m=340000.0)


def _planner(router: FakeRouter | None = None, geocoder: FakeGeocoder | None = None, **kwargs) -> RoutePlanner:
    resolver = CoordinateResolver(geocoder or FakeGeocoder(ADDRESSES))
    directions = DirectionsAdapter(router, optimize_waypoints=kwargs.pop("optimize", True)) if router else None
    return RoutePlanner(resolver=resolver, directions=directions, two_opt=kwargs.pop("two_opt", False))


def _ids(result) -> list[str]:
    return [stop.stop_id for stop in result.ordered_stops]


def test_plan_route_geocodes_and_orders_stops():
    planner = _planner()
    targets = [StopTarget("B", address="2 Second St"), StopTarget("A", address="1 First St")]

    result = asyncio.run(planner.plan_route(targets, origin=DEPOT, destination=END))

    assert _ids(result) == ["A", "B"]
    assert result.path is None
    assert result.order_source == "heuristic"
    assert result.ordered_stops[0].address.state == "IL"
    assert result.ordered_stops[1].address.zip_code == "62701"
    assert result.total_distance_km == pytest.approx(333.585, abs=0.01)


def test_empty_stops_return_direct_distance():
    result = asyncio.run(_planner().plan_route([], origin=DEPOT, destination=END))

    assert result.ordered_stops == ()
    assert result.total_distance_km == pytest.approx(333.585, abs=0.01)


def test_destination_defaults_to_origin():
    targets = [StopTarget("A", coordinate=Coordinate(0, 1))]
    result = asyncio.run(_planner().plan_route(targets, origin=DEPOT))

    assert result.destination == DEPOT
    assert result.total_distance_km == pytest.approx(2 * 111.195, abs=0.01)


def test_origin_may_be_an_address():
    geocoder = FakeGeocoder(ADDRESSES)
    planner = _planner(geocoder=geocoder)
    targets = [StopTarget("A", address="1 First St")]

    result = asyncio.run(planner.plan_route(targets, origin="Depot Rd", destination="Depot Rd"))

    assert result.origin == Coordinate(0.0, 0.0)
    assert sorted(geocoder.calls) == ["1 First St", "Depot Rd"]


def test_coordinate_stops_skip_geocoding():
    geocoder = FakeGeocoder(ADDRESSES)
    planner = _planner(geocoder=geocoder)
    targets = [StopTarget("A", address="Client HQ", coordinate=Coordinate(0, 1))]

    result = asyncio.run(planner.plan_route(targets, origin=DEPOT, destination=END))

    assert geocoder.calls == []
    assert result.ordered_stops[0].address.formatted_address == "Client HQ"


def test_unknown_address_fails_the_whole_plan_naming_the_stop():
    planner = _planner()
    targets = [StopTarget("A", address="1 First St"), StopTarget("ghost", address="404 Nowhere Ave")]

    with pytest.raises(AddressNotFound) as exc_info:
        asyncio.run(planner.plan_route(targets, origin=DEPOT, destination=END))

    assert exc_info.value.address == "404 Nowhere Ave"
    assert exc_info.value.stop_id == "ghost"
    assert "404 Nowhere Ave" in str(exc_info.value)


def test_geocoder_outage_propagates():
    geocoder = FakeGeocoder({"1 First St": ProviderUnavailable("fake-geocoder", "HTTP 503")})
    planner = _planner(geocoder=geocoder)

    with pytest.raises(ProviderUnavailable):
        asyncio.run(planner.plan_route([StopTarget("A", address="1 First St")], origin=DEPOT, destination=END))


def test_duplicate_targets_are_rejected_before_geocoding():
    geocoder = FakeGeocoder(ADDRESSES)
    planner = _planner(geocoder=geocoder)
    targets = [StopTarget("A", address="1 First St"), StopTarget("A", address="2 Second St")]

    with pytest.raises(InvalidRouteRequest):
        asyncio.run(planner.plan_route(targets, origin=DEPOT, destination=END))
    assert geocoder.calls == []


def test_stop_target_needs_a_location():
    with pytest.raises(InvalidRouteRequest):
        StopTarget("A")


def test_provider_order_wins_when_available():
    router = FakeRouter(RouterResponse(status="ok", ordered_waypoint_indices=(1, 0), path=PATH))
    planner = _planner(router)
    targets = [StopTarget("A", address="1 First St"), StopTarget("B", address="2 Second St")]

    result = asyncio.run(planner.plan_route(targets, origin=DEPOT, destination=END))

    # The router saw the local order A, B and answered B, A.
    assert router.calls[0]["waypoints"] == [Coordinate(0.0, 1.0), Coordinate(0.0, 2.0)]
    assert router.calls[0]["optimize_waypoints"] is True
    assert _ids(result) == ["B", "A"]
    assert result.order_source == "provider"
    assert result.path == PATH
    assert result.total_distance_km == pytest.approx(route_distance_km(DEPOT, result.ordered_stops, END))
    assert result.metadata == {"provider": "fake-router"}


def test_missing_provider_order_keeps_local_order():
    router = FakeRouter(RouterResponse(status="ok", ordered_waypoint_indices=None, path=PATH))
    result = asyncio.run(
        _planner(router).plan_route(
            [StopTarget("B", address="2 Second St"), StopTarget("A", address="1 First St")],
            origin=DEPOT,
            destination=END,
        )
    )

    assert _ids(result) == ["A", "B"]
    assert result.order_source == "heuristic"
    assert result.path == PATH


def test_malformed_provider_order_keeps_local_order():
    router = FakeRouter(RouterResponse(status="ok", ordered_waypoint_indices=(0, 0), path=PATH))
    result = asyncio.run(
        _planner(router).plan_route(
            [StopTarget("A", address="1 First St"), StopTarget("B", address="2 Second St")],
            origin=DEPOT,
            destination=END,
        )
    )

    assert _ids(result) == ["A", "B"]
    assert result.order_source == "heuristic"


def test_no_viable_route_is_a_result_not_an_error():
    router = FakeRouter(RouterResponse.no_route())
    result = asyncio.run(
        _planner(router).plan_route([StopTarget("A", address="1 First St")], origin=DEPOT, destination=END)
    )

    assert result.path is None
    assert _ids(result) == ["A"]
    assert result.metadata["no_viable_route"] is True


def test_router_outage_falls_back_to_heuristic_order():
    router = FakeRouter(error=ProviderUnavailable("fake-router", "connection refused"))
    result = asyncio.run(
        _planner(router).plan_route(
            [StopTarget("B", address="2 Second St"), StopTarget("A", address="1 First St")],
            origin=DEPOT,
            destination=END,
        )
    )

    assert _ids(result) == ["A", "B"]
    assert result.path is None
    assert "connection refused" in result.metadata["directions_error"]


def test_directions_adapter_passes_through_when_not_optimizing():
    router = FakeRouter(RouterResponse(status="ok", ordered_waypoint_indices=(1, 0), path=PATH))
    adapter = DirectionsAdapter(router, optimize_waypoints=False)
    planner = RoutePlanner(resolver=CoordinateResolver(FakeGeocoder(ADDRESSES)), directions=adapter, two_opt=False)

    result = asyncio.run(
        planner.plan_route(
            [StopTarget("A", address="1 First St"), StopTarget("B", address="2 Second St")],
            origin=DEPOT,
            destination=END,
        )
    )

    assert router.calls[0]["optimize_waypoints"] is False
    assert _ids(result) == ["A", "B"]
    assert result.path == PATH


def test_plan_route_sync_wraps_the_coroutine():
    result = _planner().plan_route_sync([StopTarget("A", coordinate=Coordinate(0, 1))], origin=DEPOT, destination=END)
    assert _ids(result) == ["A"]
