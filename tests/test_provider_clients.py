import asyncio

import httpx
import pytest

from fieldroute.errors import ProviderUnavailable
from fieldroute.models.domain import Coordinate
from fieldroute.services.geocoding.google_client import GoogleGeocoder
from fieldroute.services.routing.google_directions import GoogleDirectionsClient
from fieldroute.services.routing.osrm_client import OSRMClient, build_coordinate_list
from fieldroute.services.routing.polyline import decode_polyline

ORIGIN = Coordinate(21.50, 39.20)
DESTINATION = Coordinate(21.60, 39.30)
WAYPOINTS = [Coordinate(21.52, 39.22), Coordinate(21.55, 39.25), Coordinate(21.58, 39.28)]

# Reference string from Google's polyline algorithm documentation.
SAMPLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def _transport(handler, seen: list | None = None) -> httpx.MockTransport:
    def wrapped(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return httpx.MockTransport(wrapped)


# --- polyline ---------------------------------------------------------------


def test_decode_polyline_reference_string():
    assert decode_polyline(SAMPLE_POLYLINE) == [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def test_decode_polyline_rejects_truncated_input():
    with pytest.raises(ValueError):
        decode_polyline(SAMPLE_POLYLINE[:-2])


# --- Google geocoding -------------------------------------------------------


def _geocode_payload() -> dict:
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "350 5th Ave, New York, NY 10118, USA",
                "geometry": {"location": {"lat": 40.7484, "lng": -73.9857}},
                "address_components": [
                    {"long_name": "New York", "short_name": "New York", "types": ["locality", "political"]},
                    {"long_name": "New York", "short_name": "NY", "types": ["administrative_area_level_1", "political"]},
                    {"long_name": "10118", "short_name": "10118", "types": ["postal_code"]},
                ],
            }
        ],
    }


def test_google_geocoder_parses_candidates():
    seen: list[httpx.Request] = []
    geocoder = GoogleGeocoder(
        api_key="test-key",
        transport=_transport(lambda request: httpx.Response(200, json=_geocode_payload()), seen),
    )

    candidates = asyncio.run(geocoder.geocode("350 5th Ave, New York"))

    assert len(candidates) == 1
    assert candidates[0].coordinate.as_tuple() == (40.7484, -73.9857)
    assert candidates[0].components[1].short_name == "NY"
    assert seen[0].url.params["address"] == "350 5th Ave, New York"
    assert seen[0].url.params["key"] == "test-key"


def test_google_geocoder_zero_results_is_empty():
    geocoder = GoogleGeocoder(
        api_key="test-key",
        transport=_transport(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})),
    )
    assert asyncio.run(geocoder.geocode("Atlantis")) == []


@pytest.mark.parametrize("status", ["REQUEST_DENIED", "OVER_QUERY_LIMIT", "UNKNOWN_ERROR"])
def test_google_geocoder_error_statuses_are_provider_unavailable(status):
    geocoder = GoogleGeocoder(
        api_key="test-key",
        transport=_transport(lambda request: httpx.Response(200, json={"status": status, "error_message": "nope"})),
    )
    with pytest.raises(ProviderUnavailable) as exc_info:
        asyncio.run(geocoder.geocode("anything"))
    assert status in exc_info.value.reason


def test_google_geocoder_requires_api_key(monkeypatch):
    from fieldroute.config import settings

    monkeypatch.setattr(settings, "google_maps_api_key", None)
    with pytest.raises(ValueError):
        GoogleGeocoder()


def test_transport_timeout_is_provider_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    geocoder = GoogleGeocoder(api_key="test-key", transport=_transport(handler))
    with pytest.raises(ProviderUnavailable) as exc_info:
        asyncio.run(geocoder.geocode("anything"))
    assert exc_info.value.reason == "request timed out"


def test_server_errors_retry_when_enabled():
    responses = [httpx.Response(503), httpx.Response(200, json=_geocode_payload())]
    seen: list[httpx.Request] = []
    geocoder = GoogleGeocoder(
        api_key="test-key",
        max_retries=1,
        backoff_seconds=0.0,
        transport=_transport(lambda request: responses.pop(0), seen),
    )

    candidates = asyncio.run(geocoder.geocode("350 5th Ave"))

    assert len(seen) == 2
    assert candidates


def test_server_errors_are_not_retried_by_default():
    seen: list[httpx.Request] = []
    geocoder = GoogleGeocoder(
        api_key="test-key",
        max_retries=0,
        transport=_transport(lambda request: httpx.Response(502), seen),
    )
    with pytest.raises(ProviderUnavailable):
        asyncio.run(geocoder.geocode("350 5th Ave"))
    assert len(seen) == 1


def test_auth_rejection_is_provider_unavailable():
    geocoder = GoogleGeocoder(api_key="bad", transport=_transport(lambda request: httpx.Response(403)))
    with pytest.raises(ProviderUnavailable) as exc_info:
        asyncio.run(geocoder.geocode("anything"))
    assert "403" in exc_info.value.reason


# --- OSRM -------------------------------------------------------------------


def test_build_coordinate_list_brackets_waypoints():
    coords = build_coordinate_list(ORIGIN, WAYPOINTS, DESTINATION)
    assert coords[0] == (21.50, 39.20)
    assert coords[-1] == (21.60, 39.30)
    assert len(coords) == len(WAYPOINTS) + 2


def _osrm_trip_payload() -> dict:
    # Trip visits the input waypoints in the order 1, 2, 0.
    return {
        "code": "Ok",
        "waypoints": [
            {"waypoint_index": 0, "trips_index": 0},
            {"waypoint_index": 3, "trips_index": 0},
            {"waypoint_index": 1, "trips_index": 0},
            {"waypoint_index": 2, "trips_index": 0},
            {"waypoint_index": 4, "trips_index": 0},
        ],
        "trips": [{"geometry": SAMPLE_POLYLINE, "distance": 15234.5, "duration": 1320.0}],
    }


def test_osrm_trip_returns_provider_order():
    seen: list[httpx.Request] = []
    client = OSRMClient(
        base_url="http://osrm.test/",
        profile="driving",
        transport=_transport(lambda request: httpx.Response(200, json=_osrm_trip_payload()), seen),
    )

    response = asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))

    assert response.status == "ok"
    assert response.ordered_waypoint_indices == (1, 2, 0)
    assert response.path.distance_m == 15234.5
    assert response.path.coordinates[0] == (38.5, -120.2)
    request = seen[0]
    assert request.url.path.startswith("/trip/v1/driving/39.2,21.5;")
    assert request.url.params["source"] == "first"
    assert request.url.params["destination"] == "last"
    assert request.url.params["roundtrip"] == "false"


def test_osrm_without_optimization_uses_route_service():
    seen: list[httpx.Request] = []
    payload = {"code": "Ok", "routes": [{"geometry": SAMPLE_POLYLINE, "distance": 900.0, "duration": 60.0}]}
    client = OSRMClient(
        base_url="http://osrm.test",
        transport=_transport(lambda request: httpx.Response(200, json=payload), seen),
    )

    response = asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=False))

    assert response.status == "ok"
    assert response.ordered_waypoint_indices is None
    assert "/route/v1/" in seen[0].url.path


@pytest.mark.parametrize("code", ["NoRoute", "NoSegment", "NoTrips"])
def test_osrm_no_route_codes_are_not_errors(code):
    client = OSRMClient(
        base_url="http://osrm.test",
        transport=_transport(lambda request: httpx.Response(400, json={"code": code, "message": "x"})),
    )
    response = asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))
    assert response.status == "no_route"
    assert response.path is None


def test_osrm_invalid_query_is_provider_unavailable():
    client = OSRMClient(
        base_url="http://osrm.test",
        transport=_transport(lambda request: httpx.Response(400, json={"code": "InvalidUrl", "message": "bad"})),
    )
    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))


def test_osrm_connection_failure_is_provider_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = OSRMClient(base_url="http://osrm.test", transport=_transport(handler))
    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))


def test_osrm_requires_base_url(monkeypatch):
    from fieldroute.config import settings

    monkeypatch.setattr(settings, "osrm_base_url", None)
    with pytest.raises(ValueError):
        OSRMClient()


# --- Google Directions ------------------------------------------------------


def _directions_payload() -> dict:
    return {
        "status": "OK",
        "routes": [
            {
                "waypoint_order": [2, 0, 1],
                "overview_polyline": {"points": SAMPLE_POLYLINE},
                "legs": [
                    {"distance": {"value": 1000}, "duration": {"value": 120}},
                    {"distance": {"value": 2500}, "duration": {"value": 300}},
                ],
            }
        ],
    }


def test_google_directions_requests_optimization():
    seen: list[httpx.Request] = []
    client = GoogleDirectionsClient(
        api_key="test-key",
        transport=_transport(lambda request: httpx.Response(200, json=_directions_payload()), seen),
    )

    response = asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))

    assert response.status == "ok"
    assert response.ordered_waypoint_indices == (2, 0, 1)
    assert response.path.distance_m == 3500.0
    assert response.path.duration_s == 420.0
    params = seen[0].url.params
    assert params["origin"] == "21.5,39.2"
    assert params["waypoints"].startswith("optimize:true|21.52,39.22|")


@pytest.mark.parametrize("status", ["ZERO_RESULTS", "NOT_FOUND", "MAX_WAYPOINTS_EXCEEDED"])
def test_google_directions_no_route_statuses(status):
    client = GoogleDirectionsClient(
        api_key="test-key",
        transport=_transport(lambda request: httpx.Response(200, json={"status": status, "routes": []})),
    )
    response = asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))
    assert response.status == "no_route"


def test_google_directions_denied_is_provider_unavailable():
    client = GoogleDirectionsClient(
        api_key="test-key",
        transport=_transport(
            lambda request: httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"})
        ),
    )
    with pytest.raises(ProviderUnavailable) as exc_info:
        asyncio.run(client.route(ORIGIN, DESTINATION, WAYPOINTS, optimize_waypoints=True))
    assert "bad key" in exc_info.value.reason
