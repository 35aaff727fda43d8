import httpx
import pytest
from fastapi.testclient import TestClient

from flightwatch.api.flights import INVALID_BBOX, MISSING_BBOX, get_upstream_client
from flightwatch.config import settings
from flightwatch.ingestors import SnapshotFetcher
from flightwatch.main import app
from flightwatch.models.air_traffic import BoundingBox
from flightwatch.services import InMemoryPresenter, ReconciliationEngine, RefreshScheduler


@pytest.fixture
def make_client(monkeypatch):
    monkeypatch.setattr(settings, "opensky_base_url", "https://opensky.test/api/states/all")

    def _make(handler) -> TestClient:
        upstream = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_upstream_client] = lambda: upstream
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


def _unreachable(request: httpx.Request):
    raise AssertionError("upstream must not be called")


def test_proxy_relays_upstream_states(make_client):
    payload = {"time": 1714765200, "states": [["abc123", "TEST123 ", "USA", 0, 0, 20.0, 10.0]]}
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request):
        captured.append(request)
        return httpx.Response(200, json=payload)

    client = make_client(handler)
    response = client.get("/api/flights", params={"bbox": "39.5,41.0,-76.0,-74.25"})

    assert response.status_code == 200
    assert response.json() == payload
    assert len(captured) == 1
    params = captured[0].url.params
    assert captured[0].url.host == "opensky.test"
    assert float(params["lamin"]) == 39.5
    assert float(params["lamax"]) == 41.0
    assert float(params["lomin"]) == -76.0
    assert float(params["lomax"]) == -74.25


@pytest.mark.parametrize("query", ["", "?bbox="])
def test_proxy_rejects_missing_bbox(make_client, query):
    client = make_client(_unreachable)

    response = client.get(f"/api/flights{query}")

    assert response.status_code == 400
    assert response.json() == {"error": MISSING_BBOX}


@pytest.mark.parametrize("bbox", ["1,2,3", "1,2,3,4,5", "1,2,3,abc", "1,2,nan,4", "1,2,3,inf"])
def test_proxy_rejects_invalid_bbox(make_client, bbox):
    client = make_client(_unreachable)

    response = client.get("/api/flights", params={"bbox": bbox})

    assert response.status_code == 400
    assert response.json() == {"error": INVALID_BBOX}


def test_proxy_maps_upstream_error_to_502(make_client):
    client = make_client(lambda request: httpx.Response(503, text="unavailable"))

    response = client.get("/api/flights", params={"bbox": "1,2,3,4"})

    assert response.status_code == 502
    assert response.json() == {"error": "Upstream error 503"}


def test_proxy_maps_transport_failure_to_500(make_client):
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    response = client.get("/api/flights", params={"bbox": "1,2,3,4"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_proxy_maps_bad_upstream_json_to_500(make_client):
    client = make_client(lambda request: httpx.Response(200, text="not json"))

    response = client.get("/api/flights", params={"bbox": "1,2,3,4"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_proxy_maps_unrenderable_upstream_json_to_500(make_client):
    body = b'{"states": [["abc", null, "X", 0, 0, NaN, 1.0]]}'
    client = make_client(
        lambda request: httpx.Response(
            200, content=body, headers={"content-type": "application/json"}
        )
    )

    response = client.get("/api/flights", params={"bbox": "1,2,3,4"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_proxy_maps_unexpected_failure_to_500(make_client):
    def handler(request: httpx.Request):
        raise RuntimeError("transport exploded")

    client = make_client(handler)

    response = client.get("/api/flights", params={"bbox": "1,2,3,4"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_proxy_allows_cross_origin_map_pages(make_client):
    client = make_client(lambda request: httpx.Response(200, json={"states": []}))

    response = client.get(
        "/api/flights",
        params={"bbox": "1,2,3,4"},
        headers={"Origin": "http://map.example"},
    )
    preflight = client.options(
        "/api/flights",
        headers={
            "Origin": "http://map.example",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert preflight.status_code == 200
    assert preflight.headers["access-control-allow-origin"] == "*"


def test_health_check_reports_upstream(monkeypatch):
    monkeypatch.setattr(settings, "opensky_base_url", "https://opensky.test/api/states/all")

    with TestClient(app) as client:
        response = client.get("/healthz")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["upstream_host"] == "opensky.test"
    assert body["upstream_client"] is True


def test_root_describes_flights_endpoint():
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "flightwatch"
    assert response.json()["flights"].startswith("/api/flights?bbox=")


@pytest.mark.anyio
async def test_scheduler_reconciles_through_proxy(monkeypatch):
    monkeypatch.setattr(settings, "opensky_base_url", "https://opensky.test/api/states/all")
    payload = {
        "states": [
            ["abc123", "TEST123 ", "USA", 0, 0, -75.0, 40.0, None, False, None, 90.0, None, None, 1000.0],
            ["def456", "", "Canada", 0, 0, None, 41.0],
        ]
    }
    upstream = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
    )
    app.dependency_overrides[get_upstream_client] = lambda: upstream
    try:
        presenter = InMemoryPresenter()
        scheduler = RefreshScheduler(
            fetcher=SnapshotFetcher(
                base_url="http://proxy.test", transport=httpx.ASGITransport(app=app)
            ),
            engine=ReconciliationEngine(),
            presenter=presenter,
            viewport=lambda: BoundingBox(south=39.0, north=42.0, west=-76.0, east=-74.0),
            auto_refresh=False,
        )

        outcome = await scheduler.refresh()
    finally:
        app.dependency_overrides.clear()
        await upstream.aclose()

    assert outcome is not None and outcome.ok
    assert scheduler.engine.tracked_ids == {"abc123"}
    marker = presenter.by_identifier("abc123")
    assert marker.rotation == 90.0
    assert "Spd: — m/s" in marker.popup_html
    assert scheduler.status == "Loaded 2 aircraft"
