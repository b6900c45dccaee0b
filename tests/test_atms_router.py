import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from atm_locator.config import Settings
from atm_locator.main import app
from atm_locator.routers.atms_router import get_proximity_query
from atm_locator.services.proximity_cache import MemoryCacheStore, ProximityCache
from atm_locator.services.proximity_query import ProximityQuery
from atm_locator.utils.d1_store import D1Store

SETTINGS = Settings(
    cloudflare_api_token="token",
    cloudflare_account_id="acct",
    cloudflare_database_id="db",
)
ADDRESS = {"street_name": "Broadway", "street_number": "1", "city": "New York", "state": "NY", "zip": "10004"}
CENTER_ROW = {"id": "atm-1", "name": "Bowling Green", "address": json.dumps(ADDRESS), "lat": 40.7128, "long": -74.0060}


class Backend:
    """MockTransport handler counting D1 calls."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"success": True, "result": [{"results": [CENTER_ROW]}]}
        self.calls = 0

    def __call__(self, request):
        self.calls += 1
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def wire():
    def _wire(backend, settings=SETTINGS):
        cache_store = MemoryCacheStore()
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
        query = ProximityQuery(
            cache=ProximityCache(cache_store),
            store=D1Store(settings, http_client),
            settings=settings,
        )
        app.dependency_overrides[get_proximity_query] = lambda: query
        return cache_store

    yield _wire
    app.dependency_overrides.clear()


def test_root():
    with TestClient(app) as client:
        response = client.get("/")
    assert response.status_code == 200


def test_cache_miss_then_hit(wire):
    backend = Backend()
    wire(backend)
    params = {"lat": "40.7128", "lng": "-74.0060", "radius": "1"}

    with TestClient(app) as client:
        first = client.get("/api/atms", params=params)
        second = client.get("/api/atms", params=params)

    assert first.status_code == 200
    assert "cache-hit" not in first.headers
    body = first.json()
    assert len(body) == 1
    assert body[0]["id"] == "atm-1"
    assert body[0]["address"] == ADDRESS
    assert body[0]["distance"] == pytest.approx(0.0, abs=1e-9)
    assert set(body[0]) == {"id", "name", "latitude", "longitude", "address", "distance"}

    assert second.status_code == 200
    assert second.headers["cache-hit"] == "true"
    assert second.json() == body
    assert backend.calls == 1


def test_missing_radius_is_bad_request(wire):
    backend = Backend()
    wire(backend)

    with TestClient(app) as client:
        response = client.get("/api/atms", params={"lat": "40.7128", "lng": "-74.0060"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters"}
    assert backend.calls == 0


def test_unparseable_param_is_bad_request(wire):
    wire(Backend())

    with TestClient(app) as client:
        response = client.get("/api/atms", params={"lat": "north", "lng": "-74.0060", "radius": "1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters"}


def test_backend_failure_is_generic_server_error(wire):
    backend = Backend(status_code=502, payload={"errors": ["upstream exploded"]})
    wire(backend)
    params = {"lat": "40.7128", "lng": "-74.0060", "radius": "1"}

    with TestClient(app) as client:
        first = client.get("/api/atms", params=params)
        second = client.get("/api/atms", params=params)

    assert first.status_code == 500
    assert first.json() == {"error": "Internal Server Error"}
    assert "upstream" not in first.text
    # nothing was cached, so the backend is queried again
    assert second.status_code == 500
    assert backend.calls == 2


def test_missing_configuration_only_on_miss(wire):
    backend = Backend()
    cache_store = wire(backend, settings=Settings())
    params = {"lat": "40.7128", "lng": "-74.0060", "radius": "1"}

    with TestClient(app) as client:
        missing = client.get("/api/atms", params=params)
        asyncio.run(cache_store.set("atm-cache:40.71_-74.01", "[]", 60))
        hit = client.get("/api/atms", params=params)

    assert missing.status_code == 500
    assert missing.json() == {"error": "Missing Cloudflare configuration"}
    assert hit.status_code == 200
    assert hit.headers["cache-hit"] == "true"
    assert hit.json() == []
    assert backend.calls == 0


def test_non_object_backend_body_is_json_server_error(wire):
    wire(Backend(payload=["not", "an", "envelope"]))

    with TestClient(app) as client:
        response = client.get("/api/atms", params={"lat": "40.7128", "lng": "-74.0060", "radius": "1"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}
