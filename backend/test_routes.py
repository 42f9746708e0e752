import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGeocoder, make_coordinator
from readiness import ReadinessGate
from errors import ProviderInitError
from routes import app, get_coordinator


@pytest.fixture
def coordinator():
    return make_coordinator()


@pytest.fixture
def api(coordinator):
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _submit(api, origin="Connaught Place, Delhi", destination="Lajpat Nagar, Delhi"):
    return api.post("/api/session/submit", json={"origin": origin, "destination": destination})


def test_health(api):
    r = api.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["map"] == "ready"


def test_zones(api):
    zones = api.get("/api/zones").json()

    assert len(zones) == 6
    paharganj = next(z for z in zones if z["zone"]["id"] == "4")
    assert paharganj["color"] == "#EF4444"
    assert paharganj["icon"]["label"] == "15"


def test_submit_success(api):
    r = _submit(api)

    assert r.status_code == 200
    body = r.json()
    assert body["state"]["phase"] == "ready"
    assert body["state"]["showDirections"] is True
    assert body["state"]["routeInfo"]["safetyScore"] == 87
    assert body["badge"] == {"label": "SAFE ROUTE", "tier": "safe"}

    view = api.get("/api/map").json()
    assert len(view["polyline"]) == 2
    assert {m["id"] for m in view["markers"]} >= {"origin", "destination", "zone-1"}


def test_submit_validation_error(api, coordinator):
    r = _submit(api, destination="")

    assert r.status_code == 422
    assert r.json()["detail"] == "Please enter both origin and destination"
    assert api.get("/api/session").json()["state"]["phase"] == "idle"


def test_submit_unresolvable(api):
    r = _submit(api, destination="Nowhere Street 404")

    assert r.status_code == 200
    state = r.json()["state"]
    assert state["phase"] == "error"
    assert state["errorMessage"].startswith("Could not find one or both locations")
    assert state["routeInfo"] is None
    assert r.json()["badge"] is None


def test_retry_and_clear(api, coordinator):
    coordinator.resolver.geocoder = FakeGeocoder(results={})
    assert _submit(api).json()["state"]["phase"] == "error"

    coordinator.resolver.geocoder = FakeGeocoder()
    assert api.post("/api/session/retry").json()["state"]["phase"] == "ready"

    state = api.post("/api/session/clear").json()["state"]
    assert state["phase"] == "idle"
    assert state["originPoint"] is None
    assert state["showDirections"] is False


def test_zone_selection(api):
    overlay = api.post("/api/map/zones/4/select").json()["overlay"]
    assert overlay["badge"] == "HIGH RISK"
    assert overlay["actions"] == ["avoid_area"]

    overlay = api.post("/api/map/zones/1/select").json()["overlay"]
    assert overlay["zoneId"] == "1"
    assert overlay["actions"] == []

    assert api.post("/api/map/zones/42/select").status_code == 404
    assert api.delete("/api/map/selection").json()["overlay"] is None


def test_user_location(api):
    view = api.get("/api/map").json()
    assert view["center"] == {"lat": 28.6139, "lng": 77.2090}
    assert view["zoom"] == 11

    view = api.post("/api/map/location", json={"lat": 12.9, "lng": 77.6}).json()
    assert view["center"] == {"lat": 12.9, "lng": 77.6}
    assert view["zoom"] == 14

    assert api.post("/api/map/location", json={"lat": 123, "lng": 0}).status_code == 422


def test_options(api):
    r = api.post("/api/session/options", json={
        "origin": {"lat": 28.6315, "lng": 77.2167, "name": "A"},
        "destination": {"lat": 28.5677, "lng": 77.2433, "name": "B"},
        "showDirections": True,
    })

    assert r.status_code == 200
    assert r.json()["state"]["routeInfo"]["distance"] == "12.5 km"


def test_provider_init_failure():
    async def failing():
        raise ProviderInitError("GOOGLE_MAPS_API_KEY is not configured")

    coordinator = make_coordinator(gate=ReadinessGate(failing))
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    try:
        api = TestClient(app)
        first = _submit(api)
        assert first.json()["state"]["errorMessage"] == "Error loading Google Maps"
        assert api.get("/api/map").json()["status"] == "error"
        assert _submit(api).status_code == 503
    finally:
        app.dependency_overrides.clear()


def test_lifespan_uses_overridden_coordinator():
    async def loader():
        return None

    coordinator = make_coordinator(gate=ReadinessGate(loader))
    assert coordinator.map_view().status == "loading"

    app.dependency_overrides[get_coordinator] = lambda: coordinator
    try:
        with TestClient(app) as api:
            assert api.get("/api/health").json()["map"] == "ready"
    finally:
        app.dependency_overrides.clear()

    # Shutdown disposed the same coordinator
    with pytest.raises(RuntimeError):
        asyncio.run(coordinator.submit("Connaught Place, Delhi", "Lajpat Nagar, Delhi"))
