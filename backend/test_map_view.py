from errors import GeolocationError, ProviderInitError
from map_view import MapViewState
from models import RoutePoint, SessionState


def _view(registry):
    view = MapViewState(SessionState(), registry)
    view.mark_ready()
    return view


def test_default_center_without_user_location(registry):
    view = _view(registry)

    assert (view.center.lat, view.center.lng) == (28.6139, 77.2090)
    assert view.zoom == 11


def test_user_location_recenters(registry):
    view = _view(registry)
    view.set_user_location(12.9, 77.6)

    assert (view.center.lat, view.center.lng) == (12.9, 77.6)
    assert view.zoom == 14
    assert view.snapshot().markers[0].id == "user"


def test_geolocation_failure_keeps_default(registry, caplog):
    view = _view(registry)

    with caplog.at_level("WARNING", logger="lumina.map"):
        view.location_failed(GeolocationError("User denied Geolocation"))

    snap = view.snapshot()
    assert (snap.center.lat, snap.center.lng) == (28.6139, 77.2090)
    assert snap.zoom == 11
    assert snap.errorMessage is None
    assert "denied" in caplog.text


def test_selecting_replaces_previous_zone(registry):
    view = _view(registry)

    view.select_zone(registry.get("4"))
    overlay = view.overlay()
    assert overlay.zoneId == "4"
    assert overlay.badge == "HIGH RISK"
    assert overlay.incidents == 15
    assert overlay.actions == ["avoid_area"]

    view.select_zone(registry.get("1"))
    overlay = view.overlay()
    assert overlay.zoneId == "1"
    assert overlay.name == "Connaught Place"
    assert overlay.badge == "LOW RISK"
    assert overlay.incidents == 2
    assert overlay.actions == []
    assert view.state.selectedZone.id == "1"


def test_clear_selection(registry):
    view = _view(registry)
    view.select_zone(registry.get("3"))
    view.clear_selection()

    assert view.overlay() is None
    assert view.snapshot().overlay is None


def test_markers_include_zones_and_endpoints(registry):
    state = SessionState(
        originPoint=RoutePoint(lat=28.6315, lng=77.2167, name="Connaught Place"),
        destinationPoint=RoutePoint(lat=28.5677, lng=77.2433, name="Lajpat Nagar"),
    )
    view = MapViewState(state, registry)
    view.mark_ready()

    markers = {m.id: m for m in view.snapshot().markers}
    assert markers["zone-4"].icon.color == "#EF4444"
    assert markers["zone-4"].icon.label == "15"
    assert markers["zone-4"].selectable
    assert markers["origin"].title == "Origin: Connaught Place"
    assert markers["destination"].title == "Destination: Lajpat Nagar"
    assert "user" not in markers


def test_loading_and_failed_states(registry):
    view = MapViewState(SessionState(), registry)
    assert view.snapshot().status == "loading"
    assert view.snapshot().markers == []

    view.mark_failed(ProviderInitError("bad key"))
    snap = view.snapshot()
    assert snap.status == "error"
    assert snap.errorMessage == "Error loading Google Maps"
    assert snap.markers == []
