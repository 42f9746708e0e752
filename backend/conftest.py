import asyncio
from typing import Sequence

import pytest

from coordinator import RequestCoordinator
from directions import RoutePlanner
from geocoding import AddressResolver
from models import GeocodeCandidate, LatLng, Route, RoutePoint
from readiness import ReadinessGate
from scoring import SampleSafetyScorer
from zones import SafetyZoneRegistry

CONNAUGHT_PLACE = GeocodeCandidate(
    lat=28.6315, lng=77.2167,
    formattedAddress="Connaught Place, New Delhi, Delhi 110001, India",
)
LAJPAT_NAGAR = GeocodeCandidate(
    lat=28.5677, lng=77.2433,
    formattedAddress="Lajpat Nagar, New Delhi, Delhi, India",
)


class FakeGeocoder:
    """Deterministic geocoder: address → candidates, or a raised error."""

    def __init__(self, results=None, errors=None):
        self.results = results if results is not None else {
            "Connaught Place, Delhi": [CONNAUGHT_PLACE],
            "Lajpat Nagar, Delhi": [LAJPAT_NAGAR],
        }
        self.errors = errors or {}
        self.calls: list[str] = []

    async def geocode(self, address: str) -> list[GeocodeCandidate]:
        self.calls.append(address)
        await asyncio.sleep(0)
        if address in self.errors:
            raise self.errors[address]
        return self.results.get(address, [])


class FakeDirections:
    """Straight-line route through the stops; optionally fails."""

    def __init__(self, error: Exception = None, stop_order: list[int] = None):
        self.error = error
        self.stop_order = stop_order
        self.calls: list[dict] = []

    async def route(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        waypoints: Sequence[RoutePoint],
        mode: str = "driving",
        optimize_waypoints: bool = True,
    ) -> Route:
        self.calls.append({
            "origin": origin,
            "destination": destination,
            "waypoints": list(waypoints),
            "mode": mode,
            "optimize_waypoints": optimize_waypoints,
        })
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        order = self.stop_order if self.stop_order is not None else list(range(len(waypoints)))
        stops = [waypoints[i] for i in order]
        return Route(
            origin=origin,
            destination=destination,
            waypoints=stops,
            stopOrder=order,
            polyline=[[p.lat, p.lng] for p in [origin, *stops, destination]],
            distanceMeters=12500,
            durationSeconds=1680,
            distance="12.5 km",
            duration="28 mins",
        )


class FakeGeolocation:
    def __init__(self, position: LatLng = None, error: Exception = None, delay: float = 0.0):
        self.position = position
        self.error = error
        self.delay = delay
        self.calls = 0

    async def current_position(self, max_age: float = 60.0) -> LatLng:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.position


async def _noop_loader():
    return None


def ready_gate() -> ReadinessGate:
    gate = ReadinessGate(_noop_loader)
    asyncio.run(gate.wait())
    return gate


def make_coordinator(geocoder=None, directions=None, gate=None, scorer=None, geolocation=None):
    gate = gate or ready_gate()
    return RequestCoordinator(
        resolver=AddressResolver(geocoder or FakeGeocoder()),
        planner=RoutePlanner(directions or FakeDirections(), gate),
        scorer=scorer or SampleSafetyScorer(),
        registry=SafetyZoneRegistry(),
        gate=gate,
        geolocation=geolocation,
    )


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def directions():
    return FakeDirections()


@pytest.fixture
def registry():
    return SafetyZoneRegistry()


@pytest.fixture
def coordinator(geocoder, directions):
    return make_coordinator(geocoder, directions)
