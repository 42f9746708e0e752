"""Lumina Backend - External Providers (Google Geocoding, Routes, Geolocation)

Provider protocols are what the core depends on; the Google classes are the
production implementations. Every failure here raises ProviderError and the
calling component decides how to degrade.
"""

import logging
import time
from typing import Callable, Optional, Protocol, Sequence

import httpx
from cachetools import TTLCache

from config import (
    GOOGLE_MAPS_API_KEY, GEOCODE_URL, ROUTES_URL, GEOLOCATION_URL,
    HTTP_TIMEOUT, GEOLOCATION_MAX_AGE_S,
)
from errors import ProviderError, ProviderInitError
from models import GeocodeCandidate, LatLng, Route, RouteLeg, RoutePoint

logger = logging.getLogger("lumina.providers")

# Shared async HTTP client
client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)


# ─────────────────────────── Provider Protocols ─────────────────

class GeocodingClient(Protocol):
    async def geocode(self, address: str) -> list[GeocodeCandidate]: ...


class DirectionsClient(Protocol):
    async def route(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        waypoints: Sequence[RoutePoint],
        mode: str = "driving",
        optimize_waypoints: bool = True,
    ) -> Route: ...


class GeolocationClient(Protocol):
    async def current_position(self, max_age: float = GEOLOCATION_MAX_AGE_S) -> LatLng: ...


# ─────────────────────────── Readiness Loader ───────────────────

async def load_google_maps(api_key: str = GOOGLE_MAPS_API_KEY) -> None:
    """One-time provider initialization: the Maps key must be configured."""
    if not api_key:
        raise ProviderInitError("GOOGLE_MAPS_API_KEY is not configured")
    logger.info("Google Maps provider initialized")


# ─────────────────────────── Geocoding ──────────────────────────

class GoogleGeocodingClient:
    """Google Geocoding API: address → ranked candidates."""

    def __init__(self, http: Optional[httpx.AsyncClient] = None, api_key: str = GOOGLE_MAPS_API_KEY):
        self.http = http or client
        self.api_key = api_key

    async def geocode(self, address: str) -> list[GeocodeCandidate]:
        try:
            r = await self.http.get(GEOCODE_URL, params={"address": address, "key": self.api_key})
        except httpx.HTTPError as e:
            raise ProviderError(f"Geocoding request failed: {e}") from e
        if r.status_code != 200:
            raise ProviderError(f"Geocoding API error {r.status_code}: {r.text[:200]}")

        data = r.json()
        status = data.get("status", "")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise ProviderError(f"Geocoding status {status}: {data.get('error_message', '')}")

        candidates = []
        for result in data.get("results", []):
            loc = result.get("geometry", {}).get("location", {})
            if "lat" not in loc or "lng" not in loc:
                continue
            candidates.append(GeocodeCandidate(
                lat=loc["lat"],
                lng=loc["lng"],
                formattedAddress=result.get("formatted_address", address),
            ))
        return candidates


# ─────────────────────────── Route Directions ───────────────────

def _lat_lng_body(point: RoutePoint) -> dict:
    return {"location": {"latLng": {"latitude": point.lat, "longitude": point.lng}}}


def _parse_duration(value: str) -> int:
    # Routes API durations come as e.g. "1234s"
    if not value:
        return 0
    return int(float(value.rstrip("s")))


def format_duration(duration_seconds: int) -> str:
    dur_mins = duration_seconds // 60
    if dur_mins >= 60:
        return f"{dur_mins // 60} hour {dur_mins % 60} mins"
    return f"{dur_mins} mins"


def format_distance(dist_meters: int) -> str:
    if dist_meters >= 1000:
        return f"{dist_meters / 1000:.1f} km"
    return f"{dist_meters} m"


class GoogleDirectionsClient:
    """Google Routes API (computeRoutes) for a single multi-stop route."""

    travel_mode_map = {
        "driving": "DRIVE",
    }

    field_mask = ",".join([
        "routes.duration",
        "routes.distanceMeters",
        "routes.polyline.encodedPolyline",
        "routes.legs.duration",
        "routes.legs.distanceMeters",
        "routes.optimizedIntermediateWaypointIndex",
    ])

    def __init__(self, http: Optional[httpx.AsyncClient] = None, api_key: str = GOOGLE_MAPS_API_KEY):
        self.http = http or client
        self.api_key = api_key

    async def route(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        waypoints: Sequence[RoutePoint],
        mode: str = "driving",
        optimize_waypoints: bool = True,
    ) -> Route:
        if mode not in self.travel_mode_map:
            raise ProviderError(f"Unsupported travel mode: {mode}")

        body = {
            "origin": _lat_lng_body(origin),
            "destination": _lat_lng_body(destination),
            "travelMode": self.travel_mode_map[mode],
            "polylineQuality": "HIGH_QUALITY",
            "routeModifiers": {"avoidHighways": False, "avoidTolls": False},
        }
        if waypoints:
            body["intermediates"] = [_lat_lng_body(p) for p in waypoints]
            body["optimizeWaypointOrder"] = optimize_waypoints

        try:
            r = await self.http.post(
                ROUTES_URL,
                headers={
                    "Content-Type": "application/json",
                    "X-Goog-Api-Key": self.api_key,
                    "X-Goog-FieldMask": self.field_mask,
                },
                json=body,
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Routes request failed: {e}") from e
        if r.status_code != 200:
            raise ProviderError(f"Routes API error {r.status_code}: {r.text[:200]}")

        routes = r.json().get("routes", [])
        if not routes:
            raise ProviderError("Routes API returned no route")
        route = routes[0]

        stop_order = route.get("optimizedIntermediateWaypointIndex") or list(range(len(waypoints)))
        if sorted(stop_order) != list(range(len(waypoints))):
            raise ProviderError(f"Routes API returned invalid waypoint order {stop_order}")

        encoded = route.get("polyline", {}).get("encodedPolyline", "")
        duration_seconds = _parse_duration(route.get("duration", "0s"))
        dist_meters = int(route.get("distanceMeters", 0))

        return Route(
            origin=origin,
            destination=destination,
            waypoints=[waypoints[i] for i in stop_order],
            stopOrder=stop_order,
            polyline=decode_polyline(encoded) if encoded else [],
            legs=[
                RouteLeg(
                    distanceMeters=int(leg.get("distanceMeters", 0)),
                    durationSeconds=_parse_duration(leg.get("duration", "0s")),
                )
                for leg in route.get("legs", [])
            ],
            distanceMeters=dist_meters,
            durationSeconds=duration_seconds,
            distance=format_distance(dist_meters),
            duration=format_duration(duration_seconds),
        )


def decode_polyline(encoded: str) -> list[list[float]]:
    """Decode Google's encoded polyline format."""
    points = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        for coord in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            delta = ~(result >> 1) if (result & 1) else (result >> 1)
            if coord == 0:
                lat += delta
            else:
                lng += delta
        points.append([lat / 1e5, lng / 1e5])
    return points


# ─────────────────────────── Geolocation ────────────────────────

class GoogleGeolocationClient:
    """Best-effort position from the Google Geolocation API (IP based).

    The last fix is kept for the staleness window so repeated queries inside
    it do not hit the network.
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        api_key: str = GOOGLE_MAPS_API_KEY,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.http = http or client
        self.api_key = api_key
        self._timer = timer
        self._fixes = TTLCache(maxsize=1, ttl=GEOLOCATION_MAX_AGE_S, timer=timer)

    async def current_position(self, max_age: float = GEOLOCATION_MAX_AGE_S) -> LatLng:
        cached = self._fixes.get("fix")
        if cached is not None:
            position, fetched_at = cached
            if self._timer() - fetched_at < max_age:
                return position

        try:
            r = await self.http.post(
                GEOLOCATION_URL,
                params={"key": self.api_key},
                json={"considerIp": True},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Geolocation request failed: {e}") from e
        if r.status_code != 200:
            raise ProviderError(f"Geolocation API error {r.status_code}: {r.text[:200]}")

        loc = r.json().get("location", {})
        if "lat" not in loc or "lng" not in loc:
            raise ProviderError("Geolocation API returned no location")
        position = LatLng(lat=loc["lat"], lng=loc["lng"])
        self._fixes["fix"] = (position, self._timer())
        return position
