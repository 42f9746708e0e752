"""Lumina Backend - Map View State

Everything the rendering surface needs to draw the map: center and zoom,
markers, the route polyline, the single zone overlay and the provider
readiness status. Setters write into the session state handed over by the
coordinator; nothing here talks to a provider.
"""

import logging
from typing import Optional

from config import (
    DEFAULT_CENTER, DEFAULT_ZOOM, USER_LOCATION_ZOOM, MAP_LOAD_ERROR_MESSAGE,
)
from models import (
    LatLng, MapMarker, MapStatus, MapView, SafetyZone, SessionState, ZoneOverlay,
)
from zones import SafetyZoneRegistry, icon_for, risk_color

logger = logging.getLogger("lumina.map")


class MapViewState:
    def __init__(self, state: SessionState, registry: SafetyZoneRegistry):
        self.state = state
        self.registry = registry
        self.status: MapStatus = "loading"
        self.load_error: Optional[str] = None

    # ── Center / zoom ──

    @property
    def center(self) -> LatLng:
        if self.state.userLocation is not None:
            return self.state.userLocation
        return LatLng(**DEFAULT_CENTER)

    @property
    def zoom(self) -> int:
        return USER_LOCATION_ZOOM if self.state.userLocation is not None else DEFAULT_ZOOM

    def set_user_location(self, lat: float, lng: float) -> None:
        self.state.userLocation = LatLng(lat=lat, lng=lng)
        logger.info(f"User location set to ({lat:.4f}, {lng:.4f})")

    def location_failed(self, error: Exception) -> None:
        # Keep whatever center we have; never surfaced to the user.
        logger.warning(f"Could not get user location: {error}")

    # ── Selection ──

    def select_zone(self, zone: SafetyZone) -> None:
        self.state.selectedZone = zone

    def clear_selection(self) -> None:
        self.state.selectedZone = None

    def overlay(self) -> Optional[ZoneOverlay]:
        zone = self.state.selectedZone
        if zone is None:
            return None
        return ZoneOverlay(
            zoneId=zone.id,
            name=zone.name,
            riskLevel=zone.riskLevel,
            badge=f"{zone.riskLevel.upper()} RISK",
            color=risk_color(zone.riskLevel),
            incidents=zone.incidents,
            lastUpdated=zone.lastUpdated,
            position=LatLng(lat=zone.lat, lng=zone.lng),
            actions=["avoid_area"] if zone.riskLevel == "high" else [],
        )

    # ── Readiness ──

    def mark_ready(self) -> None:
        self.status = "ready"
        self.load_error = None

    def mark_failed(self, error: Exception) -> None:
        self.status = "error"
        self.load_error = str(error)
        logger.error(f"Map provider unavailable: {error}")

    # ── Rendering snapshot ──

    def markers(self) -> list[MapMarker]:
        markers = []
        if self.state.userLocation is not None:
            markers.append(MapMarker(
                id="user",
                title="Your Location",
                position=self.state.userLocation,
                icon=icon_for("user"),
            ))
        for zone in self.registry.zones():
            markers.append(MapMarker(
                id=f"zone-{zone.id}",
                title=zone.name,
                position=LatLng(lat=zone.lat, lng=zone.lng),
                icon=icon_for("zone", zone.riskLevel, label=str(zone.incidents)),
                selectable=True,
            ))
        if self.state.originPoint is not None:
            p = self.state.originPoint
            markers.append(MapMarker(
                id="origin",
                title=f"Origin: {p.name}",
                position=LatLng(lat=p.lat, lng=p.lng),
                icon=icon_for("origin"),
            ))
        if self.state.destinationPoint is not None:
            p = self.state.destinationPoint
            markers.append(MapMarker(
                id="destination",
                title=f"Destination: {p.name}",
                position=LatLng(lat=p.lat, lng=p.lng),
                icon=icon_for("destination"),
            ))
        return markers

    def snapshot(self) -> MapView:
        if self.status == "error":
            # Full replacement: nothing of the map is drawn.
            return MapView(
                status="error",
                center=LatLng(**DEFAULT_CENTER),
                zoom=DEFAULT_ZOOM,
                errorMessage=MAP_LOAD_ERROR_MESSAGE,
            )
        if self.status == "loading":
            return MapView(status="loading", center=self.center, zoom=self.zoom)

        route = self.state.route if self.state.showDirections else None
        return MapView(
            status="ready",
            center=self.center,
            zoom=self.zoom,
            markers=self.markers(),
            polyline=route.polyline if route else [],
            overlay=self.overlay(),
            loading=self.state.loading,
        )
