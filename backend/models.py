"""Lumina Backend - Pydantic Models"""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

RiskLevel = Literal["low", "medium", "high"]
Phase = Literal["idle", "resolving", "ready", "error"]
MapStatus = Literal["loading", "ready", "error"]
BadgeTier = Literal["safe", "moderate", "high"]


class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class RoutePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    name: str = ""


class SafetyZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    riskLevel: RiskLevel
    incidents: int = Field(ge=0)
    lastUpdated: str  # display string, e.g. "5 min ago"
    lat: float
    lng: float


class RouteInfo(BaseModel):
    distance: str
    duration: str
    safetyScore: int = Field(ge=0, le=100)
    alternativeRoutes: int = Field(default=0, ge=0)


class SafetyBadge(BaseModel):
    label: str  # SAFE ROUTE, MODERATE RISK, HIGH RISK
    tier: BadgeTier


class GeocodeCandidate(BaseModel):
    lat: float
    lng: float
    formattedAddress: str


class RouteLeg(BaseModel):
    distanceMeters: int = 0
    durationSeconds: int = 0


class Route(BaseModel):
    origin: RoutePoint
    destination: RoutePoint
    waypoints: list[RoutePoint] = []  # in visiting order
    stopOrder: list[int] = []         # input waypoint indices, in visiting order
    polyline: list[list[float]] = []  # [[lat, lng], ...]
    legs: list[RouteLeg] = []
    distanceMeters: int = 0
    durationSeconds: int = 0
    distance: str = ""
    duration: str = ""


class IconDescriptor(BaseModel):
    kind: str   # zone, origin, destination, user
    color: str
    size: int
    anchor: tuple[int, int]
    glyph: str  # circle, diamond, square, dot
    label: Optional[str] = None


class MapMarker(BaseModel):
    id: str
    title: str
    position: LatLng
    icon: IconDescriptor
    selectable: bool = False


class ZoneOverlay(BaseModel):
    zoneId: str
    name: str
    riskLevel: str
    badge: str  # e.g. "HIGH RISK"
    color: str
    incidents: int
    lastUpdated: str
    position: LatLng
    actions: list[str] = []


class MapView(BaseModel):
    status: MapStatus
    center: LatLng
    zoom: int
    markers: list[MapMarker] = []
    polyline: list[list[float]] = []
    overlay: Optional[ZoneOverlay] = None
    loading: bool = False
    errorMessage: Optional[str] = None


class WidgetOptions(BaseModel):
    origin: Optional[RoutePoint] = None
    destination: Optional[RoutePoint] = None
    waypoints: list[RoutePoint] = []
    showDirections: bool = False
    displaySizeClass: Optional[str] = None  # layout hint, not interpreted


class SessionState(BaseModel):
    originText: str = ""
    destinationText: str = ""
    originPoint: Optional[RoutePoint] = None
    destinationPoint: Optional[RoutePoint] = None
    waypoints: list[RoutePoint] = []
    showDirections: bool = False
    route: Optional[Route] = None
    routeInfo: Optional[RouteInfo] = None
    routeError: Optional[str] = None
    selectedZone: Optional[SafetyZone] = None
    userLocation: Optional[LatLng] = None
    phase: Phase = "idle"
    errorMessage: Optional[str] = None
    loading: bool = False
    displaySizeClass: Optional[str] = None


# ── HTTP request / response bodies ──

class SubmitRequest(BaseModel):
    origin: str = ""
    destination: str = ""
    waypoints: list[RoutePoint] = []


class LocationUpdate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ZoneResponse(BaseModel):
    zone: SafetyZone
    color: str
    icon: IconDescriptor


class SessionResponse(BaseModel):
    state: SessionState
    badge: Optional[SafetyBadge] = None
