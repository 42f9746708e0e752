"""Lumina Backend - Request Coordinator

Single owner of the SessionState. Sequences address resolution, the
readiness gate, route planning and scoring, and is the only place where
component failures become user-visible messages.

Phases:
    idle → resolving → ready
    any  → error → idle       (retry / clear)
    ready → idle              (clear)
"""

import asyncio
import logging
from typing import Optional, Sequence

from config import (
    MISSING_LOCATIONS_MESSAGE, UNRESOLVED_LOCATIONS_MESSAGE,
    MAP_LOAD_ERROR_MESSAGE, ZONES_FILE,
)
from directions import RoutePlanner
from errors import (
    InvalidSubmissionError, LuminaError, ProviderInitError,
    ResolutionError, RouteComputationError,
)
from geocoding import AddressResolver
from geolocation import GeolocationTask
from map_view import MapViewState
from models import (
    LatLng, MapView, RoutePoint, SafetyBadge, SafetyZone, SessionState,
    WidgetOptions,
)
from providers import (
    GeolocationClient, GoogleDirectionsClient, GoogleGeocodingClient,
    GoogleGeolocationClient, load_google_maps,
)
from readiness import ReadinessGate
from scoring import SafetyScorer, build_scorer, safety_badge
from zones import JsonZoneSource, SafetyZoneRegistry, SeedZoneSource

logger = logging.getLogger("lumina.coordinator")


class RequestCoordinator:
    def __init__(
        self,
        resolver: AddressResolver,
        planner: RoutePlanner,
        scorer: SafetyScorer,
        registry: SafetyZoneRegistry,
        gate: ReadinessGate,
        geolocation: Optional[GeolocationClient] = None,
    ):
        self.resolver = resolver
        self.planner = planner
        self.scorer = scorer
        self.registry = registry
        self.gate = gate
        self.geolocation = geolocation
        self.state = SessionState()
        self.view = MapViewState(self.state, registry)
        if gate.is_ready:
            self.view.mark_ready()
        self._generation = 0
        self._geo_task: Optional[GeolocationTask] = None
        self._disposed = False

    # ─────────────────────────── Lifecycle ──────────────────────

    async def start(self) -> None:
        """Kick off background geolocation and provider initialization."""
        self._check_live()
        if self.geolocation is not None and self._geo_task is None:
            self._geo_task = GeolocationTask(
                self.geolocation,
                on_position=self._on_position,
                on_error=self.view.location_failed,
            )
            self._geo_task.start()
        await self._ensure_ready()

    def dispose(self) -> None:
        """Tear down: cancel background work and ignore anything still in flight."""
        self._disposed = True
        self._generation += 1
        if self._geo_task is not None:
            self._geo_task.dispose()
        logger.info("Coordinator disposed")

    # ─────────────────────────── Read side ──────────────────────

    @property
    def phase(self) -> str:
        return self.state.phase

    def snapshot(self) -> SessionState:
        return self.state.model_copy(deep=True)

    def badge(self) -> Optional[SafetyBadge]:
        if self.state.routeInfo is None:
            return None
        return safety_badge(self.state.routeInfo.safetyScore)

    def map_view(self) -> MapView:
        return self.view.snapshot()

    # ─────────────────────────── Route submission ───────────────

    async def submit(
        self,
        origin_text: str,
        destination_text: str,
        waypoints: Sequence[RoutePoint] = (),
    ) -> SessionState:
        self._check_live()
        if not origin_text.strip() or not destination_text.strip():
            raise InvalidSubmissionError(MISSING_LOCATIONS_MESSAGE)
        if self.gate.failed:
            raise self.gate.error

        if self.state.phase == "error":
            self._to_idle()
        generation = self._begin()

        s = self.state
        s.originText = origin_text
        s.destinationText = destination_text
        s.waypoints = list(waypoints)
        self._discard_route()
        s.phase = "resolving"
        s.loading = True
        logger.info(f"Route request: '{origin_text}' → '{destination_text}'")

        origin_point, destination_point = await asyncio.gather(
            self.resolver.resolve(origin_text),
            self.resolver.resolve(destination_text),
        )
        if self._is_stale(generation):
            logger.info("Discarding superseded address resolution")
            return self.snapshot()

        if origin_point is None or destination_point is None:
            self._fail(ResolutionError(UNRESOLVED_LOCATIONS_MESSAGE))
            return self.snapshot()

        s.originPoint = origin_point
        s.destinationPoint = destination_point
        s.showDirections = True
        s.phase = "ready"
        await self._plan_route(generation)
        return self.snapshot()

    async def retry(self) -> SessionState:
        """Resubmit the last texts after a failed submission."""
        if self.state.phase != "error":
            return self.snapshot()
        s = self.state
        return await self.submit(s.originText, s.destinationText, list(s.waypoints))

    async def apply_options(self, options: WidgetOptions) -> SessionState:
        """Direct coordinate input, bypassing address resolution."""
        self._check_live()
        if self.gate.failed:
            raise self.gate.error
        generation = self._begin()

        s = self.state
        s.displaySizeClass = options.displaySizeClass
        s.waypoints = list(options.waypoints)
        self._discard_route()
        s.originPoint = options.origin
        s.destinationPoint = options.destination

        if not (options.showDirections and options.origin and options.destination):
            if options.showDirections:
                logger.info("showDirections ignored: origin and destination are both required")
            s.phase = "idle"
            return self.snapshot()

        s.showDirections = True
        s.phase = "ready"
        s.loading = True
        await self._plan_route(generation)
        return self.snapshot()

    def clear(self) -> SessionState:
        """Back to the exact initial session, from any phase."""
        self._generation += 1
        self.state = SessionState()
        self.view.state = self.state
        logger.info("Session cleared")
        return self.snapshot()

    # ─────────────────────────── Map setters ────────────────────

    def select_zone(self, zone_id: str) -> SafetyZone:
        zone = self.registry.get(zone_id)
        if zone is None:
            raise KeyError(zone_id)
        self.view.select_zone(zone)
        return zone

    def clear_selection(self) -> None:
        self.view.clear_selection()

    def update_user_location(self, lat: float, lng: float) -> None:
        self._check_live()
        self.view.set_user_location(lat, lng)

    # ─────────────────────────── Internals ──────────────────────

    def _check_live(self) -> None:
        if self._disposed:
            raise RuntimeError("RequestCoordinator has been disposed")

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return self._disposed or generation != self._generation

    def _discard_route(self) -> None:
        s = self.state
        s.originPoint = None
        s.destinationPoint = None
        s.showDirections = False
        s.route = None
        s.routeInfo = None
        s.routeError = None
        s.errorMessage = None
        s.loading = False

    def _to_idle(self) -> None:
        self._discard_route()
        self.state.phase = "idle"

    def _fail(self, error: LuminaError) -> None:
        logger.warning(f"Route request failed: {error}")
        self._discard_route()
        self.state.phase = "error"
        self.state.errorMessage = str(error)

    def _on_position(self, position: LatLng) -> None:
        if self._disposed:
            return
        self.view.set_user_location(position.lat, position.lng)

    async def _ensure_ready(self) -> bool:
        try:
            await self.gate.wait()
        except ProviderInitError as e:
            if not self._disposed:
                self.view.mark_failed(e)
            return False
        if not self._disposed:
            self.view.mark_ready()
        return True

    async def _plan_route(self, generation: int) -> None:
        ready = await self._ensure_ready()
        if self._is_stale(generation):
            return
        if not ready:
            self._fail(ProviderInitError(MAP_LOAD_ERROR_MESSAGE))
            return

        s = self.state
        result = await self.planner.plan(s.originPoint, s.destinationPoint, s.waypoints)
        if self._is_stale(generation):
            logger.info("Discarding superseded route")
            return

        s.loading = False
        if result is None:
            return
        if isinstance(result, RouteComputationError):
            # Points and selection stay; only the route is missing.
            s.routeError = str(result)
            return

        s.route = result
        s.routeInfo = self.scorer.score(result, self.registry.zones())
        logger.info(
            f"Route ready: {s.routeInfo.distance}, {s.routeInfo.duration}, "
            f"safety {s.routeInfo.safetyScore}"
        )


def build_coordinator() -> RequestCoordinator:
    """Wire the production providers from config."""
    source = JsonZoneSource(ZONES_FILE) if ZONES_FILE else SeedZoneSource()
    gate = ReadinessGate(load_google_maps)
    return RequestCoordinator(
        resolver=AddressResolver(GoogleGeocodingClient()),
        planner=RoutePlanner(GoogleDirectionsClient(), gate),
        scorer=build_scorer(),
        registry=SafetyZoneRegistry(source),
        gate=gate,
        geolocation=GoogleGeolocationClient(),
    )
