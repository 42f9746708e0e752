"""Lumina Backend - FastAPI Routes

One route-safety widget session per process. The rendering client drives it
through these endpoints and redraws from the returned state and map view.
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from coordinator import RequestCoordinator, build_coordinator
from errors import InvalidSubmissionError, ProviderInitError
from models import (
    LocationUpdate, MapView, SessionResponse, SubmitRequest, WidgetOptions,
    ZoneResponse,
)
from providers import client
from zones import icon_for, risk_color

logger = logging.getLogger("lumina")


# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="Lumina Route Safety API", version="1.0.0")

_allowed_origins = [
    f"http://localhost:{p}" for p in range(3000, 3010)
] + [
    f"http://localhost:{p}" for p in range(5173, 5180)
] + [
    f"http://127.0.0.1:{p}" for p in range(3000, 3010)
] + [
    f"http://127.0.0.1:{p}" for p in range(5173, 5180)
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_coordinator: Optional[RequestCoordinator] = None


def get_coordinator() -> RequestCoordinator:
    global _coordinator
    if _coordinator is None:
        _coordinator = build_coordinator()
    return _coordinator


def _session(coordinator: RequestCoordinator) -> SessionResponse:
    return SessionResponse(state=coordinator.snapshot(), badge=coordinator.badge())


def _current_coordinator(build: bool = True) -> Optional[RequestCoordinator]:
    # Lifespan hooks are not resolved through Depends, so honour overrides here
    override = app.dependency_overrides.get(get_coordinator)
    if override is not None:
        return override()
    return get_coordinator() if build else _coordinator


# ─────────────────────────── Startup / Shutdown ─────────────────

@app.on_event("startup")
async def startup_event():
    """Start geolocation and map provider initialization."""
    await _current_coordinator().start()
    logger.info("Route safety session started")


@app.on_event("shutdown")
async def shutdown_event():
    coordinator = _current_coordinator(build=False)
    if coordinator is not None:
        coordinator.dispose()
    await client.aclose()


# ─────────────────────────── Utility Endpoints ──────────────────

@app.get("/api/health")
async def health(coordinator: RequestCoordinator = Depends(get_coordinator)):
    return {"status": "ok", "map": coordinator.view.status, "version": "1.0.0"}


@app.get("/api/zones", response_model=list[ZoneResponse])
async def list_zones(coordinator: RequestCoordinator = Depends(get_coordinator)):
    """Static safety zones with their marker visuals."""
    return [
        ZoneResponse(
            zone=zone,
            color=risk_color(zone.riskLevel),
            icon=icon_for("zone", zone.riskLevel, label=str(zone.incidents)),
        )
        for zone in coordinator.registry.zones()
    ]


# ─────────────────────────── Session ────────────────────────────

@app.get("/api/session", response_model=SessionResponse)
async def get_session(coordinator: RequestCoordinator = Depends(get_coordinator)):
    return _session(coordinator)


@app.post("/api/session/submit", response_model=SessionResponse)
async def submit_route(req: SubmitRequest, coordinator: RequestCoordinator = Depends(get_coordinator)):
    """Resolve both addresses, plan the route and score it."""
    try:
        await coordinator.submit(req.origin, req.destination, req.waypoints)
    except InvalidSubmissionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ProviderInitError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _session(coordinator)


@app.post("/api/session/retry", response_model=SessionResponse)
async def retry_route(coordinator: RequestCoordinator = Depends(get_coordinator)):
    try:
        await coordinator.retry()
    except ProviderInitError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _session(coordinator)


@app.post("/api/session/clear", response_model=SessionResponse)
async def clear_route(coordinator: RequestCoordinator = Depends(get_coordinator)):
    coordinator.clear()
    return _session(coordinator)


@app.post("/api/session/options", response_model=SessionResponse)
async def apply_options(options: WidgetOptions, coordinator: RequestCoordinator = Depends(get_coordinator)):
    """Direct coordinate input from the host page."""
    try:
        await coordinator.apply_options(options)
    except ProviderInitError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _session(coordinator)


# ─────────────────────────── Map ────────────────────────────────

@app.get("/api/map", response_model=MapView)
async def get_map(coordinator: RequestCoordinator = Depends(get_coordinator)):
    return coordinator.map_view()


@app.post("/api/map/zones/{zone_id}/select", response_model=MapView)
async def select_zone(zone_id: str, coordinator: RequestCoordinator = Depends(get_coordinator)):
    try:
        coordinator.select_zone(zone_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown safety zone '{zone_id}'")
    return coordinator.map_view()


@app.delete("/api/map/selection", response_model=MapView)
async def clear_selection(coordinator: RequestCoordinator = Depends(get_coordinator)):
    coordinator.clear_selection()
    return coordinator.map_view()


@app.post("/api/map/location", response_model=MapView)
async def update_location(loc: LocationUpdate, coordinator: RequestCoordinator = Depends(get_coordinator)):
    """User position reported by the client's own geolocation."""
    coordinator.update_user_location(loc.lat, loc.lng)
    return coordinator.map_view()
