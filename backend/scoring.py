"""Lumina Backend - Route Safety Scoring"""

import logging
import math
from typing import Optional, Protocol, Sequence

import numpy as np

from config import (
    SAMPLE_ROUTE_INFO, SAFE_ROUTE_MIN, MODERATE_RISK_MIN,
    RISK_TIER_WEIGHTS, EXPOSURE_DECAY_M, SCORER,
)
from models import Route, RouteInfo, SafetyBadge, SafetyZone

logger = logging.getLogger("lumina.scoring")

EARTH_RADIUS_M = 6_371_000.0


class SafetyScorer(Protocol):
    def score(self, route: Route, zones: Sequence[SafetyZone]) -> RouteInfo: ...


# ─────────────────────────── Badge ──────────────────────────────

def safety_badge(score: int) -> SafetyBadge:
    """Classify a 0-100 safety score.

    Mapping (lower bounds inclusive):
      >= 80  → SAFE ROUTE
      60-79  → MODERATE RISK
      < 60   → HIGH RISK
    """
    if not 0 <= score <= 100:
        raise ValueError(f"Safety score out of range: {score}")
    if score >= SAFE_ROUTE_MIN:
        return SafetyBadge(label="SAFE ROUTE", tier="safe")
    elif score >= MODERATE_RISK_MIN:
        return SafetyBadge(label="MODERATE RISK", tier="moderate")
    else:
        return SafetyBadge(label="HIGH RISK", tier="high")


# ─────────────────────────── Scorers ────────────────────────────

class SampleSafetyScorer:
    """Fixed demo metrics, independent of the route."""

    def score(self, route: Route, zones: Sequence[SafetyZone]) -> RouteInfo:
        return RouteInfo(**SAMPLE_ROUTE_INFO)


def _min_distances_m(polyline: np.ndarray, zones: Sequence[SafetyZone]) -> np.ndarray:
    """Minimum great-circle distance (meters) from the polyline to each zone.

    polyline is an (n, 2) array of [lat, lng]; the result has one entry per zone.
    """
    lat1 = np.radians(polyline[:, 0])[np.newaxis, :]
    lng1 = np.radians(polyline[:, 1])[np.newaxis, :]
    lat2 = np.radians([z.lat for z in zones])[:, np.newaxis]
    lng2 = np.radians([z.lng for z in zones])[:, np.newaxis]

    a = (np.sin((lat2 - lat1) / 2) ** 2
         + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2)
    a = np.clip(a, 0.0, 1.0)
    dist = EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))
    return dist.min(axis=1)


class ZoneExposureScorer:
    """Score a route by how closely it passes known risk zones.

    Each zone contributes a penalty

        tier_weight * (1 + ln(1 + incidents)) * exp(-distance / decay)

    where distance is the closest approach of the polyline to the zone.
    The safety score is 100 minus the summed penalty, clamped to [0, 100].
    """

    def __init__(self, decay_m: float = EXPOSURE_DECAY_M, tier_weights: Optional[dict[str, float]] = None):
        self.decay_m = decay_m
        self.tier_weights = tier_weights or RISK_TIER_WEIGHTS

    def exposure(self, route: Route, zones: Sequence[SafetyZone]) -> float:
        points = route.polyline or [
            [route.origin.lat, route.origin.lng],
            *([w.lat, w.lng] for w in route.waypoints),
            [route.destination.lat, route.destination.lng],
        ]
        if not zones:
            return 0.0
        dists = _min_distances_m(np.asarray(points, dtype=float), zones)
        weights = np.array([
            self.tier_weights.get(z.riskLevel, 0.0) * (1.0 + math.log1p(z.incidents))
            for z in zones
        ])
        return float(np.sum(weights * np.exp(-dists / self.decay_m)))

    def score(self, route: Route, zones: Sequence[SafetyZone]) -> RouteInfo:
        penalty = self.exposure(route, zones)
        safety = int(round(max(0.0, min(100.0, 100.0 - penalty))))
        logger.info(f"Route exposure penalty {penalty:.2f} → safety score {safety}")
        return RouteInfo(
            distance=route.distance,
            duration=route.duration,
            safetyScore=safety,
            alternativeRoutes=0,
        )


def build_scorer(name: str = SCORER) -> SafetyScorer:
    if name == "exposure":
        return ZoneExposureScorer()
    if name != "sample":
        logger.warning(f"Unknown scorer '{name}', using sample metrics")
    return SampleSafetyScorer()
