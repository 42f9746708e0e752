"""Lumina Backend - Safety Zone Registry & Risk Visuals"""

import json
import logging
from pathlib import Path
from typing import Optional

from config import SEED_SAFETY_ZONES, RISK_COLORS, NEUTRAL_COLOR
from models import IconDescriptor, SafetyZone

logger = logging.getLogger("lumina.zones")


# ─────────────────────────── Risk → Visual ──────────────────────

def risk_color(level: str) -> str:
    """Marker color for a risk level; unrecognized levels are neutral gray."""
    return RISK_COLORS.get(level, NEUTRAL_COLOR)


# (size, glyph, fixed color) per entity kind. Zone color follows its risk tier.
_ICON_SHAPES = {
    "zone": (40, "circle", None),
    "origin": (32, "diamond", RISK_COLORS["low"]),
    "destination": (32, "square", RISK_COLORS["high"]),
    "user": (32, "dot", "#3B82F6"),
}


def icon_for(kind: str, tier: Optional[str] = None, label: Optional[str] = None) -> IconDescriptor:
    """Describe the marker icon for an entity kind and risk tier.

    Pure: the renderer turns the descriptor into pixels.
    """
    if kind not in _ICON_SHAPES:
        raise ValueError(f"Unknown marker kind: {kind}")
    size, glyph, color = _ICON_SHAPES[kind]
    return IconDescriptor(
        kind=kind,
        color=color or risk_color(tier or ""),
        size=size,
        anchor=(size // 2, size // 2),
        glyph=glyph,
        label=label,
    )


# ─────────────────────────── Zone Sources ───────────────────────

class SeedZoneSource:
    """The built-in Delhi reference set."""

    def load(self) -> list[SafetyZone]:
        return [SafetyZone(**z) for z in SEED_SAFETY_ZONES]


class JsonZoneSource:
    """Zones from a JSON file holding a list of zone objects."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[SafetyZone]:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("zones", [])
        zones = [SafetyZone(**z) for z in data]
        logger.info(f"Loaded {len(zones)} safety zones from {self.path}")
        return zones


# ─────────────────────────── Registry ───────────────────────────

class SafetyZoneRegistry:
    """Read-only zone set, loaded once from the injected source."""

    def __init__(self, source=None):
        source = source or SeedZoneSource()
        zones = tuple(source.load())
        ids = [z.id for z in zones]
        if len(ids) != len(set(ids)):
            raise ValueError("Safety zone ids must be unique")
        self._zones = zones
        self._by_id = {z.id: z for z in zones}

    def zones(self) -> tuple[SafetyZone, ...]:
        return self._zones

    def get(self, zone_id: str) -> Optional[SafetyZone]:
        return self._by_id.get(zone_id)
