"""Lumina Backend - Route Planning"""

import itertools
import logging
from typing import Optional, Sequence, Union

from errors import RouteComputationError
from models import Route, RoutePoint
from providers import DirectionsClient
from readiness import ReadinessGate

logger = logging.getLogger("lumina.directions")


class RoutePlanner:
    """Multi-stop driving routes with waypoint reordering.

    plan() returns the Route, a RouteComputationError when the provider
    fails, or None when the call was a no-op: provider not ready yet, or a
    newer plan() started before this one resolved.
    """

    def __init__(self, directions: DirectionsClient, gate: ReadinessGate):
        self.directions = directions
        self.gate = gate
        self._tickets = itertools.count(1)
        self._latest = 0

    async def plan(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        waypoints: Sequence[RoutePoint] = (),
    ) -> Optional[Union[Route, RouteComputationError]]:
        if not self.gate.is_ready:
            logger.info("Route planning skipped: map provider not ready")
            return None

        ticket = next(self._tickets)
        self._latest = ticket
        logger.info(
            f"Planning route ({origin.lat:.4f}, {origin.lng:.4f}) → "
            f"({destination.lat:.4f}, {destination.lng:.4f}) via {len(waypoints)} waypoint(s)"
        )

        try:
            route = await self.directions.route(
                origin, destination, list(waypoints),
                mode="driving", optimize_waypoints=True,
            )
        except Exception as e:
            if ticket != self._latest:
                return None
            logger.warning(f"Error calculating route: {e}")
            return RouteComputationError(str(e))

        if ticket != self._latest:
            logger.info(f"Discarding stale route result (plan #{ticket}, latest #{self._latest})")
            return None
        return route
