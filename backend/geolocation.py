"""Lumina Backend - Background Geolocation"""

import asyncio
import logging
from typing import Callable, Optional

from config import GEOLOCATION_TIMEOUT_S, GEOLOCATION_MAX_AGE_S
from errors import GeolocationError
from models import LatLng
from providers import GeolocationClient

logger = logging.getLogger("lumina.geolocation")


class GeolocationTask:
    """Fire-and-forget position lookup bound to a disposal token.

    Runs off the critical path of route submission. Once dispose() has been
    called, a late position or error is dropped instead of being delivered.
    """

    def __init__(
        self,
        client: GeolocationClient,
        on_position: Callable[[LatLng], None],
        on_error: Optional[Callable[[GeolocationError], None]] = None,
        timeout: float = GEOLOCATION_TIMEOUT_S,
        max_age: float = GEOLOCATION_MAX_AGE_S,
    ):
        self.client = client
        self.on_position = on_position
        self.on_error = on_error
        self.timeout = timeout
        self.max_age = max_age
        self.disposed = False
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        if self.disposed:
            raise RuntimeError("GeolocationTask already disposed")
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        return self._task

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def dispose(self) -> None:
        self.disposed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        try:
            position = await asyncio.wait_for(
                self.client.current_position(max_age=self.max_age),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            error = GeolocationError(f"Timed out after {self.timeout:.0f}s")
        except Exception as e:
            error = GeolocationError(str(e))
        else:
            if self.disposed:
                logger.info("Discarding user location: session disposed")
                return
            self.on_position(position)
            return

        if self.disposed:
            return
        if self.on_error is not None:
            self.on_error(error)
        else:
            logger.warning(f"Could not get user location: {error}")
