"""Lumina Backend - Provider Readiness Gate"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from errors import ProviderInitError

logger = logging.getLogger("lumina.readiness")


class ReadinessGate:
    """One-time asynchronous initialization barrier.

    The loader runs at most once; concurrent waiters share the same run.
    A failed load is terminal and every later wait() re-raises it.
    """

    def __init__(self, loader: Callable[[], Awaitable[None]]):
        self._loader = loader
        self._task: Optional[asyncio.Task] = None
        self.state = "pending"  # pending, ready, failed
        self.error: Optional[ProviderInitError] = None

    @property
    def is_ready(self) -> bool:
        return self.state == "ready"

    @property
    def failed(self) -> bool:
        return self.state == "failed"

    async def wait(self) -> None:
        if self.state == "pending":
            if self._task is None:
                self._task = asyncio.ensure_future(self._load())
            await asyncio.shield(self._task)
        if self.state == "failed":
            raise self.error

    async def _load(self) -> None:
        try:
            await self._loader()
        except ProviderInitError as e:
            self._fail(e)
        except Exception as e:
            self._fail(ProviderInitError(f"Map provider failed to load: {e}"))
        else:
            self.state = "ready"
            logger.info("Map provider ready")

    def _fail(self, error: ProviderInitError) -> None:
        self.state = "failed"
        self.error = error
        logger.error(f"Map provider initialization failed: {error}")
