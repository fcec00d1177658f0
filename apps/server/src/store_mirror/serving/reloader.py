from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_RELOAD_INTERVAL_SEC = 60.0


class ReloadLoop:
    """
    Background task calling `reload` every `interval` seconds until stopped.

    The stop signal is a single-slot queue. The loop only looks at it while
    waiting for the timer, so a stop sent during a reload is seen once that
    reload has finished. Reload failures are logged and the loop goes on.
    """

    def __init__(
        self,
        reload: Callable[[], Awaitable[object]],
        *,
        interval: float = DEFAULT_RELOAD_INTERVAL_SEC,
    ) -> None:
        self._reload = reload
        self.interval = interval
        self._stop: asyncio.Queue[None] = asyncio.Queue(maxsize=1)
        self._task: asyncio.Task[None] | None = None
        self.reloads = 0
        self.failures = 0

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        if self._task is not None:
            raise RuntimeError("reload loop already started")
        self._task = asyncio.create_task(self._run(), name="reload-loop")
        return self._task

    async def stop(self) -> None:
        """Send the stop signal and wait for the loop task to finish."""
        if self._task is None:
            raise RuntimeError("reload loop was never started")
        await self._stop.put(None)
        # Re-raises if the loop task itself crashed.
        await self._task

    async def _wait_for_stop(self) -> bool:
        """True if stopped, False if the interval elapsed."""
        try:
            await asyncio.wait_for(self._stop.get(), timeout=self.interval)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        while True:
            if await self._wait_for_stop():
                logger.info("Stop signal received for reloader")
                return
            logger.info("Reloading from timer")
            try:
                await self._reload()
                self.reloads += 1
            except Exception:
                self.failures += 1
                logger.exception("Error reloading state")
