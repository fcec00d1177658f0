"""
Connection/shutdown coordination for the HTTP server.

RUNNING   the server accepts connections, the reload loop (if any) ticks
DRAINING  first SIGINT/SIGTERM seen: accepting stops, the reload loop is told
          to stop and awaited
STOPPED   in-flight connections finished, or the drain deadline passed and
          whatever is left is abandoned
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
import os
import signal
from typing import Any, Protocol

from .reloader import ReloadLoop

logger = logging.getLogger(__name__)

DEFAULT_DRAIN_TIMEOUT_SEC = 10.0


class Phase(str, enum.Enum):
    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownError(RuntimeError):
    """The shutdown contract itself broke (e.g. the reload task crashed)."""


class HttpServer(Protocol):
    """What the coordinator needs from the server (uvicorn.Server fits)."""

    should_exit: bool

    async def serve(self, sockets: Any = None) -> None: ...


def _shutdown_signals() -> list[signal.Signals]:
    sigs = [signal.SIGINT]
    # SIGTERM is only delivered as a real signal on POSIX.
    if os.name == "posix":
        sigs.append(signal.SIGTERM)
    return sigs


class ShutdownCoordinator:
    def __init__(
        self,
        server: HttpServer,
        reloader: ReloadLoop | None = None,
        *,
        drain_timeout: float = DEFAULT_DRAIN_TIMEOUT_SEC,
    ) -> None:
        self.server = server
        self.reloader = reloader
        self.drain_timeout = drain_timeout
        self.phase = Phase.STARTING
        self.drained: bool | None = None
        self._shutdown = asyncio.Event()
        self._installed: list[signal.Signals] = []

    # ------------------------
    # Shutdown trigger
    # ------------------------
    def request_shutdown(self, reason: str = "requested") -> None:
        if self._shutdown.is_set():
            logger.info("Shutdown already in progress, ignoring %s", reason)
            return
        logger.warning("Graceful shutdown received (%s)", reason)
        self._shutdown.set()

    def _on_signal(self, sig: signal.Signals) -> None:
        self.request_shutdown(sig.name)

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in _shutdown_signals():
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except NotImplementedError:
                # Windows event loops: fall back to a plain handler.
                signal.signal(
                    sig,
                    lambda s, _f: loop.call_soon_threadsafe(self._on_signal, signal.Signals(s)),
                )
            self._installed.append(sig)

    def remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed:
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                signal.signal(sig, signal.SIG_DFL)
        self._installed.clear()

    # ------------------------
    # Lifecycle
    # ------------------------
    async def run(self, *, install_signals: bool = True) -> None:
        if install_signals:
            self.install_signal_handlers()
        try:
            await self._run()
        finally:
            if install_signals:
                self.remove_signal_handlers()
            self.phase = Phase.STOPPED

    async def _run(self) -> None:
        serve_task = asyncio.create_task(self.server.serve(), name="http-server")
        if self.reloader is not None:
            self.reloader.start()
        self.phase = Phase.RUNNING

        waiter = asyncio.create_task(self._shutdown.wait(), name="shutdown-signal")
        await asyncio.wait({serve_task, waiter}, return_when=asyncio.FIRST_COMPLETED)

        if not waiter.done():
            # Server exited without being asked to (e.g. failed to bind).
            waiter.cancel()
            logger.error("HTTP server exited before shutdown was requested")
            await self._stop_reloader()
            serve_task.result()
            return

        self.phase = Phase.DRAINING
        self.server.should_exit = True
        await self._stop_reloader()

        done, _ = await asyncio.wait({serve_task}, timeout=self.drain_timeout)
        if serve_task in done:
            self.drained = True
            logger.info("all connections gracefully closed")
            if not serve_task.cancelled() and serve_task.exception() is not None:
                raise ShutdownError("HTTP server failed while draining") from serve_task.exception()
            return

        self.drained = False
        logger.warning("timed out waiting for all connections to close")
        serve_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await serve_task

    async def _stop_reloader(self) -> None:
        if self.reloader is None or not self.reloader.started:
            return
        try:
            await self.reloader.stop()
        except Exception as e:
            raise ShutdownError("error in reloader task") from e
