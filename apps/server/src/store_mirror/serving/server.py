from __future__ import annotations

import contextlib
import logging
from typing import Iterator

import uvicorn
from fastapi import FastAPI

from ..main import create_app
from ..paths import ensure_dirs
from ..settings import Settings
from ..stores.registry import build_store
from .coordinator import ShutdownCoordinator
from .reloader import ReloadLoop
from .state import ServerState

logger = logging.getLogger(__name__)


class CoordinatedServer(uvicorn.Server):
    """
    uvicorn.Server without its own signal handling: SIGINT/SIGTERM belong to
    ShutdownCoordinator, which flips `should_exit` and owns the drain deadline.
    """

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return None


def build_http_server(app: FastAPI, host: str, port: int) -> CoordinatedServer:
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,  # keep the root logging set up by the CLI
        timeout_graceful_shutdown=None,
    )
    return CoordinatedServer(config)


async def run_server(settings: Settings) -> ShutdownCoordinator:
    ensure_dirs(settings.paths)
    store = build_store(settings)
    state = await ServerState.create(store, concurrency=settings.concurrency)

    reloader = None
    if settings.reload_enabled:
        reloader = ReloadLoop(state.reload, interval=settings.reload_interval_sec)
    else:
        logger.info("Store is strongly consistent, reload loop disabled")

    server = build_http_server(create_app(state), settings.host, settings.port)
    coordinator = ShutdownCoordinator(server, reloader, drain_timeout=settings.drain_timeout_sec)
    logger.info("Serving on %s:%d", settings.host, settings.port)
    await coordinator.run()
    return coordinator
