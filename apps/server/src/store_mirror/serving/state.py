from __future__ import annotations

import logging

from ..stores.base import ObjectStore
from ..sync.pool import DEFAULT_CONCURRENCY
from .snapshot import ServerSnapshot, load_snapshot

logger = logging.getLogger(__name__)


class ServerState:
    """
    Holder of the current ServerSnapshot.

    `snapshot` is replaced by a single reference assignment; readers take the
    reference once per request and never see a half-built snapshot.
    """

    def __init__(
        self,
        store: ObjectStore,
        snapshot: ServerSnapshot | None = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.store = store
        self.concurrency = concurrency
        self._snapshot = snapshot or ServerSnapshot.empty()

    @property
    def snapshot(self) -> ServerSnapshot:
        return self._snapshot

    @classmethod
    async def create(cls, store: ObjectStore, *, concurrency: int = DEFAULT_CONCURRENCY) -> "ServerState":
        """Initial load at process start."""
        snapshot = await load_snapshot(store, concurrency=concurrency)
        if not len(snapshot):
            logger.warning("Store is empty, serving nothing until the next reload")
        return cls(store, snapshot, concurrency=concurrency)

    async def reload(self) -> ServerSnapshot:
        """
        Build a fresh snapshot and swap it in. On error the current snapshot
        stays in service and the error propagates.
        """
        snapshot = await load_snapshot(self.store, self._snapshot, concurrency=self.concurrency)
        self._snapshot = snapshot
        return snapshot
