from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ..stores.base import ObjectNotFoundError, ObjectStore
from ..sync.hashing import content_hash, guess_content_type
from ..sync.manifest import Manifest, fetch_manifest
from ..sync.pool import DEFAULT_CONCURRENCY, fan_out

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotObject:
    body: bytes
    content_type: str
    hash: str


@dataclass(frozen=True)
class ServerSnapshot:
    """
    Immutable view of manifest + object bytes.

    Never mutated after construction; reloads build a new one. A request
    that grabbed a snapshot keeps reading it even if a reload swaps in a
    newer one meanwhile.
    """

    manifest: Manifest
    objects: Mapping[str, SnapshotObject] = field(default_factory=lambda: MappingProxyType({}))

    def __len__(self) -> int:
        return len(self.objects)

    def lookup(self, path: str) -> SnapshotObject | None:
        return self.objects.get(path)

    @classmethod
    def empty(cls) -> "ServerSnapshot":
        return cls(manifest=Manifest())


async def load_snapshot(
    store: ObjectStore,
    previous: ServerSnapshot | None = None,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> ServerSnapshot:
    """
    Fetch the manifest and every object it lists.

    Objects whose hash matches `previous` are reused without a fetch.
    Objects listed but missing from the store (manifest published ahead of
    its uploads) are left out; a later reload picks them up.

    Content types are derived from the path, the same rule the publisher
    used when uploading; the type stored alongside each object is for
    clients reading the bucket directly and is not read back here.
    """
    manifest = await fetch_manifest(store)
    objects: dict[str, SnapshotObject] = {}
    to_fetch: list[tuple[str, str]] = []

    for path, digest in manifest.entries.items():
        old = previous.lookup(path) if previous is not None else None
        if old is not None and old.hash == digest:
            objects[path] = old
        else:
            to_fetch.append((path, digest))

    async def fetch(item: tuple[str, str]) -> tuple[str, SnapshotObject | None]:
        path, digest = item
        try:
            body = await store.get(path)
        except ObjectNotFoundError:
            logger.warning("Manifest lists %s but the object is not in the store yet", path)
            return path, None
        # Record the hash of what was actually read. Mid-publish the store can
        # still hold the previous bytes; a mismatch makes the next reload refetch.
        actual = content_hash(body)
        if actual != digest:
            logger.info("Object %s does not match its manifest hash yet", path)
        return path, SnapshotObject(body=body, content_type=guess_content_type(path), hash=actual)

    for path, obj in await fan_out(to_fetch, fetch, concurrency=concurrency):
        if obj is not None:
            objects[path] = obj

    logger.info(
        "Loaded snapshot: %d objects (%d fetched, %d reused)",
        len(objects),
        len(to_fetch),
        len(manifest) - len(to_fetch),
    )
    return ServerSnapshot(manifest=manifest, objects=MappingProxyType(objects))
