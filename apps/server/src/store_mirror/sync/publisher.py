"""
Publish a SyncPlan to the object store.

Phases run strictly in order, each finishing before the next starts:

1. manifest  - the new manifest replaces the old one
2. upload    - new/changed objects, concurrently
3. delete    - orphaned objects, after every upload is done

The manifest goes first on purpose. Between phases 1 and 2 a reader can see
entries whose objects are not uploaded yet; it never sees a manifest that
still lists an object that is already gone. There is no rollback: a failure
leaves whatever the aborted phase already committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..stores.base import ObjectStore
from .diff import SyncPlan
from .manifest import publish_manifest
from .pool import DEFAULT_CONCURRENCY, fan_out
from .scanner import LocalEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    uploaded: list[str]
    deleted: list[str]
    skipped: list[str]


def object_key(path: str) -> str | None:
    """
    Store key for a relative path, or None if the path has no UTF-8 form
    (e.g. undecodable bytes surfaced as surrogate escapes).
    """
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return path


async def publish(
    store: ObjectStore,
    plan: SyncPlan,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> PublishResult:
    skipped: list[str] = []

    await publish_manifest(store, plan.manifest)
    logger.info("Uploaded manifest (%d entries)", len(plan.manifest))

    async def upload(entry: LocalEntry) -> str | None:
        key = object_key(entry.path)
        if key is None:
            logger.error("unable to get string repr of path %r", entry.path)
            skipped.append(entry.path)
            return None
        logger.info("Uploading %s (%s)", key, entry.content_type)
        await store.put(key, entry.contents, entry.content_type)
        return key

    uploaded = await fan_out(plan.to_write, upload, concurrency=concurrency)
    logger.info("Uploaded %d files", len(plan.to_write) - len(skipped))

    deleted: list[str] = []
    for path in plan.to_delete:
        key = object_key(path)
        if key is None:
            logger.error("unable to get string repr of path %r", path)
            skipped.append(path)
            continue
        logger.info("Deleting old file %s", key)
        await store.delete(key)
        deleted.append(key)

    logger.info("Deleted %d old files", len(deleted))

    return PublishResult(
        uploaded=sorted(k for k in uploaded if k is not None),
        deleted=deleted,
        skipped=skipped,
    )
