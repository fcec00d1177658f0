from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path

from ..stores.base import ObjectStore
from .diff import SyncPlan, compute_plan
from .manifest import MANIFEST_LOCATION, fetch_manifest
from .pool import DEFAULT_CONCURRENCY
from .publisher import object_key, publish
from .scanner import LocalEntry, scan_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncReport:
    root: str
    written: int
    unchanged: int
    deleted: int
    skipped: list[str]
    manifest_entries: int
    duration_ms: float
    dry_run: bool = False

    def as_dict(self) -> dict:
        return asdict(self)


def _printable(path: str) -> str:
    # Undecodable filename bytes come back as \xNN escapes.
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


def _publishable(entries: list[LocalEntry]) -> tuple[list[LocalEntry], list[str]]:
    keep: list[LocalEntry] = []
    skipped: list[str] = []
    for e in entries:
        if e.path == MANIFEST_LOCATION:
            logger.warning("Ignoring local file at reserved manifest path %s", e.path)
            skipped.append(e.path)
        elif object_key(e.path) is None:
            logger.error("unable to get string repr of path %r", e.path)
            skipped.append(_printable(e.path))
        else:
            keep.append(e)
    return keep, skipped


async def plan_sync(
    root: Path,
    store: ObjectStore,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> tuple[SyncPlan, list[str]]:
    """Scan + diff without touching the store (beyond reading the manifest)."""
    existing = await fetch_manifest(store)
    scanned = await scan_directory(root, concurrency=concurrency)
    current, skipped = _publishable(scanned)
    return compute_plan(existing, current), skipped


async def synchronize(
    root: Path,
    store: ObjectStore,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    dry_run: bool = False,
) -> SyncReport:
    """
    One synchronization run: manifest -> scan -> diff -> publish.

    Errors (local I/O or store) propagate to the caller; the store keeps
    whatever the aborted phase had already committed.
    """
    started = time.perf_counter()
    plan, skipped = await plan_sync(root, store, concurrency=concurrency)
    logger.info(
        "Plan for %s: %d to write, %d unchanged, %d to delete",
        root,
        len(plan.to_write),
        len(plan.unchanged),
        len(plan.to_delete),
    )

    written = len(plan.to_write)
    deleted = len(plan.to_delete)
    if not dry_run:
        result = await publish(store, plan, concurrency=concurrency)
        written = len(result.uploaded)
        deleted = len(result.deleted)
        skipped = skipped + result.skipped

    return SyncReport(
        root=str(root),
        written=written,
        unchanged=len(plan.unchanged),
        deleted=deleted,
        skipped=skipped,
        manifest_entries=len(plan.manifest),
        duration_ms=round((time.perf_counter() - started) * 1000.0, 3),
        dry_run=dry_run,
    )
