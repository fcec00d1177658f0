from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .manifest import Manifest
from .scanner import LocalEntry


@dataclass(frozen=True)
class SyncPlan:
    """
    Classification of every path seen in either the old manifest or the
    local scan. `manifest` is the full replacement to publish.
    """

    manifest: Manifest
    to_write: list[LocalEntry] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.to_write and not self.to_delete


def compute_plan(existing: Manifest, current: Iterable[LocalEntry]) -> SyncPlan:
    """
    Hash-only comparison of the local scan against the previous manifest.

    - new path or changed hash -> to_write
    - same hash -> unchanged
    - in manifest, gone locally -> to_delete
    """
    to_write: list[LocalEntry] = []
    unchanged: list[str] = []
    entries: dict[str, str] = {}

    for entry in current:
        if entry.path in entries:
            raise ValueError(f"duplicate path in scan: {entry.path}")
        entries[entry.path] = entry.hash
        if existing.get(entry.path) == entry.hash:
            unchanged.append(entry.path)
        else:
            to_write.append(entry)

    to_delete = sorted(p for p in existing.entries if p not in entries)

    return SyncPlan(
        manifest=Manifest(entries=entries),
        to_write=sorted(to_write, key=lambda e: e.path),
        unchanged=sorted(unchanged),
        to_delete=to_delete,
    )
