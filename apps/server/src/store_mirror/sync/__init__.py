"""
Content-addressed directory -> object store synchronization.

- scanner: walk + read + hash local files
- diff: classify paths against the previous manifest
- publisher: manifest, uploads, deletes (in that order)
- runner: one-shot orchestration returning a SyncReport
"""

from .diff import SyncPlan, compute_plan
from .manifest import MANIFEST_LOCATION, Manifest, fetch_manifest
from .publisher import PublishResult, publish
from .runner import SyncReport, plan_sync, synchronize
from .scanner import LocalEntry, scan_directory

__all__ = [
    "MANIFEST_LOCATION",
    "LocalEntry",
    "Manifest",
    "PublishResult",
    "SyncPlan",
    "SyncReport",
    "compute_plan",
    "fetch_manifest",
    "plan_sync",
    "publish",
    "scan_directory",
    "synchronize",
]
