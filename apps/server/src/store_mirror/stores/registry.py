from __future__ import annotations

from ..settings import Settings
from .base import ObjectStore
from .filesystem import FilesystemObjectStore


def build_store(settings: Settings) -> ObjectStore:
    """Build the object-store handle selected by MIRROR_STORE."""
    kind = settings.store_kind
    if kind == "filesystem":
        return FilesystemObjectStore(settings.paths.store_root)
    if kind == "s3":
        if not settings.bucket:
            raise ValueError("MIRROR_BUCKET is required when MIRROR_STORE=s3")
        # boto3 is only imported when an S3 store is actually configured.
        from .s3 import S3ObjectStore

        return S3ObjectStore(settings.bucket, settings.prefix, endpoint_url=settings.endpoint_url)
    raise ValueError(f"Unsupported store kind: {kind!r}")
