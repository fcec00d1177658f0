from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, Field

from ..stores.base import ObjectNotFoundError, ObjectStore

logger = logging.getLogger(__name__)

# Well-known key of the manifest object inside the store.
MANIFEST_LOCATION = ".store-mirror/manifest.json"
MANIFEST_CONTENT_TYPE = "application/json"


class Manifest(BaseModel):
    """
    Persisted mapping of relative path -> content hash.

    The sole record of what the store is expected to contain. Order of
    entries is irrelevant.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    entries: dict[str, str] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def get(self, path: str) -> str | None:
        return self.entries.get(path)


def canonical_json_bytes(obj: object) -> bytes:
    """
    Canonical JSON rules:
    - UTF-8 encoding
    - No whitespace (separators=(",", ":"))
    - ensure_ascii=False
    - sort_keys=True (recursive)
    - allow_nan=False
    """
    s = json.dumps(
        obj,
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
        allow_nan=False,
    )
    return s.encode("utf-8")


def serialize_manifest(manifest: Manifest) -> bytes:
    return canonical_json_bytes(manifest.model_dump())


def parse_manifest(data: bytes) -> Manifest:
    return Manifest.model_validate_json(data)


async def fetch_manifest(store: ObjectStore) -> Manifest:
    """Fetch the manifest; a missing manifest object is an empty manifest."""
    try:
        data = await store.get(MANIFEST_LOCATION)
    except ObjectNotFoundError:
        logger.info("No manifest at %s, starting from empty", MANIFEST_LOCATION)
        return Manifest()
    return parse_manifest(data)


async def publish_manifest(store: ObjectStore, manifest: Manifest) -> None:
    await store.put(MANIFEST_LOCATION, serialize_manifest(manifest), MANIFEST_CONTENT_TYPE)
