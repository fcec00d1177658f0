from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from urllib.parse import quote, unquote

from .base import ObjectNotFoundError, ObjectStore, StoreError

OBJECTS_DIR = "objects"
META_DIR = "meta"
TMP_DIR = "tmp"


def encode_key(path: str) -> str:
    """
    Flat on-disk file name for an object key.

    '/' is percent-quoted along with everything else outside the unreserved
    set, so `docs` and `docs/index.html` are two sibling files and a key can
    never become a directory.
    """
    key = path.lstrip("/")
    if key in ("", ".", ".."):
        raise StoreError(f"invalid object key: {path!r}")
    return quote(key, safe="")


def decode_key(name: str) -> str:
    return unquote(name)


class FilesystemObjectStore(ObjectStore):
    """
    Object store backed by a local directory.

    Layout under root:
    - objects/<encoded key>       object bytes
    - meta/<encoded key>.json     {"content_type": ...} as given to put()
    - tmp/                        unique temp files, moved in with os.replace

    The three trees never overlap, so no object key can collide with
    metadata or an in-progress write.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _object(self, path: str) -> Path:
        return self.root / OBJECTS_DIR / encode_key(path)

    def _meta(self, path: str) -> Path:
        return self.root / META_DIR / (encode_key(path) + ".json")

    def _write_atomic(self, target: Path, data: bytes) -> None:
        tmp_dir = self.root / TMP_DIR
        tmp_dir.mkdir(parents=True, exist_ok=True)
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=tmp_dir, delete=False) as f:
            f.write(data)
        try:
            os.replace(f.name, target)
        except OSError:
            Path(f.name).unlink(missing_ok=True)
            raise

    # ------------------------
    # Blocking helpers
    # ------------------------
    def _get_sync(self, path: str) -> bytes:
        p = self._object(path)
        try:
            return p.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFoundError(path) from None
        except OSError as e:
            raise StoreError(f"read failed for {path}: {e}") from e

    def _put_sync(self, path: str, data: bytes, content_type: str) -> None:
        p = self._object(path)
        meta = json.dumps({"content_type": content_type}).encode("utf-8")
        try:
            self._write_atomic(p, data)
            self._write_atomic(self._meta(path), meta)
        except OSError as e:
            raise StoreError(f"write failed for {path}: {e}") from e

    def _delete_sync(self, path: str) -> None:
        # Deleting a missing object is a no-op, as on S3.
        try:
            self._object(path).unlink(missing_ok=True)
            self._meta(path).unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"delete failed for {path}: {e}") from e

    # ------------------------
    # ObjectStore
    # ------------------------
    async def get(self, path: str) -> bytes:
        return await asyncio.to_thread(self._get_sync, path)

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(self._put_sync, path, data, content_type)

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(self._delete_sync, path)

    # ------------------------
    # Inspection
    # ------------------------
    def content_type(self, path: str) -> str | None:
        """Content type recorded by put(), for tools reading the store directly."""
        meta = self._meta(path)
        if not meta.exists():
            return None
        return json.loads(meta.read_text(encoding="utf-8")).get("content_type")

    def keys(self) -> list[str]:
        """Every stored object key, sorted."""
        objects = self.root / OBJECTS_DIR
        if not objects.is_dir():
            return []
        return sorted(decode_key(p.name) for p in objects.iterdir() if p.is_file())
