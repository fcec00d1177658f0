from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest


# Ensure `store_mirror` (under ./src) is importable when running `pytest` from apps/server.
_ROOT = Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from store_mirror.stores.base import ObjectNotFoundError, ObjectStore, StoreError  # noqa: E402


class MemoryStore(ObjectStore):
    """
    In-memory store recording every call as (op, path) in call order, plus
    ("stored", path) once a put has committed.

    fail_puts: paths whose put raises StoreError.
    put_delay: seconds each object put sleeps before committing.
    """

    def __init__(self, *, fail_puts: set[str] | None = None, put_delay: float = 0.0) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.events: list[tuple[str, str]] = []
        self.fail_puts = fail_puts or set()
        self.put_delay = put_delay

    async def get(self, path: str) -> bytes:
        self.events.append(("get", path))
        await asyncio.sleep(0)
        try:
            return self.objects[path][0]
        except KeyError:
            raise ObjectNotFoundError(path) from None

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        self.events.append(("put", path))
        if self.put_delay:
            await asyncio.sleep(self.put_delay)
        else:
            await asyncio.sleep(0)
        if path in self.fail_puts:
            raise StoreError(f"injected failure for {path}")
        self.objects[path] = (bytes(data), content_type)
        self.events.append(("stored", path))

    async def delete(self, path: str) -> None:
        self.events.append(("delete", path))
        await asyncio.sleep(0)
        self.objects.pop(path, None)

    def ops(self, op: str) -> list[str]:
        return [p for o, p in self.events if o == op]

    def clear_events(self) -> None:
        self.events.clear()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_memory_store():
    return MemoryStore


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            p.write_text(content, encoding="utf-8")
        else:
            p.write_bytes(content)
    return root


@pytest.fixture
def tree(tmp_path: Path):
    """Factory: tree({"a.txt": "hi"}) -> directory with those files."""
    root = tmp_path / "site"
    root.mkdir()

    def _make(files: dict[str, str | bytes]) -> Path:
        return write_tree(root, files)

    return _make
