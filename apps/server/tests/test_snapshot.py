from __future__ import annotations

import asyncio

import pytest

from store_mirror.serving.snapshot import ServerSnapshot, load_snapshot
from store_mirror.serving.state import ServerState
from store_mirror.stores.base import StoreError
from store_mirror.sync.hashing import content_hash
from store_mirror.sync.manifest import MANIFEST_LOCATION, Manifest, serialize_manifest


def _publish(store, files: dict[str, bytes], *, listed_only: set[str] = frozenset()) -> None:
    """Write manifest + objects directly; paths in listed_only get no object."""
    m = Manifest(entries={p: content_hash(d) for p, d in files.items()})
    store.objects[MANIFEST_LOCATION] = (serialize_manifest(m), "application/json")
    for path, data in files.items():
        if path not in listed_only:
            store.objects[path] = (data, "application/octet-stream")


def test_empty_store_gives_empty_snapshot(memory_store) -> None:
    snap = asyncio.run(load_snapshot(memory_store))
    assert len(snap) == 0
    assert snap.lookup("index.html") is None


def test_lookup_returns_body_and_content_type(memory_store) -> None:
    _publish(memory_store, {"index.html": b"<p>hi</p>", "app.js": b"1"})
    snap = asyncio.run(load_snapshot(memory_store))

    obj = snap.lookup("index.html")
    assert obj is not None
    assert obj.body == b"<p>hi</p>"
    assert obj.content_type == "text/html"
    assert obj.hash == content_hash(b"<p>hi</p>")
    assert snap.lookup("missing") is None


def test_snapshot_objects_are_read_only(memory_store) -> None:
    _publish(memory_store, {"a.txt": b"a"})
    snap = asyncio.run(load_snapshot(memory_store))
    with pytest.raises(TypeError):
        snap.objects["b.txt"] = snap.lookup("a.txt")  # type: ignore[index]


def test_unchanged_objects_reused_from_previous(memory_store) -> None:
    _publish(memory_store, {"a.txt": b"a", "b.txt": b"b"})
    first = asyncio.run(load_snapshot(memory_store))

    _publish(memory_store, {"a.txt": b"a", "b.txt": b"B"})
    memory_store.clear_events()
    second = asyncio.run(load_snapshot(memory_store, first))

    assert memory_store.ops("get") == [MANIFEST_LOCATION, "b.txt"]
    assert second.lookup("a.txt") is first.lookup("a.txt")
    assert second.lookup("b.txt").body == b"B"


def test_listed_but_not_uploaded_is_left_out(memory_store) -> None:
    # Manifest published, upload of new.txt not done yet.
    _publish(memory_store, {"a.txt": b"a", "new.txt": b"n"}, listed_only={"new.txt"})
    snap = asyncio.run(load_snapshot(memory_store))

    assert snap.lookup("a.txt") is not None
    assert snap.lookup("new.txt") is None

    memory_store.objects["new.txt"] = (b"n", "text/plain")
    snap2 = asyncio.run(load_snapshot(memory_store, snap))
    assert snap2.lookup("new.txt").body == b"n"


def test_stale_bytes_are_refetched_on_next_load(memory_store) -> None:
    _publish(memory_store, {"a.txt": b"old"})
    # New manifest is out, object still holds the old bytes.
    m = Manifest(entries={"a.txt": content_hash(b"new")})
    memory_store.objects[MANIFEST_LOCATION] = (serialize_manifest(m), "application/json")

    snap = asyncio.run(load_snapshot(memory_store))
    assert snap.lookup("a.txt").body == b"old"

    memory_store.objects["a.txt"] = (b"new", "text/plain")
    snap2 = asyncio.run(load_snapshot(memory_store, snap))
    assert snap2.lookup("a.txt").body == b"new"


def test_state_reload_swaps_snapshot(memory_store) -> None:
    _publish(memory_store, {"a.txt": b"1"})

    async def scenario() -> None:
        state = await ServerState.create(memory_store)
        held = state.snapshot

        _publish(memory_store, {"a.txt": b"2"})
        await state.reload()

        # The reference held by an in-flight request still sees its version.
        assert held.lookup("a.txt").body == b"1"
        assert state.snapshot.lookup("a.txt").body == b"2"
        assert state.snapshot is not held

    asyncio.run(scenario())


def test_state_reload_failure_keeps_prior_snapshot(memory_store) -> None:
    _publish(memory_store, {"a.txt": b"1"})

    async def scenario() -> None:
        state = await ServerState.create(memory_store)
        before = state.snapshot

        async def broken_get(path: str) -> bytes:
            raise StoreError("network down")

        memory_store.get = broken_get
        with pytest.raises(StoreError):
            await state.reload()
        assert state.snapshot is before

    asyncio.run(scenario())


def test_empty_snapshot_helper() -> None:
    snap = ServerSnapshot.empty()
    assert len(snap) == 0
    assert snap.manifest == Manifest()
