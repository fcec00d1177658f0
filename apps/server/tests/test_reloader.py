from __future__ import annotations

import asyncio
import logging

import pytest

from store_mirror.serving.reloader import ReloadLoop


def test_reloads_on_interval_until_stopped() -> None:
    calls = 0

    async def reload() -> None:
        nonlocal calls
        calls += 1

    async def scenario() -> ReloadLoop:
        loop = ReloadLoop(reload, interval=0.01)
        loop.start()
        await asyncio.sleep(0.1)
        await loop.stop()
        return loop

    loop = asyncio.run(scenario())
    assert calls >= 2
    assert loop.reloads == calls
    assert not loop.running


def test_stop_before_first_tick_never_reloads() -> None:
    calls = 0

    async def reload() -> None:
        nonlocal calls
        calls += 1

    async def scenario() -> None:
        loop = ReloadLoop(reload, interval=60)
        loop.start()
        await asyncio.sleep(0)
        await asyncio.wait_for(loop.stop(), timeout=1)

    asyncio.run(scenario())
    assert calls == 0


def test_failures_are_logged_and_loop_continues(caplog) -> None:
    attempts = 0

    async def reload() -> None:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("store unreachable")

    async def scenario() -> ReloadLoop:
        loop = ReloadLoop(reload, interval=0.01)
        loop.start()
        await asyncio.sleep(0.1)
        await loop.stop()
        return loop

    with caplog.at_level(logging.ERROR, logger="store_mirror.serving.reloader"):
        loop = asyncio.run(scenario())

    assert loop.failures == 1
    assert loop.reloads >= 1
    assert "Error reloading state" in caplog.text


def test_stop_during_reload_waits_for_that_reload() -> None:
    finished: list[str] = []

    async def scenario() -> None:
        entered = asyncio.Event()
        gate = asyncio.Event()

        async def reload() -> None:
            entered.set()
            await gate.wait()
            finished.append("reload")

        loop = ReloadLoop(reload, interval=0.01)
        loop.start()
        await entered.wait()

        stopper = asyncio.create_task(loop.stop())
        await asyncio.sleep(0.05)
        assert not stopper.done()
        assert finished == []

        gate.set()
        await asyncio.wait_for(stopper, timeout=1)
        assert finished == ["reload"]
        assert loop.reloads == 1

    asyncio.run(scenario())


def test_start_twice_and_stop_unstarted_are_errors() -> None:
    async def reload() -> None:
        return None

    async def scenario() -> None:
        loop = ReloadLoop(reload, interval=60)
        with pytest.raises(RuntimeError):
            await loop.stop()
        loop.start()
        with pytest.raises(RuntimeError):
            loop.start()
        await loop.stop()

    asyncio.run(scenario())
