from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CONCURRENCY = 16


async def fan_out(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[R]:
    """
    Run fn over items with at most `concurrency` calls in flight.

    Results are returned in completion order, not input order. After the
    first failure no new item is started; calls already in flight are left
    to finish (or fail) on their own, then the first error is raised.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    pending = iter(items)
    results: list[R] = []
    errors: list[BaseException] = []

    async def worker() -> None:
        while not errors:
            try:
                item = next(pending)
            except StopIteration:
                return
            try:
                results.append(await fn(item))
            except Exception as e:
                errors.append(e)
                return

    await asyncio.gather(*(worker() for _ in range(concurrency)))
    if errors:
        raise errors[0]
    return results
