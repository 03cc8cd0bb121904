"""Bounded worker pool with race-to-first and gather-all completion.

Workers are cooperative tasks on the running event loop pulling items from
a shared cursor; there is one task per slot, never one per item.

Race mode is a *non-cancelling* race: once a worker produces a result the
shared ``resolved`` flag stops further claims, but workers already mid-item
run to completion and their results are discarded.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from serpgist.config import settings

I = TypeVar("I")
R = TypeVar("R")


class CompletionMode(str, Enum):
    RACE = "race"
    GATHER = "gather"


class _PoolState(Generic[I, R]):
    """Cursor, resolution flag and results shared by the worker slots."""

    def __init__(self, items: Sequence[I]) -> None:
        self.items = items
        self.index = 0
        self.resolved = False
        self.results: list[R] = []

    def claim(self) -> Optional[I]:
        if self.resolved or self.index >= len(self.items):
            return None
        item = self.items[self.index]
        self.index += 1
        return item


async def _drain(
    state: _PoolState[I, R],
    worker: Callable[[I], Awaitable[Optional[R]]],
    mode: CompletionMode,
) -> None:
    while True:
        item = state.claim()
        if item is None:
            return
        try:
            out = await worker(item)
        except Exception as exc:  # noqa: BLE001
            print(f"[crawl] worker raised for {item!r}: {exc}")
            out = None
        if out is None:
            continue
        if mode is CompletionMode.GATHER:
            state.results.append(out)
        elif not state.resolved:
            state.resolved = True
            state.results.append(out)
            return


async def run_pool(
    items: Sequence[I],
    worker: Callable[[I], Awaitable[Optional[R]]],
    concurrency: int,
    mode: CompletionMode = CompletionMode.GATHER,
) -> list[R]:
    """Drive *worker* over *items* with at most *concurrency* in flight.

    Returns every non-``None`` result in completion order (gather), or a
    list holding only the first one (race).  Worker exceptions count as
    ``None``.
    """
    if not items:
        return []
    state: _PoolState[I, R] = _PoolState(items)
    slots = max(1, min(concurrency, len(items)))
    await asyncio.gather(*(_drain(state, worker, mode) for _ in range(slots)))
    return state.results


async def first_non_null(
    items: Sequence[I],
    worker: Callable[[I], Awaitable[Optional[R]]],
    concurrency: int,
) -> Optional[R]:
    """Race-mode convenience: the first successful result, or ``None``."""
    results = await run_pool(items, worker, concurrency, CompletionMode.RACE)
    return results[0] if results else None


class ConcurrentCrawlRunner(Generic[I, R]):
    """Run one worker function over candidates in race or gather mode."""

    def __init__(
        self,
        worker: Callable[[I], Awaitable[Optional[R]]],
        concurrency: Optional[int] = None,
    ) -> None:
        self.worker = worker
        self.concurrency = settings.crawl_concurrency if concurrency is None else concurrency

    async def race(self, items: Sequence[I]) -> list[R]:
        return await run_pool(items, self.worker, self.concurrency, CompletionMode.RACE)

    async def gather(self, items: Sequence[I]) -> list[R]:
        return await run_pool(items, self.worker, self.concurrency, CompletionMode.GATHER)

    async def run(self, items: Sequence[I], mode: CompletionMode | str) -> list[R]:
        mode = CompletionMode(mode)
        print(f"[crawl] {mode.value} over {len(items)} candidate(s), concurrency={self.concurrency}")
        if mode is CompletionMode.RACE:
            return await self.race(items)
        return await self.gather(items)
