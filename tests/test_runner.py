"""Tests for the bounded worker pool (race and gather modes)."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from serpgist.pipeline.runner import (
    CompletionMode,
    ConcurrentCrawlRunner,
    first_non_null,
    run_pool,
)


def _worker_factory(successes: set[int], delays: Optional[dict[int, float]] = None):
    """Return ``(worker, log)``; the worker succeeds only for items in *successes*."""
    log: dict[str, list[int]] = {"started": [], "finished": []}
    in_flight = {"now": 0, "peak": 0}

    async def worker(item: int) -> Optional[str]:
        log["started"].append(item)
        in_flight["now"] += 1
        in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
        try:
            await asyncio.sleep((delays or {}).get(item, 0))
            if item in successes:
                return f"result-{item}"
            return None
        finally:
            in_flight["now"] -= 1
            log["finished"].append(item)

    return worker, log, in_flight


class TestRaceMode:
    @pytest.mark.parametrize("winner", [0, 3, 7])
    async def test_single_success_is_returned(self, winner: int) -> None:
        worker, _, _ = _worker_factory({winner})
        results = await run_pool(list(range(8)), worker, 3, CompletionMode.RACE)
        assert results == [f"result-{winner}"]

    async def test_no_new_claims_after_winner(self) -> None:
        worker, log, _ = _worker_factory({0, 1, 2, 3, 4, 5})
        results = await run_pool(list(range(6)), worker, 2, CompletionMode.RACE)
        assert results == ["result-0"]
        # Slot 2 was already working on item 1; nothing beyond that is claimed.
        assert sorted(log["started"]) == [0, 1]

    async def test_in_flight_stragglers_complete_and_are_discarded(self) -> None:
        worker, log, _ = _worker_factory({0, 1}, delays={0: 0.0, 1: 0.05})
        results = await run_pool([0, 1], worker, 2, CompletionMode.RACE)
        assert results == ["result-0"]
        assert sorted(log["finished"]) == [0, 1]

    async def test_all_fail_returns_empty(self) -> None:
        worker, log, _ = _worker_factory(set())
        assert await first_non_null(list(range(5)), worker, 2) is None
        assert sorted(log["started"]) == [0, 1, 2, 3, 4]

    async def test_worker_exception_counts_as_failure(self) -> None:
        async def worker(item: int) -> Optional[str]:
            if item == 0:
                raise RuntimeError("boom")
            return f"ok-{item}"

        assert await first_non_null([0, 1], worker, 1) == "ok-1"


class TestGatherMode:
    async def test_returns_exactly_the_successes(self) -> None:
        successes = {1, 4, 6}
        worker, log, _ = _worker_factory(successes)
        results = await run_pool(list(range(8)), worker, 3, CompletionMode.GATHER)
        assert sorted(results) == sorted(f"result-{i}" for i in successes)
        assert sorted(log["started"]) == list(range(8))

    async def test_results_are_in_completion_order(self) -> None:
        worker, _, _ = _worker_factory({0, 1}, delays={0: 0.05, 1: 0.0})
        results = await run_pool([0, 1], worker, 2, CompletionMode.GATHER)
        assert results == ["result-1", "result-0"]

    async def test_concurrency_is_bounded(self) -> None:
        worker, _, in_flight = _worker_factory(set(), delays={i: 0.01 for i in range(10)})
        await run_pool(list(range(10)), worker, 3, CompletionMode.GATHER)
        assert in_flight["peak"] == 3

    async def test_empty_input(self) -> None:
        worker, log, _ = _worker_factory({0})
        assert await run_pool([], worker, 2) == []
        assert log["started"] == []


class TestConcurrentCrawlRunner:
    async def test_run_dispatches_on_mode(self) -> None:
        worker, _, _ = _worker_factory({1, 2})
        runner = ConcurrentCrawlRunner(worker, concurrency=1)
        assert await runner.run([0, 1, 2], "race") == ["result-1"]
        assert await runner.run([0, 1, 2], CompletionMode.GATHER) == ["result-1", "result-2"]

    async def test_unknown_mode_rejected(self) -> None:
        worker, _, _ = _worker_factory(set())
        with pytest.raises(ValueError):
            await ConcurrentCrawlRunner(worker, concurrency=1).run([0], "fastest")
