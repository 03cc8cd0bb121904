"""Polite request spacing with jitter and exponential backoff.

One :class:`RateLimiter` instance is created per pipeline run and shared by
every worker of that run.  The gate is not a mutex: two workers
whose checks interleave before either records its timestamp may both pass
back-to-back.
"""

from __future__ import annotations

import asyncio
import random
import time
from typing import Optional

from serpgist.config import settings


class RateLimiter:
    """Minimum inter-request spacing plus backoff on throttling signals.

    All durations are in seconds.
    """

    def __init__(
        self,
        min_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        base_delay: Optional[float] = None,
        jitter: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.min_delay = settings.rate_limit_min_delay if min_delay is None else min_delay
        self.max_delay = settings.rate_limit_max_delay if max_delay is None else max_delay
        self.base_delay = settings.rate_limit_base_delay if base_delay is None else base_delay
        self.jitter = settings.rate_limit_jitter if jitter is None else jitter
        self._rng = rng or random.Random()
        self.last_request_time: Optional[float] = None

    def _spacing(self) -> float:
        jitter = self._rng.uniform(0, self.jitter) if self.jitter > 0 else 0.0
        return max(self.min_delay, self.base_delay + jitter)

    async def wait_if_needed(self) -> float:
        """Sleep until the spacing since the last gated request has elapsed.

        Returns the number of seconds actually waited.
        """
        waited = 0.0
        if self.last_request_time is not None:
            elapsed = time.monotonic() - self.last_request_time
            delay = self._spacing()
            if elapsed < delay:
                waited = delay - elapsed
                print(f"[rate_limit] waiting {waited:.2f}s to respect rate limits")
                await asyncio.sleep(waited)
        self.last_request_time = time.monotonic()
        return waited

    def backoff_delay(self, attempt: int) -> float:
        """Return ``min(base * 2**attempt, max)`` plus up to 10 % jitter."""
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        return delay + self._rng.uniform(0, delay * 0.1)

    async def backoff(self, attempt: int) -> float:
        """Sleep for :meth:`backoff_delay` seconds and return the delay."""
        total = self.backoff_delay(attempt)
        print(f"[rate_limit] exponential backoff attempt {attempt}, waiting {total:.2f}s")
        await asyncio.sleep(total)
        return total
