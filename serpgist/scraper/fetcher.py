"""Per-candidate fetch worker: robots → page → navigate → read → admit → extract.

:meth:`CandidateFetcher.fetch` is the worker function handed to the
:class:`~serpgist.pipeline.runner.ConcurrentCrawlRunner`.  It never raises:
every failure is recorded on the candidate's :class:`CrawlAttempt` and
reported as ``None``.  The page it opens is always closed, under its own
short timeout, on every exit path.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

from serpgist.config import settings
from serpgist.errors import ContentReadError, NavigationError
from serpgist.scraper.admission import ContentAdmissionGate
from serpgist.scraper.browser import BrowserIdentity, BrowserSession, with_timeout
from serpgist.scraper.extractor import ExtractionPipeline
from serpgist.scraper.models import AttemptStatus, CrawlAttempt, CrawlStats, ExtractedSource
from serpgist.scraper.rate_limiter import RateLimiter
from serpgist.scraper.robots import RobotsPolicyChecker

#: Statuses treated as throttling signals (Retry-After / backoff applies).
THROTTLE_STATUSES = frozenset({429, 503})

#: Message fragment of the transient "stale document" read failure.
CONTEXT_DESTROYED = "Execution context was destroyed"


def parse_retry_after(headers: Mapping[str, str], cap: float) -> Optional[float]:
    """Return the ``Retry-After`` delay in seconds, capped at *cap*.

    Only the delta-seconds form is honoured; HTTP-date values return ``None``.
    """
    value = None
    for name, raw in headers.items():
        if name.lower() == "retry-after":
            value = raw
            break
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(0.0, min(seconds, cap))


class CandidateFetcher:
    """Fetch, admit and extract one candidate URL on a shared browser session."""

    def __init__(
        self,
        session: BrowserSession,
        identity: BrowserIdentity,
        rate_limiter: RateLimiter,
        robots: Optional[RobotsPolicyChecker] = None,
        gate: Optional[ContentAdmissionGate] = None,
        extraction: Optional[ExtractionPipeline] = None,
        referer: Optional[str] = None,
        stats: Optional[CrawlStats] = None,
    ) -> None:
        self.session = session
        self.identity = identity
        self.rate_limiter = rate_limiter
        self.robots = robots
        self.gate = gate or ContentAdmissionGate()
        self.extraction = extraction or ExtractionPipeline()
        self.referer = referer
        self.stats = stats if stats is not None else CrawlStats()
        self.attempts: list[CrawlAttempt] = []

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _navigate(self, page: Any, url: str) -> None:
        try:
            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=settings.nav_timeout * 1000,
                referer=self.referer,
            )
        except Exception as exc:  # noqa: BLE001
            raise NavigationError(f"{url}: {exc}") from exc

        status = response.status if response is not None else None
        if status is None or status < 400:
            return

        print(f"[crawl] HTTP {status} for {url}")
        if status in THROTTLE_STATUSES:
            delay = parse_retry_after(response.headers, settings.retry_after_cap)
            if delay is not None:
                print(f"[crawl] rate limited, waiting {delay:.1f}s as per Retry-After header")
                await asyncio.sleep(delay)
            else:
                await self.rate_limiter.backoff(1)
            raise NavigationError(f"Rate limited: HTTP {status}", status=status)
        raise NavigationError(f"Blocked or unavailable: HTTP {status}", status=status)

    async def _settle(self, page: Any, url: str) -> None:
        """Give an immediate client-side redirect a short window to start."""
        redirect = asyncio.ensure_future(
            page.wait_for_event("framenavigated", timeout=settings.redirect_wait * 1000)
        )
        settle = asyncio.ensure_future(asyncio.sleep(settings.redirect_settle))
        done, pending = await asyncio.wait(
            {redirect, settle}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if redirect in done and redirect.exception() is not None:
            print(f"[crawl] no redirect detected for {url}")

    async def _read_content(self, page: Any, url: str) -> str:
        attempts = max(1, settings.content_read_attempts)
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                return await with_timeout(
                    page.content(), settings.op_timeout, f"content_attempt_{attempt}"
                )
            except Exception as exc:  # noqa: BLE001
                if CONTEXT_DESTROYED not in str(exc):
                    raise ContentReadError(f"{url}: {exc}") from exc
                last_error = exc
                print(f"[crawl] content read retry {attempt}/{attempts} for {url}: context destroyed")
                await asyncio.sleep(settings.content_read_retry_delay)
        raise ContentReadError(f"{url}: {last_error}") from last_error

    async def _release(self, page: Any, url: str) -> None:
        try:
            await with_timeout(
                self.session.close_page(page), settings.page_close_timeout, "page_close"
            )
        except Exception as exc:  # noqa: BLE001
            print(f"[crawl] page close error for {url}: {exc}")

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _visit(self, attempt: CrawlAttempt) -> Optional[ExtractedSource]:
        url = attempt.url

        if self.robots is not None and not await self.robots.is_allowed(
            url, self.identity.user_agent
        ):
            attempt.mark(AttemptStatus.ROBOTS_DENIED)
            self.stats.skipped += 1
            print(f"[crawl] skipping due to robots.txt: {url}")
            return None

        page = await self.session.new_page(self.identity)
        try:
            print(f"[crawl] visiting {url}")
            self.stats.visited += 1
            await self.session.apply_stealth(page, self.identity)
            page.set_default_navigation_timeout(settings.nav_timeout * 1000)
            page.set_default_timeout(settings.op_timeout * 1000)

            await self.rate_limiter.wait_if_needed()
            await self._navigate(page, url)
            await self._settle(page, url)
            html = await self._read_content(page, url)
            attempt.mark(AttemptStatus.FETCHED)
            print(f"[crawl] content read from {url} ({len(html)} chars)")

            decision = self.gate.classify(html)
            if not decision.admitted:
                attempt.mark(AttemptStatus.REJECTED, decision.verdict.value)
                self.stats.skipped += 1
                print(f"[crawl] skipped {url}: {decision.verdict.value} ({decision.reason})")
                return None
            attempt.mark(AttemptStatus.ADMITTED)

            source = await asyncio.to_thread(self.extraction.extract, html, url)
            attempt.mark(AttemptStatus.EXTRACTED)
            self.stats.successes += 1
            return source
        finally:
            await self._release(page, url)

    async def fetch(self, url: str) -> Optional[ExtractedSource]:
        """Run the full sequence for *url*; ``None`` on rejection or failure."""
        attempt = CrawlAttempt(url=url)
        self.attempts.append(attempt)
        try:
            return await self._visit(attempt)
        except Exception as exc:  # noqa: BLE001
            attempt.mark(AttemptStatus.FAILED, str(exc))
            self.stats.skipped += 1
            print(f"[crawl] worker error for {url}: {exc}")
            return None
