"""End-to-end search pipeline for a single query.

``SearchPipeline.run`` wires together the browser session, the results-page
provider, the candidate ranker, the crawl runner, the aggregation budgeter
and the summariser.  Only whole-request preconditions are fatal: browser
launch, loading the results page, and finding at least one candidate.
Everything per-candidate is isolated inside
:class:`~serpgist.scraper.fetcher.CandidateFetcher`.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

from serpgist.config import settings
from serpgist.errors import (
    EvaluationError,
    NavigationError,
    PageCreationError,
    SummarizationError,
)
from serpgist.pipeline.aggregator import AggregationBudgeter
from serpgist.pipeline.runner import CompletionMode, ConcurrentCrawlRunner
from serpgist.pipeline.summarizer import Summarizer, model_name, sources_block
from serpgist.scraper.admission import ContentAdmissionGate
from serpgist.scraper.browser import (
    BrowserIdentity,
    BrowserSession,
    PlaywrightBrowserSession,
    pick_identity,
    with_timeout,
)
from serpgist.scraper.extractor import ExtractionPipeline
from serpgist.scraper.fetcher import CandidateFetcher
from serpgist.scraper.models import AggregatedInput, Candidate, CrawlStats, ExtractedSource
from serpgist.scraper.rate_limiter import RateLimiter
from serpgist.scraper.robots import RobotsPolicyChecker
from serpgist.search.providers import SearchProvider, get_provider
from serpgist.search.ranker import CandidateRanker, anchors_from_evaluation

SessionFactory = Callable[[], Awaitable[BrowserSession]]

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"


async def _launch_playwright() -> BrowserSession:
    return await PlaywrightBrowserSession.launch(headless=settings.headless)


@dataclass
class SerpPage:
    """The loaded results page."""

    url: str
    html: str
    anchors: list = field(default_factory=list)


@dataclass
class SearchOutcome:
    """What the pipeline hands back to the HTTP/CLI layer."""

    body: str
    media_type: str
    candidates: List[Candidate] = field(default_factory=list)
    sources: List[ExtractedSource] = field(default_factory=list)
    aggregated: Optional[AggregatedInput] = None
    stats: CrawlStats = field(default_factory=CrawlStats)
    summarized: bool = False

    @property
    def source_urls(self) -> list[str]:
        return [s.url for s in self.sources]


class SearchPipeline:
    """One query's lifecycle: results page → candidates → crawl → answer.

    Every collaborator can be injected; defaults come from ``settings``.
    A fresh :class:`RateLimiter` and :class:`RobotsPolicyChecker` are created
    per run unless given, so no state leaks between requests.
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        provider: Optional[SearchProvider] = None,
        ranker: Optional[CandidateRanker] = None,
        gate: Optional[ContentAdmissionGate] = None,
        extraction: Optional[ExtractionPipeline] = None,
        budgeter: Optional[AggregationBudgeter] = None,
        summarizer: Optional[Summarizer] = None,
        rate_limiter_factory: Optional[Callable[[], RateLimiter]] = None,
        robots_factory: Optional[Callable[[], Optional[RobotsPolicyChecker]]] = None,
        concurrency: Optional[int] = None,
        identity: Optional[BrowserIdentity] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session_factory = session_factory or _launch_playwright
        self.provider = provider or get_provider()
        self.ranker = ranker or CandidateRanker(
            base_origin=self.provider.base_origin,
            redirectors=self.provider.redirectors,
        )
        self.gate = gate or ContentAdmissionGate()
        self.extraction = extraction or ExtractionPipeline()
        self.budgeter = budgeter or AggregationBudgeter()
        self.summarizer = summarizer or Summarizer()
        self.rate_limiter_factory = rate_limiter_factory or RateLimiter
        self.robots_factory = robots_factory or (
            RobotsPolicyChecker if settings.respect_robots else (lambda: None)
        )
        self.concurrency = settings.crawl_concurrency if concurrency is None else concurrency
        self.identity = identity
        self.rng = rng

    # ------------------------------------------------------------------
    # Results page
    # ------------------------------------------------------------------

    async def _load_serp(
        self,
        session: BrowserSession,
        identity: BrowserIdentity,
        rate_limiter: RateLimiter,
        query: str,
    ) -> SerpPage:
        search_url = self.provider.search_url(query)
        page = await session.new_page(identity)
        try:
            try:
                await session.apply_stealth(page, identity)
                page.set_default_navigation_timeout(settings.nav_timeout * 1000)
                page.set_default_timeout(settings.op_timeout * 1000)
            except Exception as exc:  # noqa: BLE001
                print(f"[serp] stealth setup failed: {exc}")
                raise PageCreationError(f"Failed to apply stealth settings: {exc}") from exc
            await rate_limiter.wait_if_needed()

            try:
                await page.goto(
                    search_url,
                    wait_until="domcontentloaded",
                    timeout=settings.nav_timeout * 1000,
                    referer=self.provider.referer,
                )
                html = await with_timeout(page.content(), settings.op_timeout, "serp_content")
            except Exception as exc:  # noqa: BLE001
                print(f"[serp] navigation failed for {search_url}: {exc}")
                raise NavigationError(f"Failed to load search results: {exc}") from exc
            print(f"[serp] loaded {search_url} ({len(html)} chars)")

            try:
                payload = await with_timeout(
                    page.evaluate(self.provider.anchor_script),
                    settings.op_timeout,
                    "serp_evaluate",
                )
            except Exception as exc:  # noqa: BLE001
                print(f"[serp] evaluation failed: {exc}")
                raise EvaluationError(f"Failed to extract search results: {exc}") from exc

            anchors = anchors_from_evaluation(payload)
            print(f"[serp] {len(anchors)} raw result(s) found")
            return SerpPage(url=search_url, html=html, anchors=anchors)
        finally:
            try:
                await with_timeout(
                    session.close_page(page), settings.page_close_timeout, "serp_page_close"
                )
            except Exception as exc:  # noqa: BLE001
                print(f"[serp] page close error: {exc}")

    # ------------------------------------------------------------------
    # Answer
    # ------------------------------------------------------------------

    async def _answer(
        self,
        query: str,
        primary_html: str,
        fallback_url: str,
        sources: list[ExtractedSource],
        summarize: bool,
    ) -> tuple[str, str, Optional[AggregatedInput], bool]:
        if not summarize:
            return primary_html, TEXT_HTML, None, False

        inputs = sources or [ExtractedSource(url=fallback_url, html=primary_html, extracted=False)]
        aggregated = self.budgeter.aggregate(inputs)
        try:
            print(
                f"[summarize] requesting answer from {len(aggregated.used_urls)} source(s) "
                f"via {model_name()}"
            )
            summary = await self.summarizer.summarize(query, aggregated)
        except SummarizationError as exc:
            print(f"[summarize] failed: {exc}; returning HTML")
            return primary_html, TEXT_HTML, aggregated, False

        if not summary:
            print("[summarize] model returned an empty answer; returning HTML")
            return primary_html, TEXT_HTML, aggregated, False

        if sources:
            footer = sources_block([s.url for s in sources])
        else:
            footer = f"\n\nSource: {fallback_url}"
        return summary + footer, TEXT_PLAIN, aggregated, True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        query: str,
        mode: CompletionMode | str | None = None,
        summarize: Optional[bool] = None,
    ) -> SearchOutcome:
        """Run the full pipeline for *query*.

        Raises:
            ValueError: If *query* is blank.
            LaunchError: If the browser cannot be launched.
            SerpGistError: If the results page cannot be loaded or yields no
                candidates.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("query must be a non-empty string")
        mode = CompletionMode(mode or settings.crawl_mode)
        summarize = settings.summarize if summarize is None else summarize

        identity = self.identity or pick_identity(self.rng)
        rate_limiter = self.rate_limiter_factory()
        robots = self.robots_factory()
        stats = CrawlStats()

        session = await self.session_factory()
        try:
            serp = await self._load_serp(session, identity, rate_limiter, query)
            candidates = self.ranker.rank(serp.anchors)
            print(f"[crawl] considering {len(candidates)} candidate(s)")

            fetcher = CandidateFetcher(
                session=session,
                identity=identity,
                rate_limiter=rate_limiter,
                robots=robots,
                gate=self.gate,
                extraction=self.extraction,
                referer=serp.url,
                stats=stats,
            )
            runner: ConcurrentCrawlRunner[str, ExtractedSource] = ConcurrentCrawlRunner(
                fetcher.fetch, concurrency=self.concurrency
            )
            sources = await runner.run([c.url for c in candidates], mode)
            print(
                f"[crawl] finished: visited={stats.visited} skipped={stats.skipped} "
                f"successes={stats.successes}"
            )

            if sources:
                primary_html = sources[0].html
            else:
                print("[crawl] no successful candidate; falling back to results page HTML")
                primary_html = serp.html

            body, media_type, aggregated, summarized = await self._answer(
                query, primary_html, serp.url, sources, summarize
            )
            return SearchOutcome(
                body=body,
                media_type=media_type,
                candidates=candidates,
                sources=sources,
                aggregated=aggregated,
                stats=stats,
                summarized=summarized,
            )
        finally:
            try:
                await with_timeout(session.close(), settings.browser_close_timeout, "browser_close")
                print("[crawl] browser closed")
            except Exception as exc:  # noqa: BLE001
                print(f"[crawl] browser close error: {exc}")
            if robots is not None:
                try:
                    await robots.aclose()
                except Exception as exc:  # noqa: BLE001
                    print(f"[crawl] robots client close error: {exc}")


async def run_search(
    query: str,
    mode: CompletionMode | str | None = None,
    summarize: Optional[bool] = None,
    **overrides: Any,
) -> SearchOutcome:
    """Convenience wrapper: build a default :class:`SearchPipeline` and run it."""
    return await SearchPipeline(**overrides).run(query, mode=mode, summarize=summarize)

