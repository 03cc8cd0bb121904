"""Shared fakes for the browser page capability.

``FakeSession`` hands out ``RoutingPage`` objects: each page looks up the
URL passed to ``goto`` in a route table of :class:`PageSpec` entries, so one
session can serve a results page plus any number of candidate pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from serpgist.scraper.browser import BrowserIdentity
from serpgist.scraper.rate_limiter import RateLimiter


ARTICLE_BODY = (
    "<p>"
    + "The Pro plan costs $20 per month and includes unlimited projects. " * 12
    + "</p>"
)


def article_page(title: str = "Pricing", body: str = ARTICLE_BODY) -> str:
    return (
        f"<!doctype html><html><head><title>{title}</title></head>"
        f"<body><nav>Menu</nav><article><h1>{title}</h1>{body}</article></body></html>"
    )


def challenge_page() -> str:
    filler = "<p>Checking your browser before accessing the site.</p>" * 10
    return (
        "<html><head><title>Just a moment...</title></head><body>"
        f"{filler}<script src='/cdn-cgi/challenge-platform/h/g/orchestrate/jsch/v1'></script>"
        "</body></html>"
    )


@dataclass
class PageSpec:
    html: str = ""
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    anchors: Any = None
    goto_error: Optional[Exception] = None
    content_errors: list[Exception] = field(default_factory=list)
    evaluate_error: Optional[Exception] = None


@dataclass
class FakeResponse:
    status: int
    headers: dict[str, str]


class RoutingPage:
    def __init__(self, routes: dict[str, PageSpec]) -> None:
        self.routes = routes
        self.spec: Optional[PageSpec] = None
        self.visited: list[str] = []
        self.goto_kwargs: list[dict[str, Any]] = []
        self.content_calls = 0
        self.timeouts: dict[str, float] = {}

    def set_default_timeout(self, ms: float) -> None:
        self.timeouts["default"] = ms

    def set_default_navigation_timeout(self, ms: float) -> None:
        self.timeouts["navigation"] = ms

    async def goto(self, url: str, **kwargs: Any) -> FakeResponse:
        self.visited.append(url)
        self.goto_kwargs.append(kwargs)
        self.spec = self.routes.get(url, PageSpec(status=404, html="not found"))
        if self.spec.goto_error is not None:
            raise self.spec.goto_error
        return FakeResponse(self.spec.status, self.spec.headers)

    async def wait_for_event(self, event: str, timeout: float | None = None) -> None:
        raise TimeoutError(f"Timeout {timeout}ms exceeded while waiting for event {event!r}")

    async def content(self) -> str:
        assert self.spec is not None
        self.content_calls += 1
        if self.spec.content_errors:
            raise self.spec.content_errors.pop(0)
        return self.spec.html

    async def evaluate(self, script: str) -> Any:
        assert self.spec is not None
        if self.spec.evaluate_error is not None:
            raise self.spec.evaluate_error
        return self.spec.anchors


class FakeSession:
    def __init__(self, routes: Optional[dict[str, PageSpec]] = None) -> None:
        self.routes = routes or {}
        self.pages: list[RoutingPage] = []
        self.closed_pages: list[RoutingPage] = []
        self.stealth_applied = 0
        self.closed = False
        self.page_error: Optional[Exception] = None

    async def new_page(self, identity: BrowserIdentity) -> RoutingPage:
        if self.page_error is not None:
            raise self.page_error
        page = RoutingPage(self.routes)
        self.pages.append(page)
        return page

    async def apply_stealth(self, page: RoutingPage, identity: BrowserIdentity) -> None:
        self.stealth_applied += 1

    async def close_page(self, page: RoutingPage) -> None:
        self.closed_pages.append(page)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def identity() -> BrowserIdentity:
    return BrowserIdentity(user_agent="TestBot/1.0")


@pytest.fixture()
def no_delay_limiter() -> RateLimiter:
    return RateLimiter(min_delay=0, max_delay=0, base_delay=0, jitter=0)


@pytest.fixture(autouse=True)
def fast_timings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep fixed sleeps in the crawl sequence out of the test run."""
    from serpgist.config import settings

    monkeypatch.setattr(settings, "redirect_settle", 0.0)
    monkeypatch.setattr(settings, "content_read_retry_delay", 0.0)
