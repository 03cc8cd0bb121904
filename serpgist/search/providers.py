"""Search engine providers for the browser-driven results page.

Each provider knows how to build its results-page URL, which referer to
present, and which in-page script pulls ``{href, isAd}`` anchors out of the
rendered results.  Result links that go through the engine's click
redirector are described by :class:`RedirectRule` so the ranker can unwrap
them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import urlencode

from serpgist.config import settings


@dataclass(frozen=True)
class RedirectRule:
    """A click-tracking redirector carrying the real destination in a query param."""

    marker: str
    param: str


def _normalise_query(query: str) -> str:
    """Treat ``+`` as a space, as a browser address bar would."""
    return query.replace("+", " ").strip()


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class SearchProvider(ABC):
    """Abstract base class for a results page the browser can scrape."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @property
    @abstractmethod
    def base_origin(self) -> str:
        """Origin that relative result hrefs resolve against."""

    @property
    @abstractmethod
    def referer(self) -> str:
        """Referer presented when loading the results page."""

    @property
    @abstractmethod
    def anchor_script(self) -> str:
        """In-page script returning ``[{href, isAd}, ...]``."""

    @property
    def redirectors(self) -> tuple[RedirectRule, ...]:
        return ()

    @abstractmethod
    def search_url(self, query: str) -> str:
        """Return the results-page URL for *query*."""


# ---------------------------------------------------------------------------
# DuckDuckGo (HTML endpoint)
# ---------------------------------------------------------------------------

_DDG_ANCHOR_SCRIPT = """
() => {
  const selectors = [
    'a.result__a',
    'a.result__url',
    'a.result__title',
    'a[rel="nofollow noopener"][href]',
  ];
  const seen = new Set();
  const results = [];
  for (const sel of selectors) {
    for (const a of document.querySelectorAll(sel)) {
      const href = a.href || a.getAttribute('href');
      if (!href || seen.has(href)) continue;
      seen.add(href);
      results.push({ href, isAd: a.closest('.result--ad') !== null });
    }
  }
  return results;
}
"""


class DuckDuckGoProvider(SearchProvider):
    """DuckDuckGo's JavaScript-free HTML results page."""

    @property
    def name(self) -> str:
        return "DuckDuckGo"

    @property
    def base_origin(self) -> str:
        return "https://html.duckduckgo.com"

    @property
    def referer(self) -> str:
        return "https://duckduckgo.com/"

    @property
    def anchor_script(self) -> str:
        return _DDG_ANCHOR_SCRIPT

    @property
    def redirectors(self) -> tuple[RedirectRule, ...]:
        return (RedirectRule(marker="duckduckgo.com/l/?", param="uddg"),)

    def search_url(self, query: str) -> str:
        return f"{self.base_origin}/html/?" + urlencode({"q": _normalise_query(query)})


# ---------------------------------------------------------------------------
# Google
# ---------------------------------------------------------------------------

_GOOGLE_ANCHOR_SCRIPT = """
() => {
  const results = [];
  const seen = new Set();
  for (const a of document.querySelectorAll('div#search a:has(h3)')) {
    const href = a.getAttribute('href');
    if (!href || seen.has(href)) continue;
    seen.add(href);
    results.push({ href, isAd: a.closest('[data-text-ad]') !== null });
  }
  return results;
}
"""


class GoogleProvider(SearchProvider):
    """Google web results (``div#search`` anchors wrapping an ``<h3>``)."""

    @property
    def name(self) -> str:
        return "Google"

    @property
    def base_origin(self) -> str:
        return "https://www.google.com"

    @property
    def referer(self) -> str:
        return "https://www.google.com/"

    @property
    def anchor_script(self) -> str:
        return _GOOGLE_ANCHOR_SCRIPT

    @property
    def redirectors(self) -> tuple[RedirectRule, ...]:
        return (RedirectRule(marker="google.com/url?", param="q"),)

    def search_url(self, query: str) -> str:
        params = {"q": _normalise_query(query), "hl": "en", "gl": "us", "pws": "0", "nfpr": "1"}
        return f"{self.base_origin}/search?" + urlencode(params)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, type[SearchProvider]] = {
    "duckduckgo": DuckDuckGoProvider,
    "google": GoogleProvider,
}


def get_provider(name: str | None = None) -> SearchProvider:
    """Return the provider registered as *name* (default: ``settings.search_engine``).

    Raises:
        ValueError: If *name* is not a known provider.
    """
    key = (name or settings.search_engine).strip().lower()
    try:
        return _PROVIDERS[key]()
    except KeyError:
        raise ValueError(
            f"Unknown search engine {key!r}. Use: {' | '.join(sorted(_PROVIDERS))}"
        ) from None
