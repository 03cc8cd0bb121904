"""Candidate ranking: normalise, filter, deduplicate and score result links.

Domain heuristics live in ordered rule tables (:data:`QUALITY_RULES` etc.)
that can be replaced per :class:`CandidateRanker` without touching the
crawl orchestration.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
from urllib.parse import parse_qs, urljoin, urlsplit

from serpgist.config import settings
from serpgist.errors import NoCandidatesError
from serpgist.scraper.models import Candidate, RawAnchor
from serpgist.search.providers import RedirectRule

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class ScoreRule:
    """Adds *weight* to a candidate whose URL matches *pattern*."""

    name: str
    pattern: re.Pattern[str]
    weight: float


def _domain(host: str) -> str:
    """Regex matching *host* or any of its subdomains at the start of a URL."""
    return r"^https?://([^/?#]+\.)?" + re.escape(host) + r"(?::\d+)?(?:[/?#]|$)"


def _rules(weight: float, *hosts: str) -> tuple[ScoreRule, ...]:
    return tuple(
        ScoreRule(host, re.compile(_domain(host), re.IGNORECASE), weight) for host in hosts
    )


RULES_VERSION = "2024.10"

QUALITY_RULES: tuple[ScoreRule, ...] = _rules(
    3,
    "wikipedia.org",
    "stackoverflow.com",
    "stackexchange.com",
    "github.com",
    "readthedocs.io",
    "developer.mozilla.org",
    "news.ycombinator.com",
) + (
    ScoreRule("docs_subdomain", re.compile(r"^https?://(docs|developer|developers)\.", re.I), 3),
    ScoreRule("forum_subdomain", re.compile(r"^https?://(forum|forums|community|discuss)\.", re.I), 3),
)

SOCIAL_RULES: tuple[ScoreRule, ...] = _rules(
    -5,
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "tiktok.com",
    "pinterest.com",
    "linkedin.com",
)

TRACKING_RULES: tuple[ScoreRule, ...] = _rules(
    -10,
    "doubleclick.net",
    "googleadservices.com",
    "googlesyndication.com",
    "adservice.google.com",
)

#: Each table contributes at most one weight: its first matching rule.
DEFAULT_SCORE_TABLES: tuple[tuple[ScoreRule, ...], ...] = (QUALITY_RULES, SOCIAL_RULES, TRACKING_RULES)

BLOCKED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"google\.com/adsense/domains", re.IGNORECASE),
    re.compile(r"duckduckgo\.com/y\.js", re.IGNORECASE),
    re.compile(r"googleadservices\.com/pagead/aclk", re.IGNORECASE),
    re.compile(r"bing\.com/aclick", re.IGNORECASE),
)

DEFAULT_REDIRECTORS: tuple[RedirectRule, ...] = (
    RedirectRule(marker="duckduckgo.com/l/?", param="uddg"),
    RedirectRule(marker="google.com/url?", param="q"),
)


class CandidateRanker:
    """Turn raw results-page anchors into an ordered, capped candidate list."""

    def __init__(
        self,
        base_origin: str = "https://html.duckduckgo.com",
        redirectors: Optional[Sequence[RedirectRule]] = None,
        blocked: Optional[Sequence[re.Pattern[str]]] = None,
        score_tables: Optional[Sequence[Sequence[ScoreRule]]] = None,
        cap: Optional[int] = None,
        score: Optional[bool] = None,
    ) -> None:
        self.base_origin = base_origin
        self.redirectors = tuple(DEFAULT_REDIRECTORS if redirectors is None else redirectors)
        self.blocked = tuple(BLOCKED_PATTERNS if blocked is None else blocked)
        self.score_tables = tuple(
            tuple(table)
            for table in (DEFAULT_SCORE_TABLES if score_tables is None else score_tables)
        )
        self.cap = settings.candidate_cap if cap is None else cap
        self.score = settings.score_candidates if score is None else score

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def normalize(self, href: str) -> str:
        """Resolve *href* to an absolute URL and unwrap known redirectors."""
        candidate = href.strip()
        if candidate.startswith("/"):
            candidate = urljoin(self.base_origin + "/", candidate)

        for rule in self.redirectors:
            if rule.marker in candidate:
                try:
                    destination = parse_qs(urlsplit(candidate).query).get(rule.param)
                except ValueError:
                    destination = None
                if destination:
                    return destination[0]
        return candidate

    def is_blocked(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in self.blocked)

    def score_url(self, url: str) -> float:
        try:
            parts = urlsplit(url)
            if not parts.hostname:
                return -1
        except ValueError:
            return -1

        score = 0.0
        for table in self.score_tables:
            for rule in table:
                if rule.pattern.search(url):
                    score += rule.weight
                    break
        if url.lower().startswith("https://"):
            score += 1
        if len(url) < 100:
            score += 1
        return score

    def filter_and_dedupe(self, anchors: Iterable[RawAnchor]) -> list[str]:
        """Drop ads, non-http(s) and blocked links; keep first occurrences."""
        seen: set[str] = set()
        urls: list[str] = []
        for anchor in anchors:
            if anchor.is_ad:
                continue
            url = self.normalize(anchor.href)
            if not _HTTP_URL.match(url) or self.is_blocked(url):
                continue
            if url not in seen:
                seen.add(url)
                urls.append(url)
        return urls

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rank(self, anchors: Iterable[RawAnchor]) -> list[Candidate]:
        """Return the ordered candidate list, capped at ``self.cap``.

        Raises:
            NoCandidatesError: If no anchor survives filtering.
        """
        anchors = list(anchors)
        urls = self.filter_and_dedupe(anchors)
        if not urls:
            raise NoCandidatesError(
                f"Failed to locate any non-ad search result links "
                f"({len(anchors)} raw results)"
            )

        if self.score:
            candidates = [Candidate(url=u, score=self.score_url(u)) for u in urls]
            candidates.sort(key=lambda c: -c.score)
        else:
            candidates = [Candidate(url=u) for u in urls]

        return candidates[: self.cap]


def anchors_from_evaluation(payload: object) -> list[RawAnchor]:
    """Coerce an anchor-script result into :class:`RawAnchor` objects.

    Entries that are not mappings with a string ``href`` are ignored.
    """
    anchors: list[RawAnchor] = []
    if not isinstance(payload, list):
        return anchors
    for item in payload:
        if not isinstance(item, dict):
            continue
        href = item.get("href")
        if isinstance(href, str) and href:
            anchors.append(RawAnchor(href=href, is_ad=bool(item.get("isAd", False))))
    return anchors
