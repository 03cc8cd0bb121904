"""Data models for the crawl pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class RawAnchor:
    """A result link as discovered on a search results page."""

    href: str
    is_ad: bool = False


@dataclass(frozen=True)
class Candidate:
    """A normalised, absolute http(s) URL eligible for visiting."""

    url: str
    score: float = 0.0


class AttemptStatus(str, Enum):
    PENDING = "pending"
    ROBOTS_DENIED = "robots_denied"
    FETCHED = "fetched"
    ADMITTED = "admitted"
    REJECTED = "rejected"
    EXTRACTED = "extracted"
    FAILED = "failed"


@dataclass
class CrawlAttempt:
    """Transient state for one candidate, owned by a single worker."""

    url: str
    status: AttemptStatus = AttemptStatus.PENDING
    reason: str = ""

    def mark(self, status: AttemptStatus, reason: str = "") -> None:
        self.status = status
        self.reason = reason


@dataclass
class ExtractedSource:
    """An accepted document for one candidate.

    ``html`` is either the wrapped article document or, when extraction
    yielded nothing usable, the raw fetched HTML (``extracted=False``).
    """

    url: str
    html: str
    extracted: bool = True


@dataclass
class SourceText:
    """Budgeted plain text for one source, ready for summarisation."""

    url: str
    text: str


@dataclass
class AggregatedInput:
    """Combined, size-bounded summarisation input with provenance."""

    sources: List[SourceText] = field(default_factory=list)
    combined_text: str = ""
    used_urls: List[str] = field(default_factory=list)


@dataclass
class CrawlStats:
    """Counters reported at the end of a crawl."""

    visited: int = 0
    skipped: int = 0
    successes: int = 0


@dataclass
class Article:
    """Structured article returned by an article extractor."""

    title: str
    content: str
    byline: Optional[str] = None
    length: Optional[int] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
