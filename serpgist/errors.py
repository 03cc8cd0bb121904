"""Exception hierarchy for the search pipeline.

Only whole-pipeline preconditions (browser launch, SERP load, zero
candidates) are fatal for a request.  Everything raised inside a candidate
worker is caught at the worker boundary and recorded on its
:class:`~serpgist.scraper.models.CrawlAttempt`.

Admission rejections and degraded extraction are *not* errors; see
:class:`~serpgist.scraper.admission.AdmissionVerdict` and
:attr:`~serpgist.scraper.models.ExtractedSource.extracted`.
"""

from __future__ import annotations


class SerpGistError(Exception):
    """Base class for every error raised by the pipeline."""

    #: Prefix used when the error is rendered to an end user.
    user_prefix = "Search failed"

    def user_message(self) -> str:
        return f"{self.user_prefix}: {self}"


class LaunchError(SerpGistError):
    """The browser could not be launched."""

    user_prefix = "Failed to launch browser"


class PageCreationError(SerpGistError):
    """A new page could not be opened on the shared browser."""


class NavigationError(SerpGistError):
    """Navigation failed, timed out, or returned an HTTP error status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class EvaluationError(SerpGistError):
    """An in-page extraction script failed."""


class ContentReadError(SerpGistError):
    """Rendered HTML could not be read from the page."""


class RobotsCheckError(SerpGistError):
    """robots.txt could not be fetched or parsed (never propagated)."""


class NoCandidatesError(SerpGistError):
    """The search results page yielded no usable candidate URL."""


class SummarizationError(SerpGistError):
    """The summarisation model failed (the pipeline falls back to HTML)."""
