"""Scraper package: per-candidate fetch, admission and article extraction."""

from serpgist.scraper.admission import AdmissionVerdict, ContentAdmissionGate
from serpgist.scraper.extractor import ExtractionPipeline
from serpgist.scraper.fetcher import CandidateFetcher
from serpgist.scraper.models import AggregatedInput, Candidate, ExtractedSource, RawAnchor
from serpgist.scraper.rate_limiter import RateLimiter
from serpgist.scraper.robots import RobotsPolicyChecker

__all__ = [
    "AdmissionVerdict",
    "AggregatedInput",
    "Candidate",
    "CandidateFetcher",
    "ContentAdmissionGate",
    "ExtractedSource",
    "ExtractionPipeline",
    "RateLimiter",
    "RawAnchor",
    "RobotsPolicyChecker",
]
