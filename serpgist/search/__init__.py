"""Search package: results-page providers and candidate ranking."""

from serpgist.search.providers import DuckDuckGoProvider, GoogleProvider, SearchProvider, get_provider
from serpgist.search.ranker import CandidateRanker

__all__ = [
    "CandidateRanker",
    "DuckDuckGoProvider",
    "GoogleProvider",
    "SearchProvider",
    "get_provider",
]
