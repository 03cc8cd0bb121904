"""Pipeline package: crawl runner, aggregation, summarisation, orchestration."""

from serpgist.pipeline.aggregator import AggregationBudgeter
from serpgist.pipeline.orchestrator import SearchOutcome, SearchPipeline, run_search
from serpgist.pipeline.runner import CompletionMode, ConcurrentCrawlRunner
from serpgist.pipeline.summarizer import Summarizer

__all__ = [
    "AggregationBudgeter",
    "CompletionMode",
    "ConcurrentCrawlRunner",
    "SearchOutcome",
    "SearchPipeline",
    "Summarizer",
    "run_search",
]
