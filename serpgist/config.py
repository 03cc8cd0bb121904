"""Centralised settings for the SerpGist search pipeline.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Rate limiting (seconds)
    # ------------------------------------------------------------------
    rate_limit_min_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_MIN_DELAY", "1.5"))
    )
    rate_limit_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_BASE_DELAY", "1.5"))
    )
    rate_limit_max_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_MAX_DELAY", "8.0"))
    )
    rate_limit_jitter: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_JITTER", "0.5"))
    )
    retry_after_cap: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_AFTER_CAP", "30.0"))
    )

    # ------------------------------------------------------------------
    # Per-operation timeouts (seconds)
    # ------------------------------------------------------------------
    nav_timeout: float = field(
        default_factory=lambda: float(os.environ.get("NAV_TIMEOUT", "10.0"))
    )
    op_timeout: float = field(
        default_factory=lambda: float(os.environ.get("OP_TIMEOUT", "10.0"))
    )
    page_close_timeout: float = field(
        default_factory=lambda: float(os.environ.get("PAGE_CLOSE_TIMEOUT", "2.0"))
    )
    browser_close_timeout: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_CLOSE_TIMEOUT", "10.0"))
    )
    robots_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ROBOTS_TIMEOUT", "10.0"))
    )
    redirect_settle: float = field(
        default_factory=lambda: float(os.environ.get("REDIRECT_SETTLE", "0.3"))
    )
    redirect_wait: float = field(
        default_factory=lambda: float(os.environ.get("REDIRECT_WAIT", "1.5"))
    )

    # ------------------------------------------------------------------
    # Crawl
    # ------------------------------------------------------------------
    crawl_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_CONCURRENCY", "2"))
    )
    crawl_mode: str = field(
        default_factory=lambda: os.environ.get("CRAWL_MODE", "gather")
    )
    candidate_cap: int = field(
        default_factory=lambda: int(os.environ.get("CANDIDATE_CAP", "20"))
    )
    score_candidates: bool = field(
        default_factory=lambda: _env_bool("SCORE_CANDIDATES", "false")
    )
    respect_robots: bool = field(
        default_factory=lambda: _env_bool("RESPECT_ROBOTS", "true")
    )
    search_engine: str = field(
        default_factory=lambda: os.environ.get("SEARCH_ENGINE", "duckduckgo")
    )
    content_read_attempts: int = field(
        default_factory=lambda: int(os.environ.get("CONTENT_READ_ATTEMPTS", "3"))
    )
    content_read_retry_delay: float = field(
        default_factory=lambda: float(os.environ.get("CONTENT_READ_RETRY_DELAY", "0.3"))
    )
    headless: bool = field(
        default_factory=lambda: _env_bool("HEADLESS", "true")
    )

    # ------------------------------------------------------------------
    # Aggregation budget (characters)
    # ------------------------------------------------------------------
    per_source_limit: int = field(
        default_factory=lambda: int(os.environ.get("PER_SOURCE_LIMIT", "20000"))
    )
    max_total_budget: int = field(
        default_factory=lambda: int(os.environ.get("MAX_TOTAL_BUDGET", "120000"))
    )

    # ------------------------------------------------------------------
    # Summarisation model
    # ------------------------------------------------------------------
    summarize: bool = field(
        default_factory=lambda: _env_bool("SUMMARIZE", "true")
    )
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "ollama")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )


# Module-level singleton, import this everywhere:
#   from serpgist.config import settings
settings = Settings()
