"""Answer synthesis from aggregated sources via a LangChain chat model."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from serpgist.config import settings
from serpgist.errors import SummarizationError
from serpgist.scraper.models import AggregatedInput


# ---------------------------------------------------------------------------
# LLM helper
# ---------------------------------------------------------------------------

def _get_llm() -> Any:
    """Return a configured LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=settings.openai_chat_model, temperature=0)

    from langchain_ollama import ChatOllama

    return ChatOllama(model=settings.ollama_chat_model, temperature=0)


def model_name() -> str:
    if settings.llm_provider == "openai":
        return settings.openai_chat_model
    return settings.ollama_chat_model


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def build_prompt(query: str, aggregated: AggregatedInput) -> str:
    """Single user-role prompt: query, enumerated sources, bounded content."""
    sources = ", ".join(f"({i}) {url}" for i, url in enumerate(aggregated.used_urls, start=1))
    return (
        "Answer the user's query precisely using ONLY the provided content.\n\n"
        f"User query: {query}\n\n"
        "If the content includes pricing, list the concrete plans, prices, "
        "currencies, and billing periods clearly. If pricing is not present, "
        "say that pricing information could not be found in the provided "
        "content. Be concise and factual. Then provide 2-5 short bullet points "
        "with key supporting facts.\n\n"
        f"Sources: {sources}\n\n"
        f"Content:\n{aggregated.combined_text}"
    )


def sources_block(urls: Sequence[str]) -> str:
    """Human-readable source list appended to a text answer."""
    if not urls:
        return ""
    return "\n\nSources:\n" + "\n".join(f"{i}. {url}" for i, url in enumerate(urls, start=1))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class Summarizer:
    """Thin async wrapper around a chat model."""

    def __init__(self, llm: Optional[Any] = None) -> None:
        self._llm = llm

    async def summarize(self, query: str, aggregated: AggregatedInput) -> str:
        """Return the model's answer (possibly empty).

        Raises:
            SummarizationError: If the model call fails.
        """
        prompt = build_prompt(query, aggregated)
        try:
            llm = self._llm or _get_llm()
            response = await llm.ainvoke(prompt)
        except Exception as exc:  # noqa: BLE001
            raise SummarizationError(str(exc)) from exc

        text = response.content if hasattr(response, "content") else str(response)
        if not isinstance(text, str):
            text = str(text)
        return text.strip()
