"""Aggregation budget: bounded plain-text input for the summariser."""

from __future__ import annotations

from typing import Iterable, Optional

from bs4 import BeautifulSoup

from serpgist.config import settings
from serpgist.scraper.models import AggregatedInput, ExtractedSource, SourceText


def source_text(html: str, limit: int) -> str:
    """Return ``Title:`` + representative text of *html*, trimmed and capped.

    The representative node is the first ``<article>``, else ``<body>``,
    else the whole document.  Returns ``""`` when the page has no text.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    node = soup.find("article") or soup.body or soup
    raw_text = node.get_text().strip()
    if not raw_text:
        return ""

    title = soup.title.get_text().strip() if soup.title is not None else ""
    text = f"Title: {title}\n\n{raw_text}" if title else raw_text
    return text[:limit]


class AggregationBudgeter:
    """Greedy, order-preserving combination of sources under a character budget.

    Once the next ``[Source: url]`` block would push the combined text past
    the total budget, no further sources are appended, even smaller ones.
    """

    def __init__(
        self,
        per_source_limit: Optional[int] = None,
        max_total_budget: Optional[int] = None,
    ) -> None:
        self.per_source_limit = (
            settings.per_source_limit if per_source_limit is None else per_source_limit
        )
        self.max_total_budget = (
            settings.max_total_budget if max_total_budget is None else max_total_budget
        )

    def aggregate(self, sources: Iterable[ExtractedSource]) -> AggregatedInput:
        texts: list[SourceText] = []
        for source in sources:
            text = source_text(source.html, self.per_source_limit)
            if not text:
                print(f"[aggregate] source has no text: {source.url}")
                continue
            texts.append(SourceText(url=source.url, text=text))

        combined = ""
        used_urls: list[str] = []
        for item in texts:
            block = f"\n\n[Source: {item.url}]\n{item.text}"
            if len(combined) + len(block) > self.max_total_budget:
                break
            combined += block
            used_urls.append(item.url)

        print(
            f"[aggregate] combined input {len(combined)} chars "
            f"from {len(used_urls)}/{len(texts)} source(s)"
        )
        return AggregatedInput(sources=texts, combined_text=combined, used_urls=used_urls)
