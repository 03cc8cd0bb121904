"""Article extraction: turns admitted HTML into an :class:`ExtractedSource`.

Structured extraction is best-effort.  When it yields no title or no
content, or raises, the raw fetched HTML is returned unchanged.
"""

from __future__ import annotations

import html as html_lib
from typing import Callable, Optional

import trafilatura
from bs4 import BeautifulSoup

from serpgist.scraper.models import Article, ExtractedSource

#: ``(html, base_url) -> Article | None``
ArticleExtractor = Callable[[str, str], Optional[Article]]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _inject_base(html: str, base_url: str) -> str:
    """Return *html* with a ``<base href>`` as the first child of ``<head>``."""
    soup = BeautifulSoup(html, "html.parser")
    base = soup.new_tag("base", href=base_url)
    head = soup.head
    if head is None:
        head = soup.new_tag("head")
        if soup.html is not None:
            soup.html.insert(0, head)
        else:
            soup.insert(0, head)
    head.insert(0, base)
    return str(soup)


def _body_inner_html(fragment: str) -> str:
    """Strip the ``<html><body>`` shell trafilatura puts around HTML output."""
    soup = BeautifulSoup(fragment, "html.parser")
    container = soup.body or soup
    return "".join(str(child) for child in container.contents).strip()


def trafilatura_article(html: str, base_url: str) -> Optional[Article]:
    """Default article extractor backed by ``trafilatura``."""
    document = _inject_base(html, base_url)
    content = trafilatura.extract(
        document,
        url=base_url,
        output_format="html",
        include_links=True,
        include_images=True,
        include_tables=True,
    )
    if not content:
        return None

    meta = trafilatura.extract_metadata(document, default_url=base_url)
    title = (meta.title if meta is not None else None) or ""
    text = trafilatura.extract(document, url=base_url) or ""

    return Article(
        title=title.strip(),
        content=_body_inner_html(content),
        byline=meta.author if meta is not None else None,
        length=len(text),
        excerpt=meta.description if meta is not None else None,
        site_name=meta.sitename if meta is not None else None,
    )


def wrap_as_html_document(article: Article) -> str:
    """Embed *article* in a minimal standalone, readable HTML document."""
    safe_title = html_lib.escape(article.title or "", quote=True)
    return (
        '<!doctype html><html lang="en"><head><meta charset="utf-8"/>'
        '<meta name="viewport" content="width=device-width, initial-scale=1"/>'
        f"<title>{safe_title}</title>"
        "<style>body{margin:2rem auto;max-width:800px;line-height:1.6;"
        "font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,Cantarell,Noto Sans,sans-serif;"
        "padding:0 1rem} img,video,iframe{max-width:100%;height:auto} "
        "pre,code{white-space:pre-wrap;word-wrap:break-word}</style>"
        f"</head><body><article>{article.content}</article></body></html>"
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class ExtractionPipeline:
    """Structured extraction with a raw-HTML fallback."""

    def __init__(self, extractor: Optional[ArticleExtractor] = None) -> None:
        self._extractor = extractor or trafilatura_article

    def extract(self, html: str, base_url: str) -> ExtractedSource:
        try:
            article = self._extractor(html, base_url)
        except Exception as exc:  # noqa: BLE001
            print(f"[extract] parse error for {base_url}: {exc}; using raw HTML")
            return ExtractedSource(url=base_url, html=html, extracted=False)

        if article is not None and article.title and article.content:
            print(
                f"[extract] article extracted from {base_url} "
                f"({len(article.content)} chars)"
            )
            return ExtractedSource(url=base_url, html=wrap_as_html_document(article))

        print(f"[extract] no article found in {base_url}; using raw HTML")
        return ExtractedSource(url=base_url, html=html, extracted=False)
