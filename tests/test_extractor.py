"""Tests for the extraction pipeline.

``trafilatura`` is patched so results are deterministic; the pipeline's
fallback behaviour is exercised through stub extractors.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

from serpgist.scraper.extractor import (
    ExtractionPipeline,
    _inject_base,
    trafilatura_article,
    wrap_as_html_document,
)
from serpgist.scraper.models import Article

from conftest import article_page

_URL = "https://example.com/pricing"


class TestWrap:
    def test_title_is_escaped_and_content_embedded(self) -> None:
        doc = wrap_as_html_document(Article(title='<b>"Plans" & \'tiers\'</b>', content="<p>Body</p>"))
        assert "<title>&lt;b&gt;&quot;Plans&quot; &amp; &#x27;tiers&#x27;&lt;/b&gt;</title>" in doc
        assert "<article><p>Body</p></article>" in doc
        assert doc.startswith("<!doctype html>")


class TestExtractionPipeline:
    def test_article_is_wrapped(self) -> None:
        pipeline = ExtractionPipeline(lambda html, url: Article(title="Pricing", content="<p>$20</p>"))
        source = pipeline.extract(article_page(), _URL)
        assert source.url == _URL
        assert source.extracted is True
        assert "<title>Pricing</title>" in source.html
        assert "<article><p>$20</p></article>" in source.html

    def test_no_article_falls_back_to_raw_html(self) -> None:
        raw = article_page()
        source = ExtractionPipeline(lambda html, url: None).extract(raw, _URL)
        assert source.html == raw
        assert source.extracted is False

    def test_missing_title_falls_back_to_raw_html(self) -> None:
        raw = article_page()
        pipeline = ExtractionPipeline(lambda html, url: Article(title="", content="<p>x</p>"))
        assert pipeline.extract(raw, _URL).html == raw

    def test_extractor_error_falls_back_to_raw_html(self) -> None:
        def _boom(html: str, url: str) -> Article:
            raise RuntimeError("parser exploded")

        raw = article_page()
        source = ExtractionPipeline(_boom).extract(raw, _URL)
        assert source.html == raw
        assert source.extracted is False


class TestTrafilaturaArticle:
    def test_builds_article_with_base_url_injected(self) -> None:
        def _extract(document, url=None, output_format="txt", **kwargs):
            assert f'<base href="{_URL}"/>' in document
            if output_format == "html":
                return "<html><body><h1>Pricing</h1><p>$20</p></body></html>"
            return "Pricing $20"

        meta = SimpleNamespace(title=" Pricing ", author="Jo", description="Plans", sitename="Example")
        with patch("serpgist.scraper.extractor.trafilatura.extract", side_effect=_extract), \
             patch("serpgist.scraper.extractor.trafilatura.extract_metadata", return_value=meta):
            article = trafilatura_article(article_page(), _URL)

        assert article is not None
        assert article.title == "Pricing"
        assert article.content == "<h1>Pricing</h1><p>$20</p>"
        assert article.byline == "Jo"
        assert article.site_name == "Example"
        assert article.excerpt == "Plans"
        assert article.length == len("Pricing $20")

    def test_returns_none_without_content(self) -> None:
        with patch("serpgist.scraper.extractor.trafilatura.extract", return_value=None):
            assert trafilatura_article(article_page(), _URL) is None

    def test_missing_metadata_gives_empty_title(self) -> None:
        with patch("serpgist.scraper.extractor.trafilatura.extract", return_value="<p>x</p>"), \
             patch("serpgist.scraper.extractor.trafilatura.extract_metadata", return_value=None):
            article = trafilatura_article(article_page(), _URL)
        assert article is not None
        assert article.title == ""
        # An untitled article is not usable, so the pipeline keeps raw HTML.
        raw = article_page()
        with patch("serpgist.scraper.extractor.trafilatura.extract", return_value="<p>x</p>"), \
             patch("serpgist.scraper.extractor.trafilatura.extract_metadata", return_value=None):
            assert ExtractionPipeline().extract(raw, _URL).html == raw


class TestInjectBase:
    def test_inserts_base_as_first_head_child(self) -> None:
        out = _inject_base("<html><head><title>T</title></head><body></body></html>", _URL)
        assert out.index("<base") < out.index("<title>")

    def test_creates_head_when_missing(self) -> None:
        out = _inject_base("<html><body><p>x</p></body></html>", _URL)
        assert f'<head><base href="{_URL}"/></head>' in out
