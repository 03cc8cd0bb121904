"""Tests for serpgist.search.providers."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from serpgist.search.providers import DuckDuckGoProvider, GoogleProvider, get_provider


class TestDuckDuckGo:
    def test_search_url(self) -> None:
        url = DuckDuckGoProvider().search_url("example pricing")
        assert url == "https://html.duckduckgo.com/html/?q=example+pricing"

    def test_plus_is_a_space(self) -> None:
        url = DuckDuckGoProvider().search_url("example+pricing")
        assert parse_qs(urlsplit(url).query)["q"] == ["example pricing"]

    def test_redirector_and_referer(self) -> None:
        provider = DuckDuckGoProvider()
        assert provider.referer == "https://duckduckgo.com/"
        assert [r.param for r in provider.redirectors] == ["uddg"]
        assert "result--ad" in provider.anchor_script


class TestGoogle:
    def test_search_url_pins_locale(self) -> None:
        url = GoogleProvider().search_url("c'est la vie")
        parts = urlsplit(url)
        assert parts.netloc == "www.google.com"
        assert parts.path == "/search"
        params = parse_qs(parts.query)
        assert params["q"] == ["c'est la vie"]
        assert params["hl"] == ["en"]
        assert params["pws"] == ["0"]

    def test_redirector(self) -> None:
        rule = GoogleProvider().redirectors[0]
        assert rule.marker == "google.com/url?"
        assert rule.param == "q"


class TestGetProvider:
    def test_by_name(self) -> None:
        assert isinstance(get_provider("google"), GoogleProvider)
        assert isinstance(get_provider(" DuckDuckGo "), DuckDuckGoProvider)

    def test_default_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from serpgist.config import settings

        monkeypatch.setattr(settings, "search_engine", "google")
        assert isinstance(get_provider(), GoogleProvider)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown search engine"):
            get_provider("altavista")
