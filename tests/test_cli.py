"""Tests for the serpgist CLI commands."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from cli.main import app
from serpgist.errors import NoCandidatesError
from serpgist.pipeline.orchestrator import TEXT_HTML, TEXT_PLAIN, SearchOutcome
from serpgist.scraper.models import CrawlStats

from conftest import article_page, challenge_page

runner = CliRunner()


def test_search_prints_answer() -> None:
    outcome = SearchOutcome(
        body="Pro is $20/month.\n\nSources:\n1. https://a.example/",
        media_type=TEXT_PLAIN,
        stats=CrawlStats(visited=3, skipped=2, successes=1),
    )
    with patch("cli.main.run_search", new=AsyncMock(return_value=outcome)) as run:
        result = runner.invoke(app, ["search", "-q", "example pricing", "--mode", "race"])

    assert result.exit_code == 0
    assert "visited=3 skipped=2 successes=1  (text/plain)" in result.stdout
    assert "Sources:\n1. https://a.example/" in result.stdout
    run.assert_awaited_once_with("example pricing", mode="race", summarize=True)


def test_search_no_summary_flag() -> None:
    outcome = SearchOutcome(body="<html></html>", media_type=TEXT_HTML)
    with patch("cli.main.run_search", new=AsyncMock(return_value=outcome)) as run:
        result = runner.invoke(app, ["search", "-q", "x", "--no-summary"])
    assert result.exit_code == 0
    assert run.await_args.kwargs["summarize"] is False


def test_search_rejects_unknown_mode() -> None:
    with patch("cli.main.run_search", new=AsyncMock()) as run:
        result = runner.invoke(app, ["search", "-q", "x", "--mode", "fastest"])
    assert result.exit_code == 1
    assert "Unknown mode" in result.stdout
    run.assert_not_awaited()


def test_search_reports_pipeline_error() -> None:
    error = NoCandidatesError("Failed to locate any non-ad search result links")
    with patch("cli.main.run_search", new=AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["search", "-q", "x"])
    assert result.exit_code == 1


def test_search_blank_query_exit_code() -> None:
    with patch("cli.main.run_search", new=AsyncMock(side_effect=ValueError("query must be a non-empty string"))):
        result = runner.invoke(app, ["search", "-q", "  "])
    assert result.exit_code == 2


def test_robots_allowed_and_disallowed() -> None:
    checker = MagicMock()
    checker.aclose = AsyncMock()

    checker.is_allowed = AsyncMock(return_value=True)
    with patch("cli.main.RobotsPolicyChecker", return_value=checker):
        result = runner.invoke(app, ["robots", "--url", "https://a.example/page"])
    assert result.exit_code == 0
    assert "allowed: https://a.example/page" in result.stdout

    checker.is_allowed = AsyncMock(return_value=False)
    with patch("cli.main.RobotsPolicyChecker", return_value=checker):
        result = runner.invoke(
            app, ["robots", "--url", "https://a.example/private", "--user-agent", "TestBot"]
        )
    assert result.exit_code == 3
    assert "disallowed" in result.stdout
    checker.is_allowed.assert_awaited_once_with("https://a.example/private", "TestBot")
    checker.aclose.assert_awaited()


def test_classify_article_and_challenge(tmp_path) -> None:
    good = tmp_path / "good.html"
    good.write_text(article_page(), encoding="utf-8")
    result = runner.invoke(app, ["classify", str(good)])
    assert result.exit_code == 0
    assert "[classify] admit" in result.stdout

    bad = tmp_path / "bad.html"
    bad.write_text(challenge_page(), encoding="utf-8")
    result = runner.invoke(app, ["classify", str(bad)])
    assert "[classify] challenge  (challenge_platform)" in result.stdout


def test_classify_missing_file(tmp_path) -> None:
    result = runner.invoke(app, ["classify", str(tmp_path / "nope.html")])
    assert result.exit_code != 0


def test_serve_runs_uvicorn() -> None:
    with patch("uvicorn.run") as run:
        result = runner.invoke(app, ["serve", "--port", "9001"])
    assert result.exit_code == 0
    run.assert_called_once_with("serpgist.api.app:app", host="127.0.0.1", port=9001, reload=False)


def test_search_reports_unexpected_error() -> None:
    with patch("cli.main.run_search", new=AsyncMock(side_effect=RuntimeError("Target closed"))):
        result = runner.invoke(app, ["search", "-q", "x"])
    assert result.exit_code == 1
    assert not isinstance(result.exception, RuntimeError)
