"""SerpGist CLI: run the search pipeline and its building blocks from a shell.

Usage:
    python cli/main.py --help

Commands:
    search    → full pipeline (results page → crawl → answer)
    robots    → robots.txt allow/deny check for one URL
    classify  → admission verdict for a local HTML file
    serve     → run the HTTP API under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from serpgist.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
from typing import Optional

import typer

from serpgist.errors import SerpGistError
from serpgist.pipeline.orchestrator import run_search
from serpgist.scraper.admission import ContentAdmissionGate
from serpgist.scraper.browser import USER_AGENTS
from serpgist.scraper.robots import RobotsPolicyChecker

app = typer.Typer(
    name="serpgist",
    help="SerpGist CLI.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
@app.command("search")
def search(
    query: str = typer.Option(..., "--query", "-q", help="Search query."),
    mode: str = typer.Option("gather", help="Completion mode: race | gather."),
    summarize: bool = typer.Option(True, "--summarize/--no-summary", help="Summarise the sources."),
) -> None:
    """Search, visit the top results, and print the answer or document."""
    if mode not in ("race", "gather"):
        typer.echo(f"[search] Unknown mode {mode!r}. Use: race | gather")
        raise typer.Exit(1)

    typer.echo(f"[search] Searching {query!r}  (mode={mode})")
    try:
        outcome = asyncio.run(run_search(query, mode=mode, summarize=summarize))
    except SerpGistError as exc:
        typer.echo(exc.user_message(), err=True)
        raise typer.Exit(1)
    except ValueError as exc:
        typer.echo(f"[search] {exc}", err=True)
        raise typer.Exit(2)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Search failed: {exc}", err=True)
        raise typer.Exit(1)

    stats = outcome.stats
    typer.echo(
        f"[search] visited={stats.visited} skipped={stats.skipped} "
        f"successes={stats.successes}  ({outcome.media_type.split(';')[0]})"
    )
    typer.echo("")
    typer.echo(outcome.body)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------
@app.command("robots")
def robots(
    url: str = typer.Option(..., help="URL to check."),
    user_agent: Optional[str] = typer.Option(None, "--user-agent", help="User-agent to check for."),
) -> None:
    """Report whether robots.txt allows fetching *url*."""
    agent = user_agent or USER_AGENTS[0]

    async def _check() -> bool:
        checker = RobotsPolicyChecker()
        try:
            return await checker.is_allowed(url, agent)
        finally:
            await checker.aclose()

    allowed = asyncio.run(_check())
    typer.echo(f"[robots] {'allowed' if allowed else 'disallowed'}: {url}")
    if not allowed:
        raise typer.Exit(3)


@app.command("classify")
def classify(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local HTML file."),
) -> None:
    """Print the admission verdict for a saved HTML page."""
    html = path.read_text(encoding="utf-8", errors="replace")
    decision = ContentAdmissionGate().classify(html)
    reason = f"  ({decision.reason})" if decision.reason else ""
    typer.echo(f"[classify] {decision.verdict.value}{reason}  {len(html)} chars")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes."),
) -> None:
    """Run the HTTP API (``/search``, ``/health``) under uvicorn."""
    import uvicorn

    typer.echo(f"[serve] http://{host}:{port}/search?q=your+query")
    uvicorn.run("serpgist.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
