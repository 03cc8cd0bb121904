"""Search endpoint.

Routes
------
GET /search?q=<query>&mode=race|gather&summarize=true|false

Responses are always plain bodies, never JSON: a ``text/plain`` answer with
an appended source list, a ``text/html`` document (extracted article, raw
page, or the results page as a last resort), or a ``text/plain`` error
message with a 4xx/5xx status.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response

from serpgist.errors import SerpGistError
from serpgist.pipeline.orchestrator import run_search
from serpgist.pipeline.runner import CompletionMode

router = APIRouter()

_USAGE = 'Missing "q" search param. Usage: /search?q=your+query'
_MODES = tuple(m.value for m in CompletionMode)


@router.get("")
async def search(
    q: Optional[str] = None,
    mode: Optional[str] = None,
    summarize: Optional[bool] = None,
) -> Response:
    """Run the search pipeline for *q*.

    Args:
        q: The search query (required, non-blank).
        mode: ``race`` returns the first admitted page; ``gather`` visits
            every candidate.  Defaults to ``settings.crawl_mode``.
        summarize: Override ``settings.summarize`` for this request.
    """
    query = (q or "").strip()
    if not query:
        return PlainTextResponse(_USAGE, status_code=400)
    if mode is not None and mode not in _MODES:
        return PlainTextResponse(
            f"Unknown mode {mode!r}. Use: {' | '.join(_MODES)}", status_code=400
        )

    try:
        outcome = await run_search(query, mode=mode, summarize=summarize)
    except SerpGistError as exc:
        print(f"[api] search failed for {query!r}: {exc}")
        return PlainTextResponse(exc.user_message(), status_code=500)
    except Exception as exc:  # noqa: BLE001
        print(f"[api] unexpected error for {query!r}: {exc}")
        return PlainTextResponse(f"Search failed: {exc}", status_code=500)

    return Response(content=outcome.body, media_type=outcome.media_type)
