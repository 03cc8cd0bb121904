"""FastAPI application factory.

Routers
-------
    /search  : run the search pipeline for a query
    /health  : liveness probe
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from serpgist import __version__
from serpgist.api.routers import search as search_router


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="SerpGist API",
        description=(
            "Searches the web for a query, visits the top results in a "
            "headless browser, filters out challenge and parked pages, "
            "extracts readable articles, and summarises them."
        ),
        version=__version__,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(search_router.router, prefix="/search", tags=["search"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn serpgist.api.app:app --reload
app = create_app()
