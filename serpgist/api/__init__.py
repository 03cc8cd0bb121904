"""FastAPI application package for SerpGist.

Exposes ``create_app`` as the public entry-point so callers can do::

    from serpgist.api import create_app
"""

from serpgist.api.app import create_app

__all__ = ["create_app"]
