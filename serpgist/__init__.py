"""SerpGist: search, admit, extract and summarise web sources for a query."""

__version__ = "0.1.0"
