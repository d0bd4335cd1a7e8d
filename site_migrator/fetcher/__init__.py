"""
Fetcher module.

Contains the URL list parser, the Playwright renderer and the fetch stage.
"""

from .fetcher import PageFetcher
from .renderer import PageRenderer, RenderedPage, looks_blocked
from .url_list import parse_url_list, load_url_list, manual_types_from_entries

__all__ = [
    "PageFetcher",
    "PageRenderer",
    "RenderedPage",
    "looks_blocked",
    "parse_url_list",
    "load_url_list",
    "manual_types_from_entries",
]
