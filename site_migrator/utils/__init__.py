"""
Utility modules for the site migrator.

Contains logging, path/slug handling, retry helpers, and constants.
"""

from .log import setup_logger, get_logger, logging_sink, StageLogger
from .paths import (
    source_id_from_url,
    extract_article_slug,
    slug_from_source_id,
    normalize_url,
    ensure_dir,
)
from .retry import retry_async
from .constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_TIMEOUT,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_CONCURRENCY,
    DEFAULT_CRAWL_DELAY,
    DEFAULT_MAX_RETRIES,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "logging_sink",
    "StageLogger",
    "source_id_from_url",
    "extract_article_slug",
    "slug_from_source_id",
    "normalize_url",
    "ensure_dir",
    "retry_async",
    "DEFAULT_USER_AGENT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_PAGE_TIMEOUT",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_CRAWL_DELAY",
    "DEFAULT_MAX_RETRIES",
]
