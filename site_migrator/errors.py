"""
Error types raised by the migration stages.

Each stage has one error class whose ``kind`` says what went wrong.
Per-item errors are caught at the item boundary and recorded with
:func:`error_record`; stage-level errors propagate to the caller.
"""

from enum import Enum
from typing import Any, Dict, Optional


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    BLOCKED = "blocked"
    NAVIGATION_FAILED = "navigation_failed"
    NO_INPUT_URLS = "no_input_urls"


class TransformErrorKind(str, Enum):
    PARSE_FAILURE = "parse_failure"
    SELECTOR_ERROR = "selector_error"


class AssetErrorKind(str, Enum):
    DOWNLOAD_FAILED = "download_failed"
    CONVERSION_FAILED = "conversion_failed"


class ExportErrorKind(str, Enum):
    SERIALIZATION_FAILURE = "serialization_failure"
    NO_INPUT_DOCUMENTS = "no_input_documents"


class MigrationError(Exception):
    """Base class for all pipeline errors."""

    stage = "pipeline"

    def __init__(self, kind: Enum, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class FetchError(MigrationError):
    """A page could not be retrieved."""

    stage = "fetcher"


class TransformError(MigrationError):
    """A document could not be sanitized or classified."""

    stage = "sanitizer"


class AssetError(MigrationError):
    """An image could not be downloaded or converted."""

    stage = "assets"


class ExportError(MigrationError):
    """The export file could not be produced."""

    stage = "exporter"


def error_record(item: str, error: Exception) -> Dict[str, Any]:
    """
    Build the dict stored in a stage's error list.

    Args:
        item: URL, source id, or image URL the error belongs to
        error: The caught exception

    Returns:
        Dictionary with ``id``, ``error`` and ``type`` keys
    """
    if isinstance(error, MigrationError):
        error_type = error.kind.value
        message = error.message
    else:
        error_type = type(error).__name__
        message = str(error)

    return {
        'id': item,
        'error': message,
        'type': error_type,
    }
