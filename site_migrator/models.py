"""
Data records passed between the migration stages.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class ContentType(str, Enum):
    """Target content type in the CMS."""

    POST = "post"
    PAGE = "page"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ContentType"]:
        """Return the matching member for 'post'/'page', else None."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class UrlEntry:
    """One line of the input URL list."""

    url: str
    type_hint: Optional[ContentType] = None


@dataclass(frozen=True)
class RawDocument:
    """Rendered markup of a source page, keyed by source id."""

    source_id: str
    html: str
    fetched_at: str
    url: Optional[str] = None


@dataclass(frozen=True)
class ClassificationVerdict:
    """Post-vs-page decision for a document."""

    type: ContentType
    confidence: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'confidence': self.confidence,
            'reason': self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationVerdict":
        return cls(
            type=ContentType(data['type']),
            confidence=int(data.get('confidence', 0)),
            reason=data.get('reason', ''),
        )


@dataclass(frozen=True)
class CleanDocument:
    """Sanitized markup plus its classification."""

    source_id: str
    html: str
    verdict: ClassificationVerdict


@dataclass
class ImageRecord:
    """Outcome for one image reference found in a raw document."""

    original_url: str
    local_filename: str
    article_slug: str
    source_id: str
    size_bytes: int = 0
    alt_text: str = ""
    skipped: bool = False
    format_converted: bool = False
    original_format: Optional[str] = None
    metadata_embedded: bool = False
    skip_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def downloaded(self) -> bool:
        return not self.skipped and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageRecord":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ExportRow:
    """One row of the export file."""

    title: str
    slug: str
    content: str
    excerpt: str
    type: str
    status: str
    date: str
    category: str


@dataclass
class StageSummary:
    """Completion summary returned by every stage."""

    stage: str
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.skipped

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
