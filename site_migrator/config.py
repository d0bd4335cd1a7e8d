"""
Immutable configuration values for the migration stages.

Every stage receives its own frozen section at construction time; nothing
reads configuration from globals. ``load_config`` builds a
``MigrationConfig`` from a JSON file whose keys follow either the camelCase
form (``maxRetries``) or the snake_case attribute names.
"""

import json
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .models import ContentType
from .utils.constants import (
    ALLOWED_IMAGE_FORMATS,
    CLEAN_DIR,
    DEFAULT_BACKOFF,
    DEFAULT_CONCURRENCY,
    DEFAULT_CONTENT_SELECTORS,
    DEFAULT_CRAWL_DELAY,
    DEFAULT_DOWNLOAD_RETRIES,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_SPACING,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_WAIT_TIME,
    DATE_SELECTORS,
    EXPORT_DIR,
    EXPORT_FILE,
    IMAGE_DIR,
    IMAGE_MAPPING_FILE,
    RAW_DIR,
    TITLE_SELECTORS,
)


# Attributes kept per tag; "*" applies to every element
DEFAULT_PRESERVED_ATTRIBUTES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("*", ("style",)),
    ("a", ("href", "target", "rel")),
    ("img", ("src", "alt", "width", "height")),
    ("td", ("colspan", "rowspan", "scope")),
    ("th", ("colspan", "rowspan", "scope")),
    ("table", ("border", "cellpadding", "cellspacing")),
    ("iframe", ("src", "width", "height", "frameborder", "allow",
                "allowfullscreen", "title", "referrerpolicy")),
    ("video", ("src", "width", "height", "controls", "autoplay", "loop",
               "muted", "poster")),
    ("audio", ("src", "controls", "autoplay", "loop", "muted")),
)

# Bootstrap layout-grid classes that survive attribute stripping
DEFAULT_LAYOUT_CLASS_PATTERNS: Tuple[str, ...] = (
    r'^col(-xs|-sm|-md|-lg|-xl)?(-\d+)?$',
    r'^col(-xs|-sm|-md|-lg|-xl)?-offset(-\d+)?$',
    r'^row$',
    r'^container(-fluid)?$',
    r'^text-(left|center|right|justify|start|end)$',
    r'^float-(left|right|none|start|end)$',
    r'^d-(none|inline|inline-block|block|flex|inline-flex|grid|table|table-row|table-cell)$',
    r'^align-(baseline|top|middle|bottom|text-top|text-bottom|start|center|end)$',
    r'^justify-content-(start|end|center|between|around|evenly)$',
    r'^align-items-(start|end|center|baseline|stretch)$',
    r'^align-self-(start|end|center|baseline|stretch)$',
    r'^flex-(row|row-reverse|column|column-reverse|wrap|nowrap|wrap-reverse|fill|grow-\d+|shrink-\d+)$',
    r'^m[tbrlxy]?-(\d+|auto)$',
    r'^p[tbrlxy]?-\d+$',
    r'^w-(\d+|auto|100)$',
    r'^h-(\d+|auto|100)$',
    r'^offset-\d+$',
    r'^order-\d+$',
)


@dataclass(frozen=True)
class FetchConfig:
    """Settings for the page fetcher."""

    timeout: int = DEFAULT_PAGE_TIMEOUT          # milliseconds
    max_retries: int = DEFAULT_MAX_RETRIES
    wait_time: float = DEFAULT_WAIT_TIME         # seconds after load
    delay: float = DEFAULT_CRAWL_DELAY           # seconds between URLs
    backoff: float = DEFAULT_BACKOFF             # first retry delay
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    block_resources: bool = True


@dataclass(frozen=True)
class ClassificationConfig:
    """Selectors and manual overrides for post/page classification."""

    post_selector: Optional[str] = None
    page_selector: Optional[str] = None
    manual_types: Tuple[Tuple[str, str], ...] = ()

    @property
    def manual_mapping(self) -> Dict[str, ContentType]:
        mapping = {}
        for source_id, value in self.manual_types:
            content_type = ContentType.parse(value)
            if content_type:
                mapping[source_id] = content_type
        return mapping

    def with_manual_types(self, mapping: Mapping[str, Any]) -> "ClassificationConfig":
        """Return a copy whose manual mapping also contains ``mapping``."""
        merged = dict(self.manual_types)
        for source_id, value in mapping.items():
            merged[source_id] = getattr(value, 'value', value)
        return replace(self, manual_types=tuple(sorted(merged.items())))


@dataclass(frozen=True)
class SanitizeConfig:
    """Settings for the sanitizer."""

    removal_selectors: Tuple[str, ...] = ()
    content_selectors: Tuple[str, ...] = DEFAULT_CONTENT_SELECTORS
    preserved_attributes: Tuple[Tuple[str, Tuple[str, ...]], ...] = DEFAULT_PRESERVED_ATTRIBUTES
    layout_class_patterns: Tuple[str, ...] = DEFAULT_LAYOUT_CLASS_PATTERNS
    link_rewrites: Tuple[Tuple[str, str], ...] = ()
    spacing: str = DEFAULT_SPACING
    remove_headings: bool = True
    remove_images: bool = False

    @property
    def attribute_allow_list(self) -> Dict[str, frozenset]:
        return {tag: frozenset(attrs) for tag, attrs in self.preserved_attributes}


@dataclass(frozen=True)
class AssetConfig:
    """Settings for the image downloader."""

    enabled: bool = True
    max_concurrent: int = DEFAULT_CONCURRENCY
    timeout: int = DEFAULT_TIMEOUT               # seconds per download
    retry_attempts: int = DEFAULT_DOWNLOAD_RETRIES
    backoff: float = DEFAULT_BACKOFF
    auto_convert: bool = True
    allowed_formats: Tuple[str, ...] = ALLOWED_IMAGE_FORMATS
    mapping_file: str = IMAGE_MAPPING_FILE
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ExportConfig:
    """Settings for the CSV exporter."""

    output_path: Optional[str] = None
    status: str = "publish"
    post_category: str = "Imported Content"
    page_category: str = ""
    image_url_prefix: Optional[str] = "images/"
    title_selectors: Tuple[str, ...] = TITLE_SELECTORS
    date_selectors: Tuple[str, ...] = DATE_SELECTORS


@dataclass(frozen=True)
class MigrationConfig:
    """Complete configuration for one pipeline run."""

    output_dir: str = "output"
    fetch: FetchConfig = field(default_factory=FetchConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    sanitize: SanitizeConfig = field(default_factory=SanitizeConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @property
    def raw_dir(self) -> str:
        return os.path.join(self.output_dir, RAW_DIR)

    @property
    def clean_dir(self) -> str:
        return os.path.join(self.output_dir, CLEAN_DIR)

    @property
    def image_dir(self) -> str:
        return os.path.join(self.output_dir, IMAGE_DIR)

    @property
    def export_path(self) -> str:
        if self.export.output_path:
            return self.export.output_path
        return os.path.join(self.output_dir, EXPORT_DIR, EXPORT_FILE)


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key among ``keys``."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_tuple(value: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def _pairs(value: Optional[Mapping[str, str]]) -> Tuple[Tuple[str, str], ...]:
    if not value:
        return ()
    return tuple((str(k), str(v)) for k, v in value.items())


def config_from_dict(data: Mapping[str, Any]) -> MigrationConfig:
    """
    Build a configuration from a plain mapping (parsed JSON).

    Args:
        data: Mapping with optional ``fetch``, ``assets``, ``export``,
            ``sanitize`` and ``classification`` sections

    Returns:
        MigrationConfig with defaults for every missing key
    """
    base = MigrationConfig()

    fetch = data.get('fetch') or {}
    assets = data.get('assets') or {}
    export = data.get('export') or {}
    sanitize = data.get('sanitize') or {}
    classification = data.get('classification') or {}

    fetch_config = FetchConfig(
        timeout=int(_pick(fetch, 'timeout', default=base.fetch.timeout)),
        max_retries=int(_pick(fetch, 'maxRetries', 'max_retries', default=base.fetch.max_retries)),
        wait_time=float(_pick(fetch, 'waitTime', 'wait_time', default=base.fetch.wait_time)),
        delay=float(_pick(fetch, 'delay', default=base.fetch.delay)),
        backoff=float(_pick(fetch, 'backoff', default=base.fetch.backoff)),
        headless=bool(_pick(fetch, 'headless', default=base.fetch.headless)),
        user_agent=_pick(fetch, 'userAgent', 'user_agent', default=base.fetch.user_agent),
        block_resources=bool(_pick(fetch, 'blockResources', 'block_resources',
                                   default=base.fetch.block_resources)),
    )

    asset_config = AssetConfig(
        enabled=bool(_pick(assets, 'enabled', default=base.assets.enabled)),
        max_concurrent=int(_pick(assets, 'maxConcurrent', 'max_concurrent',
                                 default=base.assets.max_concurrent)),
        timeout=int(_pick(assets, 'timeout', default=base.assets.timeout)),
        retry_attempts=int(_pick(assets, 'retryAttempts', 'retry_attempts',
                                 default=base.assets.retry_attempts)),
        auto_convert=bool(_pick(assets, 'autoConvert', 'auto_convert',
                                default=base.assets.auto_convert)),
        mapping_file=_pick(assets, 'mappingFile', 'mapping_file', default=base.assets.mapping_file),
    )

    export_config = ExportConfig(
        output_path=_pick(export, 'outputPath', 'output_path'),
        status=_pick(export, 'status', default=base.export.status),
        post_category=_pick(export, 'postCategory', 'post_category',
                            default=base.export.post_category),
        page_category=_pick(export, 'pageCategory', 'page_category',
                            default=base.export.page_category),
        image_url_prefix=_pick(export, 'imageUrlPrefix', 'image_url_prefix',
                               default=base.export.image_url_prefix),
    )

    sanitize_config = SanitizeConfig(
        removal_selectors=_as_tuple(_pick(sanitize, 'removeSelectors', 'removal_selectors')),
        content_selectors=_as_tuple(_pick(sanitize, 'contentSelectors', 'content_selectors'))
        or base.sanitize.content_selectors,
        link_rewrites=_pairs(_pick(sanitize, 'linkRewrites', 'link_rewrites')),
        spacing=_pick(sanitize, 'spacing', default=base.sanitize.spacing),
        remove_headings=bool(_pick(sanitize, 'removeHeadings', 'remove_headings',
                                   default=base.sanitize.remove_headings)),
        remove_images=not asset_config.enabled,
    )

    classification_config = ClassificationConfig(
        post_selector=_pick(classification, 'post'),
        page_selector=_pick(classification, 'page'),
        manual_types=_pairs(_pick(classification, 'manual', 'manual_types')),
    )

    return MigrationConfig(
        output_dir=_pick(data, 'outputDir', 'output_dir', default=base.output_dir),
        fetch=fetch_config,
        classification=classification_config,
        sanitize=sanitize_config,
        assets=asset_config,
        export=export_config,
    )


def _read_json(path: str) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_config(path: Optional[str] = None) -> MigrationConfig:
    """
    Load configuration from a JSON file, or defaults when no path is given.

    Args:
        path: Optional path to a JSON configuration file

    Returns:
        MigrationConfig instance
    """
    if not path:
        return MigrationConfig()
    return config_from_dict(_read_json(path))


def load_classification_selectors(path: str) -> ClassificationConfig:
    """
    Read a ``{"post": selector, "page": selector}`` file.

    Args:
        path: Path to the JSON file

    Returns:
        ClassificationConfig holding the selectors
    """
    data = _read_json(path) or {}
    return ClassificationConfig(
        post_selector=data.get('post') or None,
        page_selector=data.get('page') or None,
    )


def load_link_rewrites(path: str) -> Tuple[Tuple[str, str], ...]:
    """
    Read a ``{pattern: path}`` link-rewrite table.

    Args:
        path: Path to the JSON file

    Returns:
        Tuple of ``(pattern, path)`` pairs
    """
    return _pairs(_read_json(path))
