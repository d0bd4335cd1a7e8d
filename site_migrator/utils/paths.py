"""
Path and URL utilities for the site migrator.

Provides source id derivation, slug extraction, URL normalization,
and directory management.
"""

import hashlib
import os
import re
from typing import List, Optional
from urllib.parse import urlparse, urlunparse, urljoin, unquote

from .constants import MONTH_NAMES


# Trailing extensions normalized away before ".html" is appended
PAGE_EXTENSION_PATTERN = re.compile(r'\.(html?|php|aspx?|jsp)$', re.IGNORECASE)

# Path segments that are file extension remnants
EXTENSION_SEGMENT_PATTERN = re.compile(r'^(html?|php|aspx?|jsp)$', re.IGNORECASE)

# Tokens dropped from article slugs (blog sections and date parts)
DATE_TOKEN_PATTERN = re.compile(
    r'^(blog|\d{4}|' + '|'.join(MONTH_NAMES) + r'|\d{1,2})$',
    re.IGNORECASE
)

MAX_SOURCE_ID_LENGTH = 255
MAX_ARTICLE_SLUG_LENGTH = 50
MAX_SLUG_LENGTH = 200


def short_hash(value: str, length: int = 8) -> str:
    """Return the first ``length`` hex digits of the SHA-256 of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


def normalize_url(url: str, base_url: Optional[str] = None) -> str:
    """
    Normalize a URL by resolving relative paths and removing fragments.

    Args:
        url: URL to normalize
        base_url: Base URL for resolving relative URLs

    Returns:
        Normalized URL string, or "" for non-navigable references
    """
    # Handle empty or invalid URLs
    if not url or url.startswith(('javascript:', 'data:', 'mailto:', 'tel:', '#')):
        return ""

    url = url.strip()

    # Handle protocol-relative URLs
    if url.startswith('//'):
        if base_url:
            url = f"{urlparse(base_url).scheme}:{url}"
        else:
            url = f"https:{url}"

    # Resolve relative URLs
    if not url.startswith(('http://', 'https://')):
        if not base_url:
            return ""
        url = urljoin(base_url, url)

    parsed = urlparse(url)

    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        parsed.path or '/',
        parsed.params,
        parsed.query,
        ''  # Remove fragment
    ))


def strip_query(url: str) -> str:
    """
    Drop query string and fragment, used to dedupe responsive image variants.

    Args:
        url: Absolute URL

    Returns:
        URL without ``?query`` and ``#fragment``
    """
    parsed = urlparse(url)
    return urlunparse((parsed.scheme, parsed.netloc, parsed.path, '', '', ''))


def get_domain(url: str) -> str:
    """
    Extract the host from a URL, without port and ``www.`` prefix.

    Args:
        url: URL to extract the domain from

    Returns:
        Domain string (e.g., 'example.com')
    """
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def source_id_from_url(url: str) -> str:
    """
    Derive the filesystem-safe source id for a page URL.

    The id is the host followed by the path (and query), with every
    character outside ``[A-Za-z0-9.-]`` turned into ``_``. A trailing page
    extension is normalized so every id ends in exactly one ``.html``.

    Args:
        url: Absolute page URL

    Returns:
        Source id, e.g. ``www.example.com_blog_best-trucks.html``
    """
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    path = unquote(parsed.path)
    path = PAGE_EXTENSION_PATTERN.sub('', path.rstrip('/'))

    raw = host + path
    if parsed.query:
        raw += '?' + parsed.query

    identifier = re.sub(r'[^a-zA-Z0-9.-]', '_', raw)
    identifier = re.sub(r'_+', '_', identifier).strip('_')
    identifier = PAGE_EXTENSION_PATTERN.sub('', identifier)

    return identifier[:MAX_SOURCE_ID_LENGTH - len('.html')] + '.html'


def strip_page_extensions(source_id: str) -> str:
    """Remove every trailing page extension (``a.htm.html`` -> ``a``)."""
    base = source_id
    while PAGE_EXTENSION_PATTERN.search(base):
        base = PAGE_EXTENSION_PATTERN.sub('', base)
    return base


def source_id_segments(source_id: str) -> List[str]:
    """
    Split a source id into its path segments, dropping the domain.

    Args:
        source_id: Source id produced by :func:`source_id_from_url`

    Returns:
        Path segments without the leading host and extension remnants
    """
    parts = [p for p in strip_page_extensions(source_id).split('_') if p]
    if not parts:
        return []
    # The host always comes first
    return [p for p in parts[1:] if not EXTENSION_SEGMENT_PATTERN.match(p)]


def domain_from_source_id(source_id: str) -> str:
    """Return the host a source id was derived from."""
    return strip_page_extensions(source_id).split('_', 1)[0]


def slugify(text: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """
    Turn arbitrary text into a lower-case hyphenated slug.

    Args:
        text: Text to convert
        max_length: Maximum slug length

    Returns:
        Slug using only ``[a-z0-9-]``
    """
    slug = text.lower().replace('_', '-')
    slug = re.sub(r'[^a-z0-9-]', '-', slug)
    slug = re.sub(r'-+', '-', slug).strip('-')
    return slug[:max_length].strip('-')


def slug_from_source_id(source_id: str, title: Optional[str] = None) -> str:
    """
    Build the export slug from the source id's path segments.

    The title is consulted only when the path yields no usable segment
    (e.g. a site root).

    Args:
        source_id: Source id of the document
        title: Optional document title used as last resort

    Returns:
        URL-friendly slug
    """
    slug = slugify('-'.join(source_id_segments(source_id)))
    if slug:
        return slug

    if title and len(title.strip()) > 3:
        slug = slugify(title)
        if slug:
            return slug

    return slugify(strip_page_extensions(source_id)) or 'home'


def extract_article_slug(source_id: str) -> str:
    """
    Extract the short article slug used to namespace downloaded images.

    Removes the domain, blog/date tokens and extension remnants, e.g.
    ``www.example.com_blog_2025_march_03_best-trucks.html`` becomes
    ``best-trucks``.

    Args:
        source_id: Source id of the document

    Returns:
        Slug of at most 50 characters, or ``img-<hash>`` when too short
    """
    parts = strip_page_extensions(source_id).split('_')

    meaningful = [
        part for part in parts
        if part
        and '.' not in part
        and not DATE_TOKEN_PATTERN.match(part)
        and not EXTENSION_SEGMENT_PATTERN.match(part)
    ]

    slug = '-'.join(meaningful)
    slug = re.sub(r'-{2,}', '-', slug)
    slug = re.sub(r'[^a-z0-9-]', '', slug, flags=re.IGNORECASE).lower()
    slug = slug[:MAX_ARTICLE_SLUG_LENGTH].strip('-')

    if len(slug) < 3:
        slug = f"img-{short_hash(source_id)}"

    return slug


def image_identifier(image_url: str) -> str:
    """
    Carve a stable identifier out of an image URL.

    Args:
        image_url: Absolute image URL

    Returns:
        Sanitized basename without extension, or ``image-<hash>``
    """
    path = unquote(urlparse(image_url).path)
    name = os.path.splitext(os.path.basename(path))[0]

    name = re.sub(r'[^a-zA-Z0-9._-]', '_', name)
    name = re.sub(r'_{2,}', '_', name)[:50]

    if not name.strip('._-'):
        return f"image-{short_hash(image_url)}"
    return name


def url_extension(url: str) -> str:
    """Return the lower-cased file extension of a URL path (with dot)."""
    return os.path.splitext(urlparse(url).path)[1].lower()


def ensure_dir(path: str) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists
    """
    os.makedirs(path, exist_ok=True)


def ensure_parent_dir(file_path: str) -> None:
    """
    Ensure the parent directory of a file exists.

    Args:
        file_path: File path whose parent directory should exist
    """
    parent = os.path.dirname(file_path)
    if parent:
        ensure_dir(parent)
