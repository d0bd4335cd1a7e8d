"""
Title, excerpt and image-reference handling for export rows.
"""

from typing import Dict, Iterable, Optional, Sequence

from bs4 import BeautifulSoup

from ..models import ImageRecord
from ..utils.constants import EXCERPT_LENGTH, TITLE_SELECTORS
from ..utils.paths import (
    domain_from_source_id,
    normalize_url,
    source_id_segments,
    strip_query,
)


def parse_fragment(html: str) -> BeautifulSoup:
    """Parse an HTML fragment without adding ``<html>``/``<body>`` wrappers."""
    return BeautifulSoup(html or "", 'html.parser')


def find_title(soup: Optional[BeautifulSoup], selectors: Sequence[str] = TITLE_SELECTORS) -> Optional[str]:
    if soup is None:
        return None
    for selector in selectors:
        element = soup.select_one(selector)
        if element is not None:
            text = element.get_text(" ", strip=True)
            if text:
                return text
    return None


def fallback_title(source_id: str) -> str:
    """Title built from the source id's path words, or its domain."""
    words = ' '.join(source_id_segments(source_id)).replace('-', ' ').split()
    if not words:
        return domain_from_source_id(source_id)
    return ' '.join(word.capitalize() for word in words)


def extract_title(
    source_id: str,
    raw_soup: Optional[BeautifulSoup],
    clean_soup: Optional[BeautifulSoup] = None,
    selectors: Sequence[str] = TITLE_SELECTORS
) -> str:
    """
    Pick the document title.

    The raw document is searched first (the clean one has no ``h1``
    left), then the clean document, then the source id.
    """
    return (
        find_title(raw_soup, selectors)
        or find_title(clean_soup, selectors)
        or fallback_title(source_id)
    )


def truncate_excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    text = ' '.join(text.split())
    if len(text) <= length:
        return text
    return text[:length - 3].rstrip() + '...'


def extract_excerpt(soup: BeautifulSoup, length: int = EXCERPT_LENGTH) -> str:
    """
    Plain-text excerpt from the first non-empty paragraph.

    Falls back to the start of the document text when there are no
    paragraphs.
    """
    for paragraph in soup.find_all('p'):
        text = paragraph.get_text(" ", strip=True)
        if text:
            return truncate_excerpt(text, length)
    return truncate_excerpt(soup.get_text(" ", strip=True), length)


def image_lookup(records: Iterable[ImageRecord]) -> Dict[str, ImageRecord]:
    """Index downloaded records by URL and by URL without query."""
    lookup: Dict[str, ImageRecord] = {}
    for record in records:
        if not record.downloaded:
            continue
        lookup.setdefault(record.original_url, record)
        lookup.setdefault(strip_query(record.original_url), record)
    return lookup


def rewrite_image_sources(
    soup: BeautifulSoup,
    records: Iterable[ImageRecord],
    prefix: str,
    base_url: str
) -> int:
    """
    Point ``img src`` values at the downloaded copies.

    Args:
        soup: Parsed clean fragment (edited in place)
        records: ImageRecords of the same document
        prefix: Prepended to the local filename (e.g. ``"images/"``)
        base_url: URL relative sources are resolved against

    Returns:
        Number of sources rewritten
    """
    lookup = image_lookup(records)
    if not lookup:
        return 0

    count = 0
    for img in soup.find_all('img', src=True):
        url = normalize_url(img['src'], base_url)
        if not url:
            continue
        record = lookup.get(url) or lookup.get(strip_query(url))
        if record is None:
            continue
        img['src'] = f"{prefix}{record.local_filename}"
        count += 1
    return count
