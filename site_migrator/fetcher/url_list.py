"""
Input URL list parsing.

The list is plain text, one URL per line, optionally followed by a
``post`` or ``page`` hint::

    # comment
    https://www.example.com/blog/best-trucks.html post
    https://www.example.com/about-us page
"""

import re
from typing import Dict, List

from ..errors import FetchError, FetchErrorKind
from ..models import ContentType, UrlEntry
from ..utils.paths import source_id_from_url


URL_PATTERN = re.compile(r'^https?://[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
TRAILING_PUNCTUATION = re.compile(r'[.,;:!?)]+$')


def parse_url_list(text: str) -> List[UrlEntry]:
    """
    Parse URL list text into entries.

    Comment lines (``#`` or ``//``) and lines that do not look like
    ``http(s)://host.tld`` URLs are ignored. Duplicates keep the first
    occurrence.

    Args:
        text: Newline-delimited URL list

    Returns:
        List of UrlEntry in input order
    """
    entries: List[UrlEntry] = []
    seen = set()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(('#', '//')):
            continue

        parts = line.split()
        url = parts[0]
        if not URL_PATTERN.match(url):
            continue

        url = TRAILING_PUNCTUATION.sub('', url)
        if url in seen:
            continue
        seen.add(url)

        type_hint = ContentType.parse(parts[1]) if len(parts) > 1 else None
        entries.append(UrlEntry(url=url, type_hint=type_hint))

    return entries


def load_url_list(path: str) -> List[UrlEntry]:
    """
    Read and parse a URL list file.

    Raises:
        FetchError: ``no_input_urls`` when the file yields no URL
    """
    with open(path, 'r', encoding='utf-8') as f:
        entries = parse_url_list(f.read())

    if not entries:
        raise FetchError(
            FetchErrorKind.NO_INPUT_URLS,
            f"No URLs found in {path}",
            {'path': path},
        )
    return entries


def manual_types_from_entries(entries: List[UrlEntry]) -> Dict[str, ContentType]:
    """Map ``source_id -> type`` for every entry that carries a hint."""
    return {
        source_id_from_url(entry.url): entry.type_hint
        for entry in entries
        if entry.type_hint is not None
    }
