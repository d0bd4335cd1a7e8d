"""
CSS selector matching over parsed documents.

A selector given as a bare class name (``blog-post``) is normalized to a
class selector (``.blog-post``) before matching.
"""

import re
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..errors import TransformError, TransformErrorKind


SELECTOR_PREFIX = re.compile(r'^[.#\[]')
SELECTOR_STRUCTURE = re.compile(r'[\s>+~\[]')


def parse_html(html: str) -> BeautifulSoup:
    """
    Parse markup with lxml, falling back to the stdlib parser.

    Raises:
        TransformError: ``parse_failure`` when neither parser copes
    """
    try:
        return BeautifulSoup(html, 'lxml')
    except Exception:
        try:
            return BeautifulSoup(html, 'html.parser')
        except Exception as e:
            raise TransformError(
                TransformErrorKind.PARSE_FAILURE, f"Could not parse document: {e}"
            ) from e


def normalize_selector(value: Optional[str]) -> Optional[str]:
    """
    Turn a bare class name into a class selector.

    Args:
        value: Class name or CSS selector

    Returns:
        CSS selector (unchanged unless it was a bare class name)
    """
    if not value:
        return value
    value = value.strip()
    if not SELECTOR_PREFIX.match(value) and not SELECTOR_STRUCTURE.search(value):
        return f".{value}"
    return value


def matches(
    document: Union[BeautifulSoup, Tag],
    value: str,
    normalize: bool = True
) -> List[Tag]:
    """
    Return every element of ``document`` matched by ``value``.

    Args:
        document: Parsed document or subtree
        value: Class name or CSS selector
        normalize: Treat a bare word as a class name

    Returns:
        Matched elements in document order

    Raises:
        TransformError: ``selector_error`` for an invalid selector
    """
    selector = normalize_selector(value) if normalize else (value or "").strip()
    if not selector:
        return []
    try:
        return document.select(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError) as e:
        raise TransformError(
            TransformErrorKind.SELECTOR_ERROR,
            f"Invalid selector '{value}': {e}",
            {'selector': value},
        ) from e
