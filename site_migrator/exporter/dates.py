"""
Publication date extraction.
"""

import re
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from ..utils.constants import DATE_SELECTORS


DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

MONTH_ALTERNATION = (
    r'(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|'
    r'aug(?:ust)?|sept?(?:ember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?'
)

ISO_PATTERN = re.compile(
    r'(\d{4})-(\d{2})-(\d{2})(?:[T ](\d{2}):(\d{2})(?::(\d{2}))?)?'
)
MONTH_NAME_PATTERN = re.compile(
    r'\b' + MONTH_ALTERNATION + r'\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})', re.IGNORECASE
)
DAY_MONTH_PATTERN = re.compile(
    r'\b(\d{1,2})(?:st|nd|rd|th)?\s+' + MONTH_ALTERNATION + r',?\s+(\d{4})', re.IGNORECASE
)
NUMERIC_PATTERN = re.compile(r'(\d{1,2})/(\d{1,2})/(\d{4})')


def _month_number(name: str) -> int:
    return MONTHS[name.lower().rstrip('.')[:3]]


def _from_iso(match: re.Match) -> datetime:
    year, month, day, hour, minute, second = match.groups()
    return datetime(
        int(year), int(month), int(day),
        int(hour or 0), int(minute or 0), int(second or 0),
    )


def _from_month_name(match: re.Match) -> datetime:
    month, day, year = match.groups()
    return datetime(int(year), _month_number(month), int(day))


def _from_day_month(match: re.Match) -> datetime:
    day, month, year = match.groups()
    return datetime(int(year), _month_number(month), int(day))


def _from_numeric(match: re.Match) -> datetime:
    month, day, year = match.groups()
    return datetime(int(year), int(month), int(day))


MATCHERS: List[Tuple[re.Pattern, Callable[[re.Match], datetime]]] = [
    (ISO_PATTERN, _from_iso),
    (MONTH_NAME_PATTERN, _from_month_name),
    (NUMERIC_PATTERN, _from_numeric),
    (DAY_MONTH_PATTERN, _from_day_month),
]


def parse_date(text: Optional[str]) -> Optional[str]:
    """
    Parse a date string into ``YYYY-MM-DD HH:MM:SS``.

    Accepts ISO dates (with optional time), ``March 8, 2023``,
    ``Mar 8 2023``, ``03/08/2023`` (month first) and ``8 March 2023``.

    Args:
        text: Raw date text

    Returns:
        Canonical date string, or None when nothing parses
    """
    if not text:
        return None

    for pattern, build in MATCHERS:
        match = pattern.search(text)
        if not match:
            continue
        try:
            return build(match).strftime(DATE_FORMAT)
        except (ValueError, KeyError):
            continue

    return None


def extract_date(soup: BeautifulSoup, selectors: Sequence[str] = DATE_SELECTORS) -> Optional[str]:
    """
    Find the publication date of a raw document.

    Selectors are tried in priority order; a ``datetime`` or ``content``
    attribute is preferred over the element's text.

    Args:
        soup: Parsed raw markup
        selectors: Date selectors in priority order

    Returns:
        Canonical date string, or None
    """
    for selector in selectors:
        for element in soup.select(selector):
            for value in (element.get('datetime'), element.get('content'), element.get_text(" ", strip=True)):
                parsed = parse_date(value)
                if parsed:
                    return parsed
    return None


def now_string() -> str:
    return datetime.now().strftime(DATE_FORMAT)
