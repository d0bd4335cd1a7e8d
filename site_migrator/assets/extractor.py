"""
Image extractor for raw documents.

Finds image references in the page's main content, resolves them to
absolute URLs, and flags user/testimonial imagery that should not be
migrated.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from ..models import RawDocument
from ..sanitizer.selectors import parse_html
from ..utils.log import StageLogger
from ..utils.paths import domain_from_source_id, normalize_url, strip_query


# Ancestors whose images belong to site chrome rather than the article
CHROME_TAGS = ('header', 'footer', 'nav')
CHROME_CLASS_PATTERN = re.compile(
    r'(footer|header|sidebar|navbox|navigation|menu|topbar|bottombar|copyright)'
)

URL_FILTER_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r'avatar', r'profile', r'testimonial', r'review.*user', r'user.*photo',
    r'customer.*photo', r'headshot', r'portrait', r'staff.*photo', r'team.*photo',
    r'author.*image', r'gravatar', r'wp-content.*avatars', r'uploads.*user',
    r'images.*user', r'profile.*pic', r'reviewer.*image', r'customer.*image',
)]

TEXT_FILTER_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r'avatar', r'profile', r'testimonial', r'review', r'customer.*photo',
    r'user.*photo', r'headshot', r'portrait', r'staff.*photo', r'team.*member',
    r'author.*image', r'reviewer', r'customer.*image', r'user.*image', r'profile.*picture',
)]

CLASS_FILTER_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r'avatar', r'profile', r'testimonial.*image', r'user.*photo', r'customer.*image',
    r'reviewer.*image', r'author.*image', r'staff.*photo', r'team.*photo',
)]

PARENT_FILTER_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r'testimonial', r'review', r'customer.*section', r'author.*bio',
    r'staff.*section', r'team.*section', r'profile.*section',
)]

EXCLUDED_CONTAINER_CLASSES = (
    'testimonials_wrap',
    'dataone_load',
    'vdp_dealer_location_container',
    'vehicle_crash_test_stars',
    'vehicle_award_wrap_container',
)

BACKGROUND_URL = re.compile(
    r'background(?:-image)?\s*:[^;]*url\(\s*[\'"]?([^\'")\s]+)[\'"]?\s*\)', re.IGNORECASE
)


@dataclass
class ImageCandidate:
    """An image reference found in a document."""

    url: str
    alt: str = ""
    title: str = ""
    classes: str = ""
    parent_classes: str = ""
    ancestor_classes: List[str] = field(default_factory=list)


def _class_string(element: Optional[Tag]) -> str:
    if element is None or not isinstance(element, Tag):
        return ""
    value = element.get('class') or []
    if isinstance(value, str):
        return value
    return ' '.join(value)


def is_in_main_content(element: Tag) -> bool:
    """False when the element sits inside header/footer/nav chrome."""
    for node in [element] + list(element.parents):
        if not isinstance(node, Tag):
            continue
        if node.name in CHROME_TAGS:
            return False
        if CHROME_CLASS_PATTERN.search(_class_string(node).lower()):
            return False
    return True


def filter_reason(candidate: ImageCandidate) -> Optional[str]:
    """
    Decide whether an image is user/testimonial imagery.

    Args:
        candidate: Extracted image reference

    Returns:
        Human-readable reason when the image should be skipped, else None
    """
    if any(p.search(candidate.url) for p in URL_FILTER_PATTERNS):
        return "URL contains avatar/testimonial pattern"

    if candidate.alt and any(p.search(candidate.alt) for p in TEXT_FILTER_PATTERNS):
        return f"Alt text indicates user image: \"{candidate.alt}\""

    if candidate.title and any(p.search(candidate.title) for p in TEXT_FILTER_PATTERNS):
        return f"Title indicates user image: \"{candidate.title}\""

    if candidate.classes and any(p.search(candidate.classes) for p in CLASS_FILTER_PATTERNS):
        return f"CSS class indicates user image: \"{candidate.classes}\""

    for classes in candidate.ancestor_classes:
        lowered = classes.lower()
        if any(excluded in lowered for excluded in EXCLUDED_CONTAINER_CLASSES):
            return f"Image found in excluded container class: \"{classes}\""

    if candidate.parent_classes and any(
        p.search(candidate.parent_classes) for p in PARENT_FILTER_PATTERNS
    ):
        return f"Parent context indicates user image: \"{candidate.parent_classes}\""

    return None


class ImageExtractor:
    """
    Extracts image references from raw documents.

    Looks at ``src``, lazy-loading attributes, the first ``srcset``
    candidate, and inline background images.
    """

    def __init__(self, logger: Optional[StageLogger] = None):
        self.logger = logger or StageLogger("assets")

    def base_url_for(self, document: RawDocument) -> str:
        if document.url:
            return document.url
        return f"https://{domain_from_source_id(document.source_id)}/"

    def _candidate(self, element: Tag, url: str) -> ImageCandidate:
        parent = element.parent if isinstance(element.parent, Tag) else None
        return ImageCandidate(
            url=url,
            alt=(element.get('alt') or element.get('aria-label') or '').strip(),
            title=(element.get('title') or '').strip(),
            classes=_class_string(element),
            parent_classes=_class_string(parent),
            ancestor_classes=[
                _class_string(node) for node in element.parents
                if isinstance(node, Tag) and _class_string(node)
            ],
        )

    @staticmethod
    def _img_sources(img: Tag) -> List[str]:
        sources = []
        for attr in ('src', 'data-src', 'data-lazy-src'):
            value = (img.get(attr) or '').strip()
            if value:
                sources.append(value)

        srcset = (img.get('srcset') or '').strip()
        if srcset:
            first = srcset.split(',')[0].strip().split(' ')[0]
            if first and first not in sources:
                sources.append(first)
        return sources

    def extract(self, document: RawDocument, soup: Optional[BeautifulSoup] = None) -> List[ImageCandidate]:
        """
        Extract image candidates from a raw document.

        Args:
            document: Raw document
            soup: Already parsed markup, parsed here when omitted

        Returns:
            Candidates in document order, one per distinct image URL
            (query strings ignored)
        """
        if soup is None:
            soup = parse_html(document.html)

        base_url = self.base_url_for(document)
        candidates: List[ImageCandidate] = []
        seen = set()
        excluded = 0

        def add(element: Tag, raw_url: str) -> None:
            if raw_url.startswith('data:'):
                return
            url = normalize_url(raw_url, base_url)
            if not url:
                return
            key = strip_query(url)
            if key in seen:
                return
            seen.add(key)
            candidates.append(self._candidate(element, url))

        for img in soup.find_all('img'):
            if not is_in_main_content(img):
                excluded += 1
                continue
            for source in self._img_sources(img):
                add(img, source)

        for element in soup.find_all(style=BACKGROUND_URL):
            if not is_in_main_content(element):
                excluded += 1
                continue
            match = BACKGROUND_URL.search(element.get('style', ''))
            if match:
                add(element, match.group(1))

        if excluded:
            self.logger.debug(
                f"{document.source_id}: ignored {excluded} image(s) in header/footer/nav"
            )

        return candidates
