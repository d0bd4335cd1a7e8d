"""
Structural cleanup of the content region.

Removes page chrome the CMS regenerates itself (navigation, footers,
date blocks, forms), turns CSS background images into ``<img>`` elements,
and drops elements left empty by the other passes.
"""

import re
from typing import Dict, List, Pattern, Tuple

from bs4 import BeautifulSoup, Comment, Tag

from .attributes import class_list, has_layout_class
from .styles import parse_style, set_style
from ..utils.paths import strip_query


BOILERPLATE_TAGS = (
    'script', 'style', 'noscript', 'template', 'link', 'meta',
    'form', 'input', 'textarea', 'select',
    'footer', 'nav', 'header',
)

SIDEBAR_CLASS_PATTERNS = (
    'navboxwrap', 'navboxright', 'navbox', 'sidebar', 'widget-area',
    'blog-sidebar', 'post-navigation', 'entry-navigation', 'nav-links',
    'navigation', 'archives', 'categories', 'meta-links', 'blogroll',
)

DATE_CLASS_PATTERNS = (
    'datediv', 'date-div', 'post-date', 'entry-date', 'published',
    'publish-date', 'article-date', 'date-posted',
)

# Longer text under a date class is real content, not a date stamp
MAX_DATE_TEXT = 50

BACKGROUND_URL = re.compile(
    r'background(?:-image)?\s*:[^;]*url\(\s*[\'"]?([^\'")\s]+)[\'"]?\s*\)', re.IGNORECASE
)

EMPTY_CANDIDATES = (
    'div', 'span', 'p', 'strong', 'em', 'b', 'i', 'u',
    'section', 'article', 'header', 'footer', 'figure',
)

IMPORTANT_CHILDREN = ('table', 'img', 'a', 'input', 'button', 'iframe', 'video', 'audio', 'picture')

MAX_CLEANUP_PASSES = 5


def _matches_class_pattern(element: Tag, patterns: Tuple[str, ...]) -> bool:
    classes = ' '.join(class_list(element)).lower()
    return bool(classes) and any(pattern in classes for pattern in patterns)


def remove_boilerplate(root: Tag) -> int:
    """
    Remove scripts, styles, forms, page chrome, sidebars, date blocks
    and comments.

    Returns:
        Number of nodes removed
    """
    removed = 0

    for comment in root.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
        removed += 1

    for element in root.find_all(BOILERPLATE_TAGS):
        if element.decomposed:
            continue
        element.decompose()
        removed += 1

    for button in root.find_all('button', attrs={'type': 'submit'}):
        button.decompose()
        removed += 1

    for element in root.find_all(True):
        if element.decomposed:
            continue
        if _matches_class_pattern(element, SIDEBAR_CLASS_PATTERNS):
            element.decompose()
            removed += 1
        elif (_matches_class_pattern(element, DATE_CLASS_PATTERNS)
              and len(element.get_text().strip()) < MAX_DATE_TEXT):
            element.decompose()
            removed += 1

    return removed


def convert_background_images(root: Tag, soup: BeautifulSoup) -> int:
    """
    Turn ``background-image: url(...)`` styling into ``<img>`` elements.

    Responsive variants of one image (same URL apart from the query) are
    collapsed to a single element, preferring the URL without a query.
    An element without text or images is replaced by the image; any other
    element keeps its content and gets the image as first child.

    Returns:
        Number of images created
    """
    chosen: Dict[str, Tuple[Tag, str]] = {}
    duplicates: List[Tag] = []
    order: Dict[int, int] = {}

    for position, element in enumerate(root.find_all(style=BACKGROUND_URL)):
        match = BACKGROUND_URL.search(element.get('style', ''))
        if not match:
            continue
        url = match.group(1)
        if url.startswith('data:'):
            continue
        order[id(element)] = position

        key = strip_query(url)
        existing = chosen.get(key)
        if existing is None:
            chosen[key] = (element, url)
        elif '?' in existing[1] and '?' not in url:
            duplicates.append(existing[0])
            chosen[key] = (element, url)
        else:
            duplicates.append(element)

    # Innermost first, so a wrapper sees the images of its descendants
    for element, url in sorted(chosen.values(), key=lambda item: -order[id(item[0])]):
        img = soup.new_tag('img', src=url)
        alt = element.get('aria-label') or element.get('title')
        if alt:
            img['alt'] = alt

        if element.parent is None or element.get_text().strip() or element.find('img'):
            _drop_background(element)
            element.insert(0, img)
        else:
            element.replace_with(img)

    for element in duplicates:
        if element.decomposed:
            continue
        if element.get_text().strip() or element.find('img'):
            _drop_background(element)
        else:
            element.decompose()

    return len(chosen)


def _drop_background(element: Tag) -> None:
    declarations = [
        (prop, value) for prop, value in parse_style(element.get('style', ''))
        if not (prop.startswith('background') and 'url(' in value.lower())
    ]
    set_style(element, declarations)


def remove_headings(root: Tag) -> int:
    headings = root.find_all('h1')
    for heading in headings:
        heading.decompose()
    return len(headings)


def remove_images(root: Tag) -> int:
    images = root.find_all(['img', 'picture'])
    for image in images:
        if not image.decomposed:
            image.decompose()
    return len(images)


def _is_blank(element: Tag) -> bool:
    text = element.get_text().replace('\xa0', ' ').strip()
    return not text and element.find(IMPORTANT_CHILDREN) is None


def remove_empty_elements(root: Tag, patterns: List[Pattern]) -> int:
    """
    Repeatedly drop empty elements until nothing changes.

    Elements carrying a layout class are structural and kept. Plain
    ``div``/``span`` wrappers around a single child of the same tag are
    unwrapped.

    Returns:
        Number of elements removed or unwrapped
    """
    total = 0

    for _ in range(MAX_CLEANUP_PASSES):
        changed = 0

        # Reverse document order visits children before their parents
        for element in reversed(root.find_all(EMPTY_CANDIDATES)):
            if element.decomposed or element is root:
                continue
            if 'table-responsive' in class_list(element) or has_layout_class(element, patterns):
                continue
            if _is_blank(element):
                element.decompose()
                changed += 1

        for element in reversed(root.find_all(['div', 'span'])):
            if element.decomposed or element is root or element.attrs:
                continue
            children = element.find_all(True, recursive=False)
            loose_text = ''.join(element.find_all(string=True, recursive=False)).strip()
            if len(children) == 1 and children[0].name == element.name and not loose_text:
                element.unwrap()
                changed += 1

        total += changed
        if not changed:
            break

    return total
