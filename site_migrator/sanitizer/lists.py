"""
Conversion of word-processor list paragraphs into real lists.

Content pasted from Word arrives as a run of ``<p>`` elements that only
look like a list: a bullet glyph at the start, ``mso-list`` styling, or a
hanging indent (``margin-left`` with ``text-indent``). Each run of such
paragraphs becomes one ``<ul>``.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .styles import remove_declarations


BULLET_PATTERN = re.compile(r'^[●•◦▪■◆▸►]\s')
LEADING_BULLET = re.compile(r'^\s*[●•◦▪■◆▸►]\s*')


def is_list_paragraph(element: Tag) -> bool:
    if element.name != 'p':
        return False
    style = element.get('style', '') or ''
    text = element.get_text().strip()
    return bool(
        BULLET_PATTERN.match(text)
        or 'mso-list' in style
        or ('margin-left' in style and 'text-indent' in style)
    )


def next_element_sibling(element: Tag) -> Optional[Tag]:
    """
    Return the next sibling element, looking past whitespace and comments.

    Non-blank text between two paragraphs ends the run, so it yields None.
    """
    for sibling in element.next_siblings:
        if isinstance(sibling, Tag):
            return sibling
        if isinstance(sibling, Comment):
            continue
        if isinstance(sibling, NavigableString) and not sibling.strip():
            continue
        return None
    return None


def _is_word_residue(prop: str) -> bool:
    return prop.startswith('mso-') or prop.startswith('white-space')


def _strip_leading_bullet(li: Tag) -> None:
    for text in li.find_all(string=True):
        if isinstance(text, Comment) or not text.strip():
            continue
        cleaned = LEADING_BULLET.sub('', text, count=1)
        if cleaned != text:
            text.replace_with(cleaned)
        return


def unwrap_list_paragraphs(root: Tag) -> int:
    """Unwrap ``<p>`` elements inside any ``<li>`` under ``root``."""
    count = 0
    for li in root.find_all('li'):
        for p in li.find_all('p'):
            p.unwrap()
            count += 1
    return count


def collect_runs(root: Tag) -> List[List[Tag]]:
    """Group list-like paragraphs into runs of consecutive siblings."""
    runs: List[List[Tag]] = []
    claimed = set()

    for p in root.find_all('p'):
        if id(p) in claimed or not is_list_paragraph(p):
            continue
        if p.find_parent('li') is not None:
            continue

        run = [p]
        claimed.add(id(p))
        sibling = next_element_sibling(p)
        while sibling is not None and is_list_paragraph(sibling):
            run.append(sibling)
            claimed.add(id(sibling))
            sibling = next_element_sibling(sibling)
        runs.append(run)

    return runs


def convert_word_lists(root: Tag, soup: BeautifulSoup) -> int:
    """
    Replace every run of list-like paragraphs with a ``<ul>``.

    Args:
        root: Content subtree
        soup: Owning document (used to create tags)

    Returns:
        Number of lists created
    """
    runs = collect_runs(root)

    for run in runs:
        ul = soup.new_tag('ul')
        run[0].insert_before(ul)

        for p in run:
            li = soup.new_tag('li')
            for child in list(p.contents):
                li.append(child.extract())
            p.decompose()

            for element in [li] + li.find_all(True):
                remove_declarations(element, _is_word_residue)

            _strip_leading_bullet(li)
            ul.append(li)

    unwrap_list_paragraphs(root)
    return len(runs)
