"""
Attribute allow-list enforcement.

Every attribute not on the allow-list for its tag is removed. Classes are
the one exception: layout-grid classes matching one of the configured
patterns survive, all others go.
"""

import re
from typing import Dict, FrozenSet, Iterable, List, Pattern

from bs4 import Tag


def compile_patterns(patterns: Iterable[str]) -> List[Pattern]:
    return [re.compile(p) for p in patterns]


def class_list(element: Tag) -> List[str]:
    value = element.get('class') or []
    if isinstance(value, str):
        value = value.split()
    return [c for c in value if c]


def layout_classes(element: Tag, patterns: List[Pattern]) -> List[str]:
    """Return the element's classes that match a layout pattern."""
    return [c for c in class_list(element) if any(p.match(c) for p in patterns)]


def has_layout_class(element: Tag, patterns: List[Pattern]) -> bool:
    return bool(layout_classes(element, patterns))


def strip_attributes(
    root: Tag,
    allow_list: Dict[str, FrozenSet[str]],
    patterns: List[Pattern]
) -> int:
    """
    Remove non-allow-listed attributes from ``root`` and its descendants.

    Args:
        root: Subtree to clean
        allow_list: Tag name -> allowed attribute names, ``"*"`` for all tags
        patterns: Compiled layout-class patterns

    Returns:
        Number of layout classes kept
    """
    common = allow_list.get('*', frozenset())
    kept_classes = 0

    elements = [root] + root.find_all(True)
    for element in elements:
        if not isinstance(element, Tag) or element.name in ('[document]',):
            continue

        allowed = common | allow_list.get(element.name, frozenset())
        preserved = layout_classes(element, patterns)

        for attr in list(element.attrs):
            if attr.lower() not in allowed:
                del element[attr]

        if preserved:
            element['class'] = preserved
            kept_classes += len(preserved)

    return kept_classes
