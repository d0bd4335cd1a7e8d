"""
Helpers for editing inline ``style`` attributes.
"""

from typing import Callable, List, Tuple

from bs4 import Tag


def parse_style(style: str) -> List[Tuple[str, str]]:
    """Split a style attribute into ``(property, value)`` pairs."""
    declarations = []
    for chunk in (style or "").split(';'):
        if ':' not in chunk:
            continue
        prop, value = chunk.split(':', 1)
        prop = prop.strip().lower()
        if prop:
            declarations.append((prop, value.strip()))
    return declarations


def format_style(declarations: List[Tuple[str, str]]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in declarations)


def set_style(element: Tag, declarations: List[Tuple[str, str]]) -> None:
    """Write declarations back, dropping the attribute when none remain."""
    if declarations:
        element['style'] = format_style(declarations)
    elif element.has_attr('style'):
        del element['style']


def remove_declarations(element: Tag, predicate: Callable[[str], bool]) -> None:
    """
    Drop every declaration whose property name satisfies ``predicate``.

    Args:
        element: Element to edit
        predicate: Called with the lower-cased property name
    """
    if not element.has_attr('style'):
        return
    kept = [(p, v) for p, v in parse_style(element['style']) if not predicate(p)]
    set_style(element, kept)
