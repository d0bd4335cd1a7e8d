"""
Uniform vertical spacing for content blocks.
"""

from bs4 import Tag

from .styles import parse_style, set_style


SPACED_TAGS = (
    'p', 'h2', 'h3', 'h4', 'h5', 'h6', 'ul', 'ol', 'blockquote',
    'table', 'img', 'iframe', 'figure', 'video', 'div',
)

# Spaced even without text
MEDIA_TAGS = ('img', 'table', 'iframe', 'figure', 'video')

BLOCK_CHILDREN = ('p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'table', 'ul', 'ol', 'blockquote', 'div')


def _should_space(element: Tag) -> bool:
    if element.name not in MEDIA_TAGS and not element.get_text().strip():
        return False

    if element.name == 'p' and element.find_parent('li') is not None:
        return False

    if element.name == 'div':
        classes = element.get('class') or []
        if 'table-responsive' in classes:
            return False
        # Containers are left alone, only leaf content divs are spaced
        if element.find(BLOCK_CHILDREN) is not None:
            return False

    return True


def apply_spacing(root: Tag, value: str) -> int:
    """
    Replace top/bottom margins on content blocks with one uniform value.

    Other style declarations are left untouched.

    Args:
        root: Content subtree
        value: CSS length, e.g. ``"20pt"``

    Returns:
        Number of elements updated
    """
    count = 0
    for element in root.find_all(SPACED_TAGS):
        if not _should_space(element):
            continue

        declarations = [
            (prop, val) for prop, val in parse_style(element.get('style', ''))
            if prop not in ('margin-top', 'margin-bottom')
        ]
        declarations.append(('margin-top', value))
        declarations.append(('margin-bottom', value))
        set_style(element, declarations)
        count += 1

    return count
