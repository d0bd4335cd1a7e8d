"""
Sanitizer module.

Contains selector matching, classification, and the HTML cleaning passes.
"""

from .classifier import ContentClassifier
from .rewrite import LinkRewriter
from .sanitizer import ContentSanitizer
from .selectors import matches, normalize_selector, parse_html

__all__ = [
    "ContentClassifier",
    "ContentSanitizer",
    "LinkRewriter",
    "matches",
    "normalize_selector",
    "parse_html",
]
