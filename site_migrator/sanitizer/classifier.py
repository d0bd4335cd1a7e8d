"""
Post-vs-page classification.

Rules are tried in order and the first one that applies decides:

1. manual mapping by source id (100)
2. post selector matches (95)
3. page selector matches (95)
4. only a post selector configured, no match -> page (80)
5. only a page selector configured, no match -> post (80)
6. keyword scoring over the body text (60 + 10 per point of margin, max 90)
7. fallback -> post (50)
"""

from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from .selectors import matches
from ..config import ClassificationConfig
from ..models import ClassificationVerdict, ContentType
from ..utils.constants import PAGE_INDICATORS, POST_INDICATORS


MAX_HEURISTIC_CONFIDENCE = 90


def score_keywords(text: str) -> Tuple[List[str], List[str]]:
    """
    Find the post and page indicator phrases present in ``text``.

    Returns:
        Tuple of (post phrases found, page phrases found)
    """
    lowered = text.lower()
    post_hits = [phrase for phrase in POST_INDICATORS if phrase in lowered]
    page_hits = [phrase for phrase in PAGE_INDICATORS if phrase in lowered]
    return post_hits, page_hits


class ContentClassifier:
    """Decides whether a raw document becomes a post or a page."""

    def __init__(self, config: Optional[ClassificationConfig] = None):
        self.config = config or ClassificationConfig()
        self.manual = self.config.manual_mapping

    def classify(self, source_id: str, soup: BeautifulSoup) -> ClassificationVerdict:
        """
        Classify a parsed raw document.

        Must run before sanitization, since the selectors usually target
        classes that sanitization strips.

        Args:
            source_id: Source id of the document
            soup: Parsed raw markup

        Returns:
            ClassificationVerdict

        Raises:
            TransformError: ``selector_error`` for invalid configured selectors
        """
        manual = self.manual.get(source_id)
        if manual:
            return ClassificationVerdict(manual, 100, "Manual type mapping")

        post_selector = self.config.post_selector
        page_selector = self.config.page_selector

        if post_selector:
            found = matches(soup, post_selector)
            if found:
                return ClassificationVerdict(
                    ContentType.POST, 95,
                    f"Post selector '{post_selector}' matched {len(found)} element(s)"
                )

        if page_selector:
            found = matches(soup, page_selector)
            if found:
                return ClassificationVerdict(
                    ContentType.PAGE, 95,
                    f"Page selector '{page_selector}' matched {len(found)} element(s)"
                )

        if post_selector and not page_selector:
            return ClassificationVerdict(
                ContentType.PAGE, 80, f"Post selector '{post_selector}' not found"
            )

        if page_selector and not post_selector:
            return ClassificationVerdict(
                ContentType.POST, 80, f"Page selector '{page_selector}' not found"
            )

        body = soup.body or soup
        post_hits, page_hits = score_keywords(body.get_text(" ", strip=True))
        margin = len(post_hits) - len(page_hits)

        if margin != 0:
            content_type = ContentType.POST if margin > 0 else ContentType.PAGE
            hits = post_hits if margin > 0 else page_hits
            confidence = min(MAX_HEURISTIC_CONFIDENCE, 60 + 10 * abs(margin))
            return ClassificationVerdict(
                content_type, confidence,
                f"Keyword scoring: {len(post_hits)} post vs {len(page_hits)} page "
                f"indicators ({', '.join(hits)})"
            )

        return ClassificationVerdict(ContentType.POST, 50, "No clear indicators, defaulting to post")
