"""
Sanitizer/classifier stage.

Turns each raw document into a clean HTML fragment suitable for the CMS
editor and decides whether it becomes a post or a page.
"""

import time
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .attributes import compile_patterns, strip_attributes
from .classifier import ContentClassifier
from .cleanup import (
    convert_background_images,
    remove_boilerplate,
    remove_empty_elements,
    remove_headings,
    remove_images,
)
from .lists import convert_word_lists
from .rewrite import LinkRewriter
from .selectors import matches, parse_html
from .spacing import apply_spacing
from ..config import ClassificationConfig, SanitizeConfig
from ..errors import TransformError, TransformErrorKind, error_record
from ..models import CleanDocument, RawDocument, StageSummary
from ..store import CleanStore, write_error_log
from ..utils.log import LogSink, StageLogger
from ..utils.paths import domain_from_source_id, get_domain


STAGE = "sanitizer"


class ContentSanitizer:
    """
    Sanitize stage: ``RawDocument -> CleanDocument``.

    Classification runs on the untouched raw markup; the cleaning passes
    run in a fixed order on the selected content region.
    """

    def __init__(
        self,
        config: SanitizeConfig,
        classification: Optional[ClassificationConfig] = None,
        store: Optional[CleanStore] = None,
        sink: Optional[LogSink] = None
    ):
        self.config = config
        self.classifier = ContentClassifier(classification)
        self.store = store
        self.logger = StageLogger(STAGE, sink)
        self.layout_patterns = compile_patterns(config.layout_class_patterns)
        self.allow_list = config.attribute_allow_list

    def select_content_root(self, soup: BeautifulSoup) -> Tag:
        """
        Pick the element holding the page's main content.

        The first content selector matching an element with text wins;
        otherwise ``<body>`` (or the whole document) is used.
        """
        for selector in self.config.content_selectors:
            for element in matches(soup, selector, normalize=False):
                if element.get_text().strip():
                    return element
        return soup.body or soup

    def _domain_for(self, document: RawDocument) -> str:
        if document.url:
            return get_domain(document.url)
        return get_domain('https://' + domain_from_source_id(document.source_id))

    def sanitize(self, document: RawDocument) -> CleanDocument:
        """
        Classify and clean one raw document.

        Args:
            document: Raw document from the fetcher

        Returns:
            CleanDocument with the content fragment and its verdict

        Raises:
            TransformError: on unparsable markup or an invalid selector
        """
        if not document.html or not document.html.strip():
            raise TransformError(
                TransformErrorKind.PARSE_FAILURE,
                f"Empty document {document.source_id}",
                {'source_id': document.source_id},
            )

        soup = parse_html(document.html)
        verdict = self.classifier.classify(document.source_id, soup)

        root = self.select_content_root(soup)

        removed = 0
        for selector in self.config.removal_selectors:
            for element in matches(root, selector, normalize=False):
                if not element.decomposed:
                    element.decompose()
                    removed += 1
        if removed:
            self.logger.debug(f"{document.source_id}: removed {removed} element(s) by selector")

        remove_boilerplate(root)
        if self.config.remove_images:
            remove_images(root)
        else:
            convert_background_images(root, soup)

        strip_attributes(root, self.allow_list, self.layout_patterns)

        rewriter = LinkRewriter(self._domain_for(document), self.config.link_rewrites, self.logger)
        rewriter.rewrite_links(root)

        if self.config.remove_headings:
            remove_headings(root)

        lists = convert_word_lists(root, soup)
        if lists:
            self.logger.debug(f"{document.source_id}: converted {lists} word list(s)")

        apply_spacing(root, self.config.spacing)
        remove_empty_elements(root, self.layout_patterns)

        html = root.decode_contents().strip()
        return CleanDocument(source_id=document.source_id, html=html, verdict=verdict)

    def sanitize_all(
        self,
        documents: List[RawDocument]
    ) -> Tuple[List[CleanDocument], StageSummary]:
        """
        Sanitize every document, recording per-document failures.

        Args:
            documents: Raw documents

        Returns:
            Tuple of (clean documents, stage summary)
        """
        start_time = time.time()
        summary = StageSummary(stage=STAGE)
        cleaned: List[CleanDocument] = []

        self.logger.info(f"Sanitizing {len(documents)} documents")

        for document in documents:
            try:
                clean = self.sanitize(document)
            except Exception as e:
                if not isinstance(e, TransformError):
                    e = TransformError(
                        TransformErrorKind.PARSE_FAILURE,
                        f"Could not sanitize {document.source_id}: {e}",
                        {'source_id': document.source_id},
                    )
                self.logger.error(f"Failed {document.source_id}: {e}")
                summary.failed += 1
                summary.errors.append(error_record(document.source_id, e))
                continue

            if self.store:
                self.store.save(clean)
            cleaned.append(clean)
            summary.succeeded += 1
            self.logger.info(
                f"{document.source_id}: {clean.verdict.type.value} "
                f"({clean.verdict.confidence}%) {clean.verdict.reason}"
            )

        if self.store:
            write_error_log(self.store.directory, summary.errors)

        summary.duration_seconds = time.time() - start_time
        return cleaned, summary
