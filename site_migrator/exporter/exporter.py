"""
Exporter stage.

Builds one CSV row per clean document and writes the import file plus a
``generation-summary.json`` describing what went into it.
"""

import os
import time
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from .csv_writer import write_csv
from .dates import extract_date, now_string
from .metadata import (
    extract_excerpt,
    extract_title,
    parse_fragment,
    rewrite_image_sources,
)
from ..config import ExportConfig
from ..errors import ExportError, ExportErrorKind, error_record
from ..models import CleanDocument, ContentType, ExportRow, ImageRecord, RawDocument, StageSummary
from ..sanitizer.selectors import parse_html
from ..store import write_json
from ..utils.log import LogSink, StageLogger
from ..utils.paths import domain_from_source_id, slug_from_source_id


STAGE = "exporter"
SUMMARY_FILE = "generation-summary.json"


class CsvExporter:
    """
    Export stage: clean documents (+ raw documents, asset mapping) -> CSV.
    """

    def __init__(
        self,
        config: ExportConfig,
        output_path: str,
        sink: Optional[LogSink] = None
    ):
        self.config = config
        self.output_path = output_path
        self.logger = StageLogger(STAGE, sink)

    @property
    def summary_path(self) -> str:
        return os.path.join(os.path.dirname(self.output_path) or '.', SUMMARY_FILE)

    def category_for(self, content_type: ContentType) -> str:
        if content_type == ContentType.POST:
            return self.config.post_category
        return self.config.page_category

    def build_row(
        self,
        clean: CleanDocument,
        raw: Optional[RawDocument] = None,
        images: Sequence[ImageRecord] = ()
    ) -> ExportRow:
        """
        Derive every export field for one document.

        Args:
            clean: Sanitized document with its verdict
            raw: Raw document (title and date source), if available
            images: ImageRecords belonging to this document

        Returns:
            ExportRow
        """
        raw_soup = parse_html(raw.html) if raw and raw.html else None
        fragment = parse_fragment(clean.html)

        title = extract_title(
            clean.source_id, raw_soup, fragment, self.config.title_selectors
        )
        slug = slug_from_source_id(clean.source_id, title)

        date = None
        if raw_soup is not None:
            date = extract_date(raw_soup, self.config.date_selectors)
        if not date:
            self.logger.debug(f"{clean.source_id}: no date found, using current time")
            date = now_string()

        excerpt = extract_excerpt(fragment)

        content = clean.html
        if self.config.image_url_prefix is not None and images:
            base_url = (raw.url if raw and raw.url else
                        f"https://{domain_from_source_id(clean.source_id)}/")
            if rewrite_image_sources(fragment, images, self.config.image_url_prefix, base_url):
                content = str(fragment)

        return ExportRow(
            title=title,
            slug=slug,
            content=content.strip(),
            excerpt=excerpt,
            type=clean.verdict.type.value,
            status=self.config.status,
            date=date,
            category=self.category_for(clean.verdict.type),
        )

    def export(
        self,
        documents: List[CleanDocument],
        raw_documents: Sequence[RawDocument] = (),
        images: Sequence[ImageRecord] = ()
    ) -> StageSummary:
        """
        Write the export file.

        Args:
            documents: Clean documents in output order
            raw_documents: Raw documents, matched by source id
            images: All ImageRecords from the asset stage

        Returns:
            Stage summary

        Raises:
            ExportError: ``no_input_documents`` when there is nothing to
                export, ``serialization_failure`` when writing fails
        """
        if not documents:
            raise ExportError(ExportErrorKind.NO_INPUT_DOCUMENTS, "No documents to export")

        start_time = time.time()
        summary = StageSummary(stage=STAGE)

        raw_by_id: Dict[str, RawDocument] = {doc.source_id: doc for doc in raw_documents}
        images_by_id: Dict[str, List[ImageRecord]] = defaultdict(list)
        for record in images:
            images_by_id[record.source_id].append(record)

        rows: List[ExportRow] = []
        items = []
        for clean in documents:
            try:
                row = self.build_row(clean, raw_by_id.get(clean.source_id), images_by_id[clean.source_id])
            except Exception as e:
                self.logger.error(f"Failed {clean.source_id}: {e}")
                summary.failed += 1
                summary.errors.append(error_record(clean.source_id, e))
                continue

            rows.append(row)
            summary.succeeded += 1
            items.append({
                'source_id': clean.source_id,
                'title': row.title,
                'slug': row.slug,
                'type': clean.verdict.type.value,
                'confidence': clean.verdict.confidence,
                'reason': clean.verdict.reason,
            })

        if not rows:
            raise ExportError(
                ExportErrorKind.NO_INPUT_DOCUMENTS, "No document could be turned into a row"
            )

        try:
            file_size = write_csv(self.output_path, rows)
        except OSError as e:
            raise ExportError(
                ExportErrorKind.SERIALIZATION_FAILURE,
                f"Could not write {self.output_path}: {e}",
                {'path': self.output_path},
            ) from e

        posts = sum(1 for row in rows if row.type == ContentType.POST.value)
        write_json(self.summary_path, {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'total_documents': len(documents),
            'posts': posts,
            'pages': len(rows) - posts,
            'processed_items': len(rows),
            'output_file': os.path.basename(self.output_path),
            'file_size': file_size,
            'items': items,
            'errors': summary.errors,
        })

        summary.duration_seconds = time.time() - start_time
        self.logger.info(
            f"Generated {self.output_path} ({len(rows)} items: {posts} posts, "
            f"{len(rows) - posts} pages, {file_size / 1024:.1f}KB)"
        )
        return summary
