"""
Migration pipeline.

Runs Fetch -> Sanitize/Classify -> Assets -> Export, forwarding each
stage's artifacts to the next. A single stage can also run alone, in
which case its inputs are read from the stores a previous run left on
disk.
"""

import os
import time
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from .assets import AssetManager, load_image_mapping
from .config import MigrationConfig
from .errors import FetchError, FetchErrorKind
from .exporter import CsvExporter
from .fetcher import PageFetcher, manual_types_from_entries
from .models import CleanDocument, ImageRecord, RawDocument, StageSummary, UrlEntry
from .sanitizer import ContentSanitizer
from .store import CleanStore, RawStore
from .utils.log import LogSink, StageLogger, print_info


STAGES = ("all", "fetch", "sanitize", "assets", "export")


@dataclass
class MigrationResult:
    """Results of a pipeline run."""

    summaries: List[StageSummary] = field(default_factory=list)
    export_path: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def errors(self) -> List[dict]:
        return [error for summary in self.summaries for error in summary.errors]

    def summary_for(self, stage: str) -> Optional[StageSummary]:
        for summary in self.summaries:
            if summary.stage == stage:
                return summary
        return None


class MigrationPipeline:
    """
    Main pipeline class.

    Coordinates all stages for one output directory.
    """

    def __init__(
        self,
        config: MigrationConfig,
        sink: Optional[LogSink] = None,
        renderer=None,
        downloader=None,
        converter=None,
        embedder=None
    ):
        """
        Initialize the pipeline.

        Args:
            config: Complete run configuration
            sink: Log sink shared by every stage
            renderer: Optional page renderer replacement
            downloader: Optional image downloader replacement
            converter: Optional image converter replacement
            embedder: Optional metadata embedder replacement
        """
        if not config.assets.enabled and not config.sanitize.remove_images:
            config = replace(config, sanitize=replace(config.sanitize, remove_images=True))

        self.config = config
        self.sink = sink
        self.logger = StageLogger("pipeline", sink)

        self.raw_store = RawStore(config.raw_dir)
        self.clean_store = CleanStore(config.clean_dir)

        self._renderer = renderer
        self._downloader = downloader
        self._converter = converter
        self._embedder = embedder

    async def fetch(self, entries: Sequence[UrlEntry]) -> (List[RawDocument], StageSummary):
        fetcher = PageFetcher(self.config.fetch, self.raw_store, self._renderer, self.sink)
        return await fetcher.fetch_all(list(entries))

    def sanitize(
        self,
        documents: Sequence[RawDocument],
        entries: Sequence[UrlEntry] = ()
    ) -> (List[CleanDocument], StageSummary):
        classification = self.config.classification.with_manual_types(
            manual_types_from_entries(list(entries))
        )
        sanitizer = ContentSanitizer(
            self.config.sanitize, classification, self.clean_store, self.sink
        )
        return sanitizer.sanitize_all(list(documents))

    async def collect_assets(self, documents: Sequence[RawDocument]) -> (List[ImageRecord], StageSummary):
        manager = AssetManager(
            self.config.assets,
            self.config.image_dir,
            downloader=self._downloader,
            converter=self._converter,
            embedder=self._embedder,
            sink=self.sink,
        )
        return await manager.process(list(documents))

    def export(
        self,
        documents: Sequence[CleanDocument],
        raw_documents: Sequence[RawDocument],
        images: Sequence[ImageRecord]
    ) -> StageSummary:
        exporter = CsvExporter(self.config.export, self.config.export_path, self.sink)
        return exporter.export(list(documents), raw_documents, images)

    def _stored_images(self) -> List[ImageRecord]:
        path = os.path.join(self.config.image_dir, self.config.assets.mapping_file)
        if not self.config.assets.enabled or not os.path.exists(path):
            return []
        return load_image_mapping(path)

    async def run(self, entries: Sequence[UrlEntry] = (), stage: str = "all") -> MigrationResult:
        """
        Run the pipeline, or a single stage of it.

        Args:
            entries: Parsed URL list (needed for ``all`` and ``fetch``)
            stage: One of ``all``, ``fetch``, ``sanitize``, ``assets``, ``export``

        Returns:
            MigrationResult with one summary per executed stage

        Raises:
            FetchError: ``no_input_urls`` when fetching without URLs
            ExportError: when the export file cannot be produced
        """
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage}")

        start_time = time.time()
        result = MigrationResult()

        print_info(f"Output directory: {os.path.abspath(self.config.output_dir)}")

        if stage in ("all", "fetch"):
            if not entries:
                raise FetchError(FetchErrorKind.NO_INPUT_URLS, "No URLs to fetch")
            raw_documents, summary = await self.fetch(entries)
            result.summaries.append(summary)
        else:
            raw_documents = self.raw_store.load_all()
            self.logger.info(f"Loaded {len(raw_documents)} raw documents from {self.raw_store.directory}")

        if stage in ("all", "sanitize"):
            clean_documents, summary = self.sanitize(raw_documents, entries)
            result.summaries.append(summary)
        else:
            clean_documents = []

        if stage in ("all", "assets"):
            if self.config.assets.enabled:
                images, summary = await self.collect_assets(raw_documents)
                result.summaries.append(summary)
            else:
                self.logger.info("Image processing disabled")
                images = []
        else:
            images = []

        if stage in ("all", "export"):
            if stage == "export":
                clean_documents = self.clean_store.load_all()
                images = self._stored_images()
            summary = self.export(clean_documents, raw_documents, images)
            result.summaries.append(summary)
            result.export_path = self.config.export_path

        result.duration_seconds = time.time() - start_time
        return result
