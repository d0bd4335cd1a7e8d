"""
Asset manager stage.

Extracts the images referenced by each raw document, downloads them into
one flat directory through a bounded pool, normalizes AVIF to JPEG, embeds
alt text as metadata, and writes ``image-mapping.json``.
"""

import asyncio
import os
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .downloader import ImageDownloader
from .extractor import ImageExtractor, filter_reason
from .naming import (
    extension_for_content_type,
    image_filename,
    is_avif,
    with_extension,
)
from .tools import ImageConverter, MetadataEmbedder
from ..config import AssetConfig
from ..errors import AssetError, AssetErrorKind, error_record
from ..models import ImageRecord, RawDocument, StageSummary
from ..store import read_json, write_error_log, write_json
from ..utils.log import LogSink, StageLogger
from ..utils.paths import ensure_dir, extract_article_slug, short_hash


STAGE = "assets"


def load_image_mapping(path: str) -> List[ImageRecord]:
    """Read ImageRecords back from an ``image-mapping.json`` file."""
    data = read_json(path, {}) or {}
    return [ImageRecord.from_dict(item) for item in data.get('images', [])]


class AssetManager:
    """
    Asset stage: raw documents -> ImageRecords + mapping file.

    The downloader and both external tools are injectable so tests can
    run without network access or installed binaries.
    """

    def __init__(
        self,
        config: AssetConfig,
        image_dir: str,
        downloader: Optional[ImageDownloader] = None,
        converter: Optional[ImageConverter] = None,
        embedder: Optional[MetadataEmbedder] = None,
        sink: Optional[LogSink] = None
    ):
        self.config = config
        self.image_dir = image_dir
        self.logger = StageLogger(STAGE, sink)
        self.extractor = ImageExtractor(self.logger)
        self.downloader = downloader or ImageDownloader(config, self.logger)
        self.converter = converter or ImageConverter()
        self.embedder = embedder or MetadataEmbedder()

        self._can_convert = False
        self._can_embed = False
        self._converter_warned = False
        self._previous: Dict[str, ImageRecord] = {}

    @property
    def mapping_path(self) -> str:
        return os.path.join(self.image_dir, self.config.mapping_file)

    def plan(self, documents: List[RawDocument]) -> List[ImageRecord]:
        """
        Build one ImageRecord per image reference, before any download.

        Filtered images are returned with ``skipped=True``. Two different
        URLs that would share a filename get a short hash suffix.

        Args:
            documents: Raw documents

        Returns:
            Planned records in document order
        """
        records: List[ImageRecord] = []
        used: Dict[str, str] = {}

        for document in documents:
            article_slug = extract_article_slug(document.source_id)

            for candidate in self.extractor.extract(document):
                filename = image_filename(
                    article_slug,
                    candidate.url,
                    self.config.auto_convert,
                    self.config.allowed_formats,
                )

                owner = used.get(filename)
                if owner is not None and owner != candidate.url:
                    base, ext = os.path.splitext(filename)
                    filename = f"{base}-{short_hash(candidate.url, 6)}{ext}"
                used[filename] = candidate.url

                reason = filter_reason(candidate)
                records.append(ImageRecord(
                    original_url=candidate.url,
                    local_filename=filename,
                    article_slug=article_slug,
                    source_id=document.source_id,
                    alt_text=candidate.alt,
                    skipped=reason is not None,
                    skip_reason=reason,
                ))

        return records

    async def _probe_tools(self) -> None:
        self._can_convert = self.config.auto_convert and await self.converter.available()
        self._can_embed = await self.embedder.available()

        if self.config.auto_convert and not self._can_convert and not self._converter_warned:
            self.logger.warning(
                "Image converter not found, AVIF images will be kept as AVIF "
                "(install ImageMagick to enable conversion)"
            )
            self._converter_warned = True

    def _existing_file(self, record: ImageRecord) -> Optional[str]:
        """Find a file left by an earlier run, whatever extension it ended up with."""
        names = [record.local_filename] + [
            with_extension(record.local_filename, ext) for ext in self.config.allowed_formats
        ]
        for name in names:
            path = os.path.join(self.image_dir, name)
            if os.path.exists(path) and os.path.getsize(path) > 0:
                record.local_filename = name
                return path
        return None

    async def _normalize_format(
        self,
        record: ImageRecord,
        content: bytes,
        content_type: str
    ) -> str:
        """Write the body to disk with its final name and return the path."""
        avif = is_avif(record.original_url, content_type)

        if avif:
            record.original_format = "avif"
            avif_path = os.path.join(self.image_dir, with_extension(record.local_filename, '.avif'))
            with open(avif_path, 'wb') as f:
                f.write(content)

            if not self._can_convert:
                record.local_filename = os.path.basename(avif_path)
                return avif_path

            try:
                jpeg_path = await self.converter.convert(avif_path)
            except AssetError:
                record.local_filename = os.path.basename(avif_path)
                raise

            record.local_filename = os.path.basename(jpeg_path)
            record.format_converted = True
            return jpeg_path

        served = extension_for_content_type(content_type)
        if served and not record.local_filename.lower().endswith(served):
            record.local_filename = with_extension(record.local_filename, served)

        path = os.path.join(self.image_dir, record.local_filename)
        with open(path, 'wb') as f:
            f.write(content)
        return path

    async def _process_record(
        self,
        session,
        record: ImageRecord,
        semaphore: asyncio.Semaphore,
        summary: StageSummary
    ) -> None:
        existing = self._existing_file(record)
        if existing:
            record.size_bytes = os.path.getsize(existing)
            previous = self._previous.get(record.original_url)
            if previous and previous.local_filename == record.local_filename:
                record.format_converted = previous.format_converted
                record.original_format = previous.original_format
                record.metadata_embedded = previous.metadata_embedded
            self.logger.debug(f"Reusing {record.local_filename}")
            return

        async with semaphore:
            try:
                content, content_type = await self.downloader.download(session, record.original_url)
            except AssetError as e:
                record.error = str(e)
                self.logger.warning(f"Download failed: {record.original_url} ({e.message})")
                summary.errors.append(error_record(record.original_url, e))
                return

            try:
                path = await self._normalize_format(record, content, content_type)
            except AssetError as e:
                # The AVIF original is kept; the run continues
                self.logger.warning(f"{e.message}, keeping {record.local_filename}")
                summary.errors.append(error_record(record.original_url, e))
                path = os.path.join(self.image_dir, record.local_filename)
            except OSError as e:
                err = AssetError(AssetErrorKind.DOWNLOAD_FAILED, f"Could not save image: {e}")
                record.error = str(err)
                summary.errors.append(error_record(record.original_url, err))
                return

            record.size_bytes = os.path.getsize(path)

            if record.alt_text and self._can_embed:
                record.metadata_embedded = await self.embedder.embed(path, record.alt_text)

            self.logger.debug(f"Downloaded: {record.original_url} -> {record.local_filename}")

    async def process(self, documents: List[RawDocument]) -> Tuple[List[ImageRecord], StageSummary]:
        """
        Run the asset stage over all documents.

        Args:
            documents: Raw documents

        Returns:
            Tuple of (image records, stage summary)
        """
        start_time = time.time()
        summary = StageSummary(stage=STAGE)
        ensure_dir(self.image_dir)

        # Files reused from an earlier run keep what that run recorded about them
        self._previous = {r.original_url: r for r in load_image_mapping(self.mapping_path)}
        records = self.plan(documents)
        pending = [r for r in records if not r.skipped]
        summary.skipped = len(records) - len(pending)

        for record in records:
            if record.skipped:
                self.logger.debug(f"Skipped {record.original_url}: {record.skip_reason}")

        self.logger.info(
            f"Found {len(records)} images in {len(documents)} documents "
            f"({summary.skipped} filtered)"
        )

        if pending:
            await self._probe_tools()
            semaphore = asyncio.Semaphore(max(1, self.config.max_concurrent))

            async with self.downloader.create_session() as session:
                await asyncio.gather(*[
                    self._process_record(session, record, semaphore, summary)
                    for record in pending
                ])

        summary.succeeded = sum(1 for r in pending if r.downloaded)
        summary.failed = len(pending) - summary.succeeded

        self.write_mapping(records, summary)
        write_error_log(self.image_dir, summary.errors)

        summary.duration_seconds = time.time() - start_time
        self.logger.info(
            f"Downloaded {summary.succeeded} images, {summary.failed} failed, "
            f"{summary.skipped} skipped in {summary.duration_seconds:.1f}s"
        )
        return records, summary

    def write_mapping(self, records: List[ImageRecord], summary: StageSummary) -> str:
        """Write ``image-mapping.json`` with every record and the run totals."""
        write_json(self.mapping_path, {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'total': len(records),
            'succeeded': sum(1 for r in records if r.downloaded),
            'failed': sum(1 for r in records if r.error is not None),
            'skipped': summary.skipped,
            'images': [record.to_dict() for record in records],
        })
        return self.mapping_path
