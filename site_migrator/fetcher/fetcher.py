"""
Page fetcher stage.

Renders every input URL in turn and writes the markup to the raw store.
URLs are processed one at a time with a pause between them; a failing URL
is retried with exponential backoff and then recorded as failed without
stopping the run.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .renderer import PageRenderer
from ..config import FetchConfig
from ..errors import FetchError, FetchErrorKind, error_record
from ..models import RawDocument, StageSummary, UrlEntry
from ..store import RawStore, write_error_log
from ..utils.log import LogSink, StageLogger
from ..utils.paths import source_id_from_url
from ..utils.retry import retry_async


STAGE = "fetcher"


class PageFetcher:
    """
    Fetch stage: ``UrlEntry -> RawDocument``.

    The renderer is injectable; anything with ``start``, ``stop``,
    ``reset_context`` and ``render(url)`` works.
    """

    def __init__(
        self,
        config: FetchConfig,
        store: RawStore,
        renderer=None,
        sink: Optional[LogSink] = None
    ):
        self.config = config
        self.store = store
        self.renderer = renderer or PageRenderer(config)
        self.logger = StageLogger(STAGE, sink)

    async def _fetch_once(self, url: str) -> RawDocument:
        try:
            page = await self.renderer.render(url)
        except FetchError as e:
            if e.kind == FetchErrorKind.BLOCKED:
                # A flagged session stays flagged; start clean next time
                await self.renderer.reset_context()
            raise

        return RawDocument(
            source_id=source_id_from_url(url),
            html=page.html,
            fetched_at=datetime.now(timezone.utc).isoformat(),
            url=url,
        )

    async def fetch(self, entry: UrlEntry) -> RawDocument:
        """
        Fetch one URL with retries and store the result.

        Args:
            entry: URL list entry

        Returns:
            The stored RawDocument

        Raises:
            FetchError: after the last attempt fails
        """
        document = await retry_async(
            lambda: self._fetch_once(entry.url),
            attempts=self.config.max_retries,
            base_delay=self.config.backoff,
            logger=self.logger,
            retry_on=(FetchError,),
            label=entry.url,
        )
        self.store.save(document)
        return document

    async def fetch_all(self, entries: List[UrlEntry]) -> Tuple[List[RawDocument], StageSummary]:
        """
        Fetch every entry sequentially.

        Args:
            entries: Parsed URL list

        Returns:
            Tuple of (fetched documents, stage summary)

        Raises:
            FetchError: ``no_input_urls`` when ``entries`` is empty
        """
        if not entries:
            raise FetchError(FetchErrorKind.NO_INPUT_URLS, "No URLs to fetch")

        start_time = time.time()
        summary = StageSummary(stage=STAGE)
        documents: List[RawDocument] = []

        self.logger.info(f"Fetching {len(entries)} URLs")
        await self.renderer.start()

        try:
            for index, entry in enumerate(entries, 1):
                self.logger.info(f"[{index}/{len(entries)}] Fetching: {entry.url}")

                try:
                    document = await self.fetch(entry)
                    documents.append(document)
                    summary.succeeded += 1
                    self.logger.debug(f"Saved {document.source_id} ({len(document.html)} chars)")
                except FetchError as e:
                    self.logger.error(f"Failed {entry.url}: {e}")
                    summary.failed += 1
                    summary.errors.append(error_record(entry.url, e))

                # Rate limiting
                if index < len(entries) and self.config.delay > 0:
                    await asyncio.sleep(self.config.delay)
        finally:
            await self.renderer.stop()

        write_error_log(self.store.directory, summary.errors)
        summary.duration_seconds = time.time() - start_time
        self.logger.info(
            f"Fetched {summary.succeeded}/{len(entries)} pages in {summary.duration_seconds:.1f}s"
        )
        return documents, summary
