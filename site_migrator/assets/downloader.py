"""
Image downloader.

Uses aiohttp for asynchronous downloads with per-request timeouts and
retries. Responses that are empty or look like an error page are treated
as failed downloads.
"""

import asyncio
from typing import Optional, Tuple

import aiohttp
from aiohttp import ClientError, ClientTimeout

from ..config import AssetConfig
from ..errors import AssetError, AssetErrorKind
from ..utils.log import StageLogger
from ..utils.retry import retry_async


# Tiny bodies are checked for error-page text
MIN_IMAGE_BYTES = 100
ERROR_MARKERS = ('error', '404', '<html', 'not found')

ACCEPT_HEADER = 'image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8'


def looks_like_error_body(content: bytes) -> bool:
    if len(content) >= MIN_IMAGE_BYTES:
        return False
    text = content.decode('utf-8', errors='ignore').lower()
    return any(marker in text for marker in ERROR_MARKERS)


class ImageDownloader:
    """
    Downloads image bytes over HTTP.

    ``fetch_bytes`` is the single network call; everything else is
    validation and retry.
    """

    def __init__(self, config: Optional[AssetConfig] = None, logger: Optional[StageLogger] = None):
        """
        Initialize the image downloader.

        Args:
            config: Asset settings (timeout, retries, user agent)
            logger: Stage logger for retry notices
        """
        self.config = config or AssetConfig()
        self.timeout = ClientTimeout(total=self.config.timeout)
        self.logger = logger or StageLogger("assets")

    def create_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=self.timeout,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept": ACCEPT_HEADER,
            }
        )

    async def fetch_bytes(
        self,
        session: aiohttp.ClientSession,
        url: str
    ) -> Tuple[bytes, str]:
        """
        Perform one GET request.

        Returns:
            Tuple of (body, Content-Type header)

        Raises:
            AssetError: ``download_failed`` on HTTP or transport errors
        """
        try:
            async with session.get(url, allow_redirects=True) as response:
                if response.status != 200:
                    raise AssetError(
                        AssetErrorKind.DOWNLOAD_FAILED,
                        f"HTTP {response.status} for {url}",
                        {'url': url, 'status': response.status},
                    )
                content = await response.read()
                return content, response.headers.get('Content-Type', '')
        except ClientError as e:
            raise AssetError(
                AssetErrorKind.DOWNLOAD_FAILED, f"Client error for {url}: {e}", {'url': url}
            ) from e
        except asyncio.TimeoutError as e:
            raise AssetError(
                AssetErrorKind.DOWNLOAD_FAILED, f"Timeout downloading {url}", {'url': url}
            ) from e

    async def _download_once(self, session: aiohttp.ClientSession, url: str) -> Tuple[bytes, str]:
        content, content_type = await self.fetch_bytes(session, url)

        if not content:
            raise AssetError(AssetErrorKind.DOWNLOAD_FAILED, f"Empty response for {url}", {'url': url})

        if looks_like_error_body(content):
            raise AssetError(
                AssetErrorKind.DOWNLOAD_FAILED,
                f"Response for {url} is an error page, not an image",
                {'url': url},
            )

        return content, content_type

    async def download(self, session: aiohttp.ClientSession, url: str) -> Tuple[bytes, str]:
        """
        Download an image with retries.

        Args:
            session: Open aiohttp session
            url: Image URL

        Returns:
            Tuple of (body, Content-Type header)

        Raises:
            AssetError: ``download_failed`` after the last attempt
        """
        return await retry_async(
            lambda: self._download_once(session, url),
            attempts=self.config.retry_attempts,
            base_delay=self.config.backoff,
            logger=self.logger,
            retry_on=(AssetError,),
            label=url,
        )
