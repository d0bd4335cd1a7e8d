"""
Page renderer using Playwright for JavaScript rendering.

Keeps one browser context alive across pages so cookies set by the
first page (consent banners, bot checks) carry over to later ones.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Route,
    TimeoutError as PlaywrightTimeout,
)

from ..config import FetchConfig
from ..errors import FetchError, FetchErrorKind
from ..utils.log import get_logger


# HTTP statuses that mean the site is refusing automated access
BLOCK_STATUSES = (403, 429, 503)

# Text found on bot-challenge and access-denied interstitials
CHALLENGE_MARKERS = (
    "cf-browser-verification",
    "challenge-platform",
    "just a moment...",
    "attention required! | cloudflare",
    "access denied",
    "request unsuccessful. incapsula",
    "are you a robot",
    "verify you are human",
)

BLOCKED_RESOURCE_TYPES = ("image", "font", "media")

HIDE_WEBDRIVER_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
)


@dataclass
class RenderedPage:
    """Result of rendering one URL."""

    html: str
    final_url: str
    status: int


def looks_blocked(status: Optional[int], html: str = "") -> bool:
    """
    Decide whether a response is a block rather than a normal page.

    Args:
        status: HTTP status of the main document
        html: Rendered markup

    Returns:
        True for block statuses or challenge/interstitial pages
    """
    if status in BLOCK_STATUSES:
        return True
    head = html[:5000].lower()
    return any(marker in head for marker in CHALLENGE_MARKERS)


class PageRenderer:
    """
    Renders web pages using Playwright headless browser.

    Captures the final DOM after JavaScript execution.
    """

    def __init__(self, config: Optional[FetchConfig] = None):
        """
        Initialize the page renderer.

        Args:
            config: Fetch settings (timeout, user agent, headless, ...)
        """
        self.config = config or FetchConfig()
        self.logger = get_logger("renderer")

        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def start(self) -> None:
        """
        Start the Playwright browser instance.
        """
        self.logger.info("Starting Playwright browser...")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=[
                '--disable-blink-features=AutomationControlled',
                '--no-sandbox',
                '--disable-setuid-sandbox',
                '--disable-dev-shm-usage',
            ]
        )
        self.logger.info("Browser started successfully")

    async def stop(self) -> None:
        """
        Stop the Playwright browser instance.
        """
        await self.reset_context()
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        self.logger.info("Browser stopped")

    async def reset_context(self) -> None:
        """Discard the current browser context (cookies included)."""
        if self._context:
            await self._context.close()
            self._context = None

    async def _get_context(self) -> BrowserContext:
        if not self._browser:
            await self.start()

        if self._context is None:
            self._context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                viewport={"width": 1920, "height": 1080},
                ignore_https_errors=True,
                extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
            )
            await self._context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
            if self.config.block_resources:
                await self._context.route("**/*", self._route_request)

        return self._context

    @staticmethod
    async def _route_request(route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    async def render(self, url: str) -> RenderedPage:
        """
        Render a page and return the final HTML content.

        Args:
            url: URL to render

        Returns:
            RenderedPage with markup, final URL and status

        Raises:
            FetchError: ``timeout``, ``blocked`` or ``navigation_failed``
        """
        context = await self._get_context()
        page: Optional[Page] = None

        try:
            page = await context.new_page()

            self.logger.debug(f"Rendering: {url}")
            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.timeout
            )

            if not response:
                raise FetchError(
                    FetchErrorKind.NAVIGATION_FAILED, f"No response for {url}", {'url': url}
                )

            # Late XHR content; pages with long-polling never go idle
            try:
                await page.wait_for_load_state("networkidle", timeout=self.config.timeout // 2)
            except PlaywrightTimeout:
                self.logger.debug(f"Network never settled for {url}")

            if self.config.wait_time > 0:
                await asyncio.sleep(self.config.wait_time)

            html_content = await page.content()
            status = response.status

            if looks_blocked(status, html_content):
                raise FetchError(
                    FetchErrorKind.BLOCKED,
                    f"Access blocked (HTTP {status}) for {url}",
                    {'url': url, 'status': status},
                )

            if status >= 400:
                raise FetchError(
                    FetchErrorKind.NAVIGATION_FAILED,
                    f"HTTP {status} for {url}",
                    {'url': url, 'status': status},
                )

            self.logger.debug(f"Successfully rendered: {page.url}")
            return RenderedPage(html=html_content, final_url=page.url, status=status)

        except PlaywrightTimeout as e:
            raise FetchError(
                FetchErrorKind.TIMEOUT, f"Timeout rendering {url}", {'url': url}
            ) from e
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(
                FetchErrorKind.NAVIGATION_FAILED, f"Error rendering {url}: {e}", {'url': url}
            ) from e
        finally:
            if page:
                await page.close()
