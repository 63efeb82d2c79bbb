"""Playwright browser management for form automation."""

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from form_automation.browser import scripts
from form_automation.exceptions import NavigationError
from form_automation.models import BrowserOptions

logger = logging.getLogger(__name__)

# Realistic user agents
USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
]

VIEWPORTS = [
    {"width": 1280, "height": 800},
    {"width": 1366, "height": 768},
    {"width": 1440, "height": 900},
    {"width": 1536, "height": 864},
]


class BrowserDriver:
    """Owns one headless browser process and hands out isolated contexts.

    The driver is an explicit resource handle: create it, use it, shut it
    down (or use it as an async context manager). Contexts carry per-target
    cookies and storage, so each run gets its own through ``session()``.

    Usage:
        async with BrowserDriver(options) as driver:
            async with driver.session() as page:
                await driver.navigate(page, url)
    """

    def __init__(self, options: BrowserOptions | None = None) -> None:
        self.options = options or BrowserOptions()
        self._playwright: Any = None
        self._browser: Browser | None = None
        self._launch_lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(self.options.max_contexts)

    async def __aenter__(self) -> "BrowserDriver":
        await self.launch()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def launch(self) -> Browser:
        """Start Chromium if it is not already running."""
        async with self._launch_lock:
            if self.is_running:
                return self._browser  # type: ignore[return-value]

            logger.info(f"Launching Chromium (headless={self.options.headless})")
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.options.headless,
                slow_mo=self.options.slow_mo,
            )
            return self._browser

    async def new_context(self) -> BrowserContext:
        """Create a browser context with a randomized fingerprint."""
        browser = await self.launch()
        return await browser.new_context(
            user_agent=random.choice(USER_AGENTS),
            viewport=random.choice(VIEWPORTS),
            locale="en-US",
            timezone_id="America/New_York",
            java_script_enabled=True,
            has_touch=False,
            is_mobile=False,
        )

    async def new_page(self, context: BrowserContext, timeout: int | None = None) -> Page:
        """Create a page in the given context."""
        page = await context.new_page()
        page.set_default_timeout(timeout or self.options.timeout)
        await page.add_init_script(scripts.HIDE_WEBDRIVER)
        return page

    async def close_context(self, context: BrowserContext) -> None:
        """Close a browser context, logging rather than raising on failure."""
        try:
            await context.close()
        except PlaywrightError as e:
            logger.warning(f"Failed to close browser context: {e}")

    @asynccontextmanager
    async def session(self, timeout: int | None = None) -> AsyncIterator[Page]:
        """Acquire a fresh context and page, releasing them on every exit path."""
        async with self._slots:
            context = await self.new_context()
            try:
                page = await self.new_page(context, timeout)
                yield page
            finally:
                await self.close_context(context)

    async def shutdown(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser:
            logger.info("Closing Chromium")
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def navigate(self, page: Page, url: str, timeout: int | None = None) -> None:
        """Navigate to a URL and give dynamic content a moment to render.

        Raises:
            NavigationError: On DNS/TLS/connection failures, timeouts, or HTTP errors.
        """
        timeout = timeout or self.options.timeout
        try:
            response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise NavigationError(url, f"timed out after {timeout} ms", timed_out=True) from e
        except PlaywrightError as e:
            raise NavigationError(url, e.message) from e

        if response is not None and response.status >= 400:
            raise NavigationError(url, f"HTTP {response.status}: {response.status_text}")

        await page.wait_for_timeout(1000)

    async def screenshot(
        self,
        page: Page,
        full_page: bool = False,
        path: str | Path | None = None,
    ) -> bytes:
        """Take a PNG screenshot, optionally saving it to ``path``."""
        image = await page.screenshot(type="png", full_page=full_page)

        if path is not None:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image)

        return image

    async def scroll_page(self, page: Page) -> None:
        """Scroll to the bottom and back so lazy content renders."""
        await page.evaluate(scripts.SCROLL_TO_BOTTOM)
        await page.wait_for_timeout(500)
        await page.evaluate(scripts.SCROLL_TO_TOP)
        await page.wait_for_timeout(500)

    async def visible_text(self, page: Page) -> str:
        """Rendered text of the page body."""
        return await page.evaluate(scripts.VISIBLE_TEXT) or ""

    async def page_html(self, page: Page) -> str:
        """Page HTML content."""
        return await page.content()
