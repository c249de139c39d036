"""
Shared Playwright browser for a crawl run.
"""
import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from .config import BrowserOptions

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    Owns the single browser process used for a run.

    The browser is launched lazily on the first ``new_context()`` call and
    reused afterwards. Create one session at startup, pass it to the crawler,
    and close it once at shutdown (or use it as an async context manager).
    """

    def __init__(self, options: BrowserOptions):
        self.options = options
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._closed = False

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def get_browser(self) -> Browser:
        """Create the browser process on first use, then return the same handle."""
        if self._closed:
            raise RuntimeError("Browser session is already closed")
        if self._browser is not None:
            return self._browser

        if self._playwright is None:
            self._playwright = await async_playwright().start()

        browser_type = getattr(self._playwright, self.options.engine)
        launch_kwargs = {"headless": self.options.headless}
        if self.options.slow_mo_ms > 0:
            launch_kwargs["slow_mo"] = self.options.slow_mo_ms

        logger.info(
            f">>> Launching {self.options.engine} "
            f"(headless={self.options.headless}, slow_mo={self.options.slow_mo_ms}ms)"
        )
        self._browser = await browser_type.launch(**launch_kwargs)
        return self._browser

    async def new_context(self) -> BrowserContext:
        """Open a fresh, isolated browsing context on the shared browser."""
        browser = await self.get_browser()
        context = await browser.new_context(locale="en-AU", ignore_https_errors=True)
        context.set_default_timeout(self.options.navigation_timeout_ms)
        context.set_default_navigation_timeout(self.options.navigation_timeout_ms)
        return context

    async def close(self) -> None:
        """Shut the browser and Playwright down. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        try:
            if self._browser is not None:
                await self._browser.close()
                logger.info(">>> Browser closed")
        finally:
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
