# page_mirror/browser/pool.py
"""
Shared headless browser for one batch.

One Chromium process and one browser context are started per batch; every
mirror job (and every asset fetch) checks a tab out with
:meth:`BrowserPool.acquire_page` and the tab is closed when the ``async with``
block exits, whatever happened inside it.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from page_mirror.config import MirrorConfig
from page_mirror.logger import get_logger

__all__ = ["BrowserPool", "describe_error"]

logger = get_logger("browser")


def describe_error(exc: BaseException) -> str:
    """First line of an exception message; Playwright appends multi-line call logs."""
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


class BrowserPool:
    """Scoped access to a single Chromium instance shared by concurrent jobs."""

    def __init__(self, config: MirrorConfig) -> None:
        self.config = config
        self.open_pages = 0
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> BrowserPool:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def started(self) -> bool:
        return self._context is not None

    async def start(self) -> None:
        if self.started:
            return
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=list(self.config.browser_args),
            )
            self._context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                ignore_https_errors=self.config.ignore_https_errors,
            )
        except BaseException:
            await self.close()
            raise
        self._context.set_default_timeout(self.config.timeout_ms)
        self._context.set_default_navigation_timeout(self.config.timeout_ms)
        logger.info("Browser started headless=%s args=%s", self.config.headless, self.config.browser_args)

    async def close(self) -> None:
        """Release context, browser and driver; never raises."""
        context, browser, pw = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None

        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.warning("Error while closing context: %s", describe_error(e))
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning("Error while closing browser: %s", describe_error(e))
        if pw is not None:
            try:
                await pw.stop()
            except Exception as e:
                logger.warning("Error while stopping playwright: %s", describe_error(e))
        if browser is not None:
            logger.info("Browser closed")

    @asynccontextmanager
    async def acquire_page(self) -> AsyncIterator[Page]:
        if self._context is None:
            raise RuntimeError("BrowserPool not started")
        page = await self._context.new_page()
        self.open_pages += 1
        try:
            yield page
        finally:
            self.open_pages -= 1
            try:
                await page.close()
            except PlaywrightError as e:
                logger.debug("Page close failed: %s", describe_error(e))
