# page_mirror/browser/fetcher.py
"""
Asset fetcher: retrieves asset bodies through the same browser context.

Going through the browser keeps cookies, referrer and redirects consistent
with how the page loaded them. Each fetch gets its own tab so assets of one
page download concurrently; ``asset_concurrency`` caps how many tabs a single
page may hold open at once.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from page_mirror.browser.pool import BrowserPool, describe_error
from page_mirror.config import MirrorConfig
from page_mirror.errors import AssetFetchError
from page_mirror.logger import get_logger
from page_mirror.models import AssetReference
from page_mirror.utils import is_fetchable_asset_url

__all__ = ["AssetFetcher"]

logger = get_logger("fetcher")


class AssetFetcher:
    """Fetches raw asset bytes by navigating browser tabs to the asset URL."""

    def __init__(self, pool: BrowserPool, config: MirrorConfig) -> None:
        self.pool = pool
        self.config = config
        self._semaphore = asyncio.Semaphore(config.asset_concurrency)

    async def fetch(self, ref: AssetReference, referer: Optional[str] = None) -> bytes:
        """
        Return the response body of *ref*.

        Raises :class:`AssetFetchError` without navigating when the URL is not
        ``http(s)://``, and after navigating when there is no response, the
        server answers with an HTTP error, or the navigation fails.
        """
        if not is_fetchable_asset_url(ref.url):
            raise AssetFetchError(ref.url, "not an http(s) URL, skipped")

        async with self._semaphore:
            try:
                async with self.pool.acquire_page() as page:
                    response = await page.goto(ref.url, referer=referer, timeout=self.config.timeout_ms)
                    if response is None:
                        raise AssetFetchError(ref.url, "no response received")
                    if response.status >= 400:
                        raise AssetFetchError(ref.url, f"HTTP {response.status}")
                    body = await response.body()
            except PlaywrightTimeoutError as exc:
                raise AssetFetchError(ref.url, f"timed out after {self.config.timeout}s", cause=exc) from exc
            except PlaywrightError as exc:
                raise AssetFetchError(ref.url, describe_error(exc), cause=exc) from exc

        logger.debug("Fetched %s (%s, %d bytes)", ref.url, ref.kind.value, len(body))
        return body
