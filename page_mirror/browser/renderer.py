# page_mirror/browser/renderer.py
"""
Page renderer: load a URL in a browser tab and serialize the resulting DOM.
"""
from __future__ import annotations

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from page_mirror.browser.pool import describe_error
from page_mirror.config import MirrorConfig
from page_mirror.errors import RenderError
from page_mirror.logger import get_logger
from page_mirror.models import RenderedDocument

__all__ = ["render_page"]

logger = get_logger("renderer")


async def render_page(page: Page, url: str, config: MirrorConfig) -> RenderedDocument:
    """
    Navigate *page* to *url* and return the DOM once the network is quiet.

    With the default ``wait_until="networkidle"`` navigation completes only
    after there have been no network connections for 500 ms, which catches
    assets injected by scripts after the initial parse. ``settle_ms`` adds a
    fixed pause on top for pages that keep polling.

    Raises :class:`RenderError` on timeout, DNS, TLS or any other navigation
    failure. The tab itself is left for the caller to release.
    """
    try:
        response = await page.goto(url, wait_until=config.wait_until, timeout=config.timeout_ms)
        if config.settle_ms:
            await page.wait_for_timeout(config.settle_ms)
        html = await page.content()
    except PlaywrightTimeoutError as exc:
        logger.error("Timed out loading %s after %.1fs", url, config.timeout)
        raise RenderError(url, f"timed out after {config.timeout}s", cause=exc) from exc
    except PlaywrightError as exc:
        reason = describe_error(exc)
        logger.error("Failed to load %s: %s", url, reason)
        raise RenderError(url, reason, cause=exc) from exc

    status = response.status if response is not None else None
    if status is not None and status >= 400:
        logger.warning("Page %s answered HTTP %d, mirroring rendered content anyway", url, status)
    logger.info("Page loaded for mirroring: %s", url)
    return RenderedDocument(url=url, html=html, status=status)
