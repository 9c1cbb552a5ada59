# page_mirror/browser/discovery.py
"""
Asset discovery inside the live document.

Runs in the page so relative ``src``/``href`` values come back resolved by the
browser itself (base element, redirects, script-injected nodes included).
"""
from __future__ import annotations

from typing import List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from page_mirror.browser.pool import describe_error
from page_mirror.errors import RenderError
from page_mirror.logger import get_logger
from page_mirror.models import AssetKind, AssetReference

__all__ = ["discover_assets", "COLLECT_ASSETS_JS"]

logger = get_logger("discovery")

COLLECT_ASSETS_JS = """
() => {
  const found = [];
  document.querySelectorAll('img, link[rel~="stylesheet" i], script').forEach((el) => {
    if (el instanceof HTMLImageElement && el.src) {
      found.push(["image", el.src]);
    } else if (el instanceof HTMLLinkElement && el.href) {
      found.push(["stylesheet", el.href]);
    } else if (el instanceof HTMLScriptElement && el.src) {
      found.push(["script", el.src]);
    }
  });
  return found;
}
"""


async def discover_assets(page: Page) -> List[AssetReference]:
    """Return images, stylesheets and external scripts in document order.

    Duplicates are kept; inline scripts are skipped.
    """
    try:
        raw = await page.evaluate(COLLECT_ASSETS_JS)
    except PlaywrightError as exc:
        raise RenderError(page.url, f"asset discovery failed: {describe_error(exc)}", cause=exc) from exc

    refs: List[AssetReference] = []
    for kind, url in raw or []:
        refs.append(AssetReference(url=url, kind=AssetKind(kind)))
    logger.debug("Discovered %d asset references on %s", len(refs), page.url)
    return refs
