# page_mirror/mirror.py
"""
Mirror job: render one page, save it, discover its assets and save them.

Every failure is turned into a result object at the smallest scope: a broken
asset becomes a failed :class:`AssetResult`, a broken page a failed
:class:`MirrorResult`. Nothing raised here should reach sibling jobs.
"""
from __future__ import annotations

import asyncio
from typing import List

from playwright.async_api import Error as PlaywrightError

from page_mirror.browser import AssetFetcher, BrowserPool, describe_error, discover_assets, render_page
from page_mirror.config import MirrorConfig
from page_mirror.errors import InvalidURLError, MirrorError, RenderError
from page_mirror.logger import get_logger
from page_mirror.models import AssetReference, AssetResult, MirrorResult, MirrorTarget
from page_mirror.utils import remove_duplicates
from page_mirror.writer import MirrorWriter

__all__ = ["mirror_page", "mirror_asset"]

logger = get_logger("mirror")


async def mirror_asset(
    fetcher: AssetFetcher,
    writer: MirrorWriter,
    target: MirrorTarget,
    ref: AssetReference,
) -> AssetResult:
    """Fetch and write a single asset; failures are returned, not raised."""
    try:
        data = await fetcher.fetch(ref, referer=target.url)
        path = await writer.write_asset(target, ref.url, data)
    except MirrorError as exc:
        logger.error("Failed to download asset: %s (%s)", ref.url, exc.reason)
        return AssetResult(reference=ref, error=exc)
    return AssetResult(reference=ref, path=path)


async def _mirror_assets(
    pool: BrowserPool,
    writer: MirrorWriter,
    target: MirrorTarget,
    refs: List[AssetReference],
    config: MirrorConfig,
) -> List[AssetResult]:
    fetcher = AssetFetcher(pool, config)
    outcomes = await asyncio.gather(
        *(mirror_asset(fetcher, writer, target, ref) for ref in refs),
        return_exceptions=True,
    )
    results: List[AssetResult] = []
    for ref, outcome in zip(refs, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Unexpected error on asset %s: %r", ref.url, outcome)
            outcome = AssetResult(reference=ref, error=MirrorError(ref.url, repr(outcome), cause=outcome))
        results.append(outcome)
    return results


async def mirror_page(
    url: str,
    pool: BrowserPool,
    writer: MirrorWriter,
    config: MirrorConfig,
) -> MirrorResult:
    """Run one mirror job: render → write page → discover → fetch/write assets."""
    result = MirrorResult(url=url)
    try:
        target = writer.target_for(url)
    except InvalidURLError as exc:
        logger.warning("Invalid URL skipped: %s", url)
        result.error = exc
        return result

    logger.info("Starting mirroring for URL: %s", url)
    try:
        async with pool.acquire_page() as page:
            document = await render_page(page, url, config)
            result.page_path = await writer.write_page(target, document.html)
            try:
                refs = await discover_assets(page)
            except RenderError as exc:
                # the page file is already written; mirror it without assets
                logger.error("Asset discovery failed for %s: %s", url, exc.reason)
                refs = []
    except MirrorError as exc:
        logger.error("Mirroring failed for %s: %s", url, exc.describe())
        result.error = exc
        return result
    except PlaywrightError as exc:
        reason = describe_error(exc)
        logger.error("Mirroring failed for %s: %s", url, reason)
        result.error = RenderError(url, reason, cause=exc)
        return result

    refs = remove_duplicates(refs)
    if refs:
        result.assets = await _mirror_assets(pool, writer, target, refs, config)

    logger.info(
        "Mirroring completed for URL: %s (%d assets saved, %d failed)",
        url,
        len(result.saved_assets),
        len(result.failed_assets),
    )
    return result
