# page_mirror/metadata.py
"""
Plain HTTP snapshot of each page, with optional structural metadata.

Runs before mirroring: one GET per URL with aiohttp, the document is parsed
with BeautifulSoup, re-serialized to ``<root>/<host>.html`` and, when asked,
summarized as :class:`SiteMetadata` (link and image counts plus fetch time).
"""
from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup

from page_mirror.config import MirrorConfig
from page_mirror.logger import get_logger
from page_mirror.utils import extract_host, is_valid_url
from page_mirror.writer import atomic_write_bytes

__all__ = (
    "SiteMetadata",
    "SnapshotResult",
    "parse_metadata",
    "fetch_page",
    "save_snapshot",
    "fetch_and_parse",
    "collect_snapshots",
)

logger = get_logger("metadata")


@dataclass(slots=True)
class SiteMetadata:
    """Structural summary of a fetched page."""

    site: str
    num_links: int
    images: int
    last_fetch: str

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SnapshotResult:
    """Outcome of the plain fetch for one URL."""

    url: str
    path: Optional[Path] = None
    metadata: Optional[SiteMetadata] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.path is not None


def parse_metadata(url: str, soup: BeautifulSoup, fetched_at: Optional[datetime] = None) -> SiteMetadata:
    """Count ``<a>`` and ``<img>`` elements; *fetched_at* defaults to now (UTC)."""
    moment = fetched_at or datetime.now(timezone.utc)
    return SiteMetadata(
        site=url,
        num_links=len(soup.find_all("a")),
        images=len(soup.find_all("img")),
        last_fetch=format_datetime(moment.astimezone(timezone.utc), usegmt=True),
    )


async def fetch_page(session: ClientSession, url: str) -> str:
    """GET *url* and return the decoded body; non-2xx statuses raise ``ClientResponseError``."""
    async with session.get(url) as resp:
        resp.raise_for_status()
        return await resp.text()


async def save_snapshot(output_root: Union[str, Path], url: str, html: str) -> Path:
    """Write *html* to ``<output_root>/<host>.html`` and return the path."""
    path = Path(output_root) / f"{extract_host(url)}.html"
    await asyncio.to_thread(atomic_write_bytes, path, html.encode("utf-8"))
    return path


async def fetch_and_parse(
    session: ClientSession,
    url: str,
    output_root: Union[str, Path],
    with_metadata: bool = False,
) -> SnapshotResult:
    """Fetch, optionally summarize, and save one page. Errors are logged and returned."""
    if not is_valid_url(url):
        logger.info("Invalid URL skipped: %s", url)
        return SnapshotResult(url=url, error="invalid URL")

    logger.info("Processing URL: %s", url)
    result = SnapshotResult(url=url)
    try:
        html = await fetch_page(session, url)
        logger.info("Data fetched for URL: %s", url)
        soup = BeautifulSoup(html, "html.parser")
        if with_metadata:
            result.metadata = parse_metadata(url, soup)
            logger.info("Metadata: %s", result.metadata.as_dict())
        result.path = await save_snapshot(output_root, url, str(soup))
    except (ClientError, asyncio.TimeoutError) as exc:
        result.error = str(exc) or type(exc).__name__
        logger.error("An error occurred while fetching %s: %s", url, result.error)
        return result
    except OSError as exc:
        logger.error("Failed to save snapshot for %s: %s", url, exc)
        result.error = str(exc)
        return result

    logger.info("Content saved: %s", result.path)
    return result


async def collect_snapshots(
    urls: Sequence[str],
    config: MirrorConfig,
    with_metadata: bool = False,
) -> List[SnapshotResult]:
    """Snapshot every URL concurrently over one shared session."""
    headers = {"User-Agent": config.user_agent} if config.user_agent else None
    async with ClientSession(timeout=ClientTimeout(total=config.timeout), headers=headers) as session:
        outcomes = await asyncio.gather(
            *(fetch_and_parse(session, url, config.output_dir, with_metadata) for url in urls),
            return_exceptions=True,
        )

    results: List[SnapshotResult] = []
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Unexpected error while fetching %s: %r", url, outcome)
            outcome = SnapshotResult(url=url, error=repr(outcome))
        results.append(outcome)
    return results
