# page_mirror/writer.py
"""
Mirror writer: maps page and asset URLs to files under the output root.

Layout::

    <root>/<host>/index.html        the rendered page
    <root>/<host>/<asset URL path>  every fetched asset, path taken verbatim

Existing files are overwritten (last write wins). Each file is written to a
temporary sibling first and moved into place with :func:`os.replace`, so a
failed write never leaves a truncated file behind.
"""
from __future__ import annotations

import asyncio
import hashlib
import os
import tempfile
from pathlib import Path
from typing import Union
from urllib.parse import urlsplit

from page_mirror.errors import FilesystemError, InvalidURLError
from page_mirror.logger import get_logger
from page_mirror.models import MirrorTarget
from page_mirror.utils import extract_host, is_valid_url

__all__ = ["MirrorWriter", "atomic_write_bytes"]

logger = get_logger("writer")

#: file name used when an asset URL path names a directory ("/", "/img/")
DIRECTORY_INDEX_NAME = "index"


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write *data* to *path* via a temporary file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile("wb", dir=str(path.parent), prefix=".tmp-", delete=False) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
        # mkstemp creates 0600 files
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _store(path: Path, data: bytes) -> bool:
    created = not path.parent.is_dir()
    atomic_write_bytes(path, data)
    return created


class MirrorWriter:
    """Writes mirrored pages and assets below *output_root*."""

    def __init__(self, output_root: Union[str, Path], *, keep_query_variants: bool = False) -> None:
        self.output_root = Path(output_root)
        self.keep_query_variants = keep_query_variants

    def target_for(self, url: str) -> MirrorTarget:
        if not is_valid_url(url):
            raise InvalidURLError(url, "not an absolute URL")
        host = extract_host(url)
        return MirrorTarget(url=url, host=host, output_dir=self.output_root / host)

    def asset_path(self, target: MirrorTarget, asset_url: str) -> Path:
        """Destination of *asset_url* inside the host directory of *target*."""
        parts = urlsplit(asset_url)
        url_path = parts.path
        if not url_path or url_path.endswith("/"):
            url_path += DIRECTORY_INDEX_NAME
        dest = target.output_dir / url_path.lstrip("/")

        if self.keep_query_variants and parts.query:
            digest = hashlib.sha1(parts.query.encode("utf-8")).hexdigest()[:8]
            dest = dest.with_name(f"{dest.stem}-{digest}{dest.suffix}")

        root = target.output_dir.resolve()
        resolved = dest.resolve()
        if resolved == root or not resolved.is_relative_to(root):
            raise FilesystemError(asset_url, f"path escapes {target.output_dir}")
        return dest

    async def write_page(self, target: MirrorTarget, html: str) -> Path:
        path = target.index_path
        if await self._write(path, html.encode("utf-8"), target.url):
            logger.info("Directory created: %s", target.output_dir)
        logger.info("Main content saved: %s", path)
        return path

    async def write_asset(self, target: MirrorTarget, asset_url: str, data: bytes) -> Path:
        # resolve() touches the filesystem
        path = await asyncio.to_thread(self.asset_path, target, asset_url)
        await self._write(path, data, asset_url)
        logger.info("Asset saved: %s", path)
        return path

    async def _write(self, path: Path, data: bytes, source: str) -> bool:
        """Write in a worker thread; True when the parent directory had to be created."""
        try:
            return await asyncio.to_thread(_store, path, data)
        except OSError as exc:
            logger.error("Failed to write %s (from %s): %s", path, source, exc)
            raise FilesystemError(str(path), exc.strerror or str(exc), cause=exc) from exc
