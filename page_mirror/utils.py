# File: page_mirror/utils.py
"""page_mirror.utils: URL validation and small helpers shared by the pipeline."""

from __future__ import annotations

from typing import Any, Collection, Hashable, List, Sequence, TypeVar
from urllib.parse import urlsplit

from page_mirror.logger import logger

__all__: Sequence[str] = (
    "FETCHABLE_PREFIXES",
    "is_valid_url",
    "is_fetchable_asset_url",
    "extract_host",
    "remove_duplicates",
)

_T = TypeVar("_T", bound=Hashable)

#: Asset URLs must start with one of these to be fetched at all.
FETCHABLE_PREFIXES: Sequence[str] = ("http://", "https://")


def is_valid_url(url: Any) -> bool:
    """Return True if *url* is an absolute URL with a scheme and an authority.

    Never raises: empty strings, non-strings and unparseable input give False.
    """
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlsplit(url.strip())
        # accessing .port validates the numeric part of the authority
        parsed.port
    except ValueError as exc:
        logger.debug("URL rejected %r: %s", url, exc)
        return False
    valid = bool(parsed.scheme) and bool(parsed.netloc) and not any(c.isspace() for c in parsed.netloc)
    logger.debug("URL valid: %s -> %s", url, valid)
    return valid


def is_fetchable_asset_url(url: Any) -> bool:
    """Stricter check for asset URLs: only literal ``http://`` / ``https://`` prefixes pass."""
    return isinstance(url, str) and url.startswith(FETCHABLE_PREFIXES)


def extract_host(url: str) -> str:
    """Return the authority of *url* (host[:port]) lower-cased, without userinfo."""
    netloc = urlsplit(url).netloc
    return netloc.rpartition("@")[2].lower()


def remove_duplicates(urls: Collection[_T]) -> List[_T]:
    """Remove duplicates (URLs or asset references) while keeping the original order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
