"""Exception hierarchy for the mirroring pipeline.

Every error carries the offending URL (or path) so the caller can report it
without extra bookkeeping.
"""
from __future__ import annotations

from typing import Optional

__all__ = [
    "MirrorError",
    "InvalidURLError",
    "RenderError",
    "AssetFetchError",
    "FilesystemError",
]


class MirrorError(Exception):
    """Base class: one item of a batch failed."""

    kind = "mirror"

    def __init__(self, target: str, reason: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{target}: {reason}")
        self.target = target
        self.reason = reason
        self.cause = cause

    def __reduce__(self):
        # copy/pickle rebuild from self.args, which holds only the message
        return _rebuild_error, (type(self), self.target, self.reason, self.cause)

    def describe(self) -> str:
        return f"{self.kind}: {self.reason}"


class InvalidURLError(MirrorError):
    """Input string is not an absolute URL."""

    kind = "invalid_url"


class RenderError(MirrorError):
    """Page failed to load in the browser (timeout, DNS, TLS, crash)."""

    kind = "render"


class AssetFetchError(MirrorError):
    """Asset is not fetchable: wrong scheme, network error, no or bad response."""

    kind = "asset_fetch"


class FilesystemError(MirrorError):
    """Directory creation or file write failed."""

    kind = "filesystem"


def _rebuild_error(cls, target, reason, cause):
    return cls(target, reason, cause=cause)
