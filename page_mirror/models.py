# page_mirror/models.py
"""
Data models for the mirroring pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from page_mirror.errors import MirrorError


class AssetKind(str, Enum):
    """Element an asset reference was discovered from."""

    IMAGE = "image"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


@dataclass(slots=True, frozen=True)
class MirrorTarget:
    """One requested page: origin URL, its host and the per-host output directory."""

    url: str
    host: str
    output_dir: Path

    @property
    def index_path(self) -> Path:
        return self.output_dir / "index.html"


@dataclass(slots=True)
class RenderedDocument:
    """Serialized DOM of a page after the browser considered it loaded."""

    url: str
    html: str
    status: Optional[int] = None


@dataclass(slots=True, frozen=True)
class AssetReference:
    """Absolute URL of an image, stylesheet or script found in a rendered page."""

    url: str
    kind: AssetKind


@dataclass(slots=True)
class AssetResult:
    """Outcome of mirroring one asset: the written path or the error."""

    reference: AssetReference
    path: Optional[Path] = None
    error: Optional[MirrorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class MirrorResult:
    """Terminal outcome of one mirror job.

    Asset failures are carried in :attr:`assets` and never affect :attr:`ok`.
    """

    url: str
    page_path: Optional[Path] = None
    error: Optional[MirrorError] = None
    assets: List[AssetResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.page_path is not None

    @property
    def failed_assets(self) -> List[AssetResult]:
        return [a for a in self.assets if not a.ok]

    @property
    def saved_assets(self) -> List[AssetResult]:
        return [a for a in self.assets if a.ok]
