# File: page_mirror/aggregator.py
"""page_mirror.aggregator: Сводный отчёт по пакету зеркалирования."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TypedDict, Union

from page_mirror.metadata import SnapshotResult
from page_mirror.models import MirrorResult


class PageInfo(TypedDict, total=False):
    """Итог зеркалирования одной страницы."""

    url: str
    ok: bool
    path: Optional[str]
    error: Optional[str]
    assets_saved: int
    assets_failed: int


class AssetInfo(TypedDict, total=False):
    """Итог загрузки одного ресурса страницы."""

    page: str
    url: str
    kind: str
    ok: bool
    path: Optional[str]
    error: Optional[str]


class SnapshotInfo(TypedDict, total=False):
    """Итог простой загрузки страницы (снимок и метаданные)."""

    url: str
    ok: bool
    path: Optional[str]
    metadata: Optional[Dict[str, Any]]
    error: Optional[str]


class FailureInfo(TypedDict):
    """Одна ошибка: этап, URL или путь, причина."""

    stage: str
    url: str
    reason: str


@dataclass(slots=True)
class BatchReport:
    """Результаты пакета: страницы, ресурсы, снимки и список ошибок."""

    pages: List[PageInfo] = field(default_factory=list)
    assets: List[AssetInfo] = field(default_factory=list)
    snapshots: List[SnapshotInfo] = field(default_factory=list)
    failures: List[FailureInfo] = field(default_factory=list)

    raw_results: Union[List[Any], None] = None

    @property
    def totals(self) -> Dict[str, int]:
        return {
            "pages": len(self.pages),
            "pages_ok": sum(1 for p in self.pages if p.get("ok")),
            "assets_saved": sum(1 for a in self.assets if a.get("ok")),
            "assets_failed": sum(1 for a in self.assets if not a.get("ok")),
            "snapshots_ok": sum(1 for s in self.snapshots if s.get("ok")),
            "failures": len(self.failures),
        }

    def as_dict(self) -> Dict[str, Any]:
        """Словарь для сериализации, без сырых данных."""
        return {
            "pages": [dict(p) for p in self.pages],
            "assets": [dict(a) for a in self.assets],
            "snapshots": [dict(s) for s in self.snapshots],
            "failures": [dict(f) for f in self.failures],
            "totals": self.totals,
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление BatchReport."""
        return json.dumps(self.as_dict(), ensure_ascii=False, indent=2 if pretty else None)


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _aggregate_pages(results: Sequence[MirrorResult]) -> List[PageInfo]:
    """Преобразует результаты заданий в строки страниц."""
    return [
        {
            "url": r.url,
            "ok": r.ok,
            "path": _str_or_none(r.page_path),
            "error": r.error.describe() if r.error else None,
            "assets_saved": len(r.saved_assets),
            "assets_failed": len(r.failed_assets),
        }
        for r in results
    ]


def _aggregate_assets(results: Sequence[MirrorResult]) -> List[AssetInfo]:
    """Разворачивает ресурсы всех страниц в плоский список."""
    assets: List[AssetInfo] = []
    for r in results:
        for a in r.assets:
            assets.append(
                {
                    "page": r.url,
                    "url": a.reference.url,
                    "kind": a.reference.kind.value,
                    "ok": a.ok,
                    "path": _str_or_none(a.path),
                    "error": a.error.reason if a.error else None,
                }
            )
    return assets


def _aggregate_snapshots(snapshots: Sequence[SnapshotResult]) -> List[SnapshotInfo]:
    """Преобразует снимки и метаданные."""
    return [
        {
            "url": s.url,
            "ok": s.ok,
            "path": _str_or_none(s.path),
            "metadata": s.metadata.as_dict() if s.metadata else None,
            "error": s.error,
        }
        for s in snapshots
    ]


def _aggregate_failures(
    results: Sequence[MirrorResult], snapshots: Sequence[SnapshotResult]
) -> List[FailureInfo]:
    """Собирает все ошибки в порядке: снимки, страницы, ресурсы."""
    failures: List[FailureInfo] = []
    for s in snapshots:
        if s.error:
            failures.append({"stage": "snapshot", "url": s.url, "reason": s.error})
    for r in results:
        if r.error:
            failures.append({"stage": r.error.kind, "url": r.url, "reason": r.error.reason})
    for r in results:
        for a in r.failed_assets:
            failures.append({"stage": a.error.kind, "url": a.reference.url, "reason": a.error.reason})
    return failures


def aggregate_results(
    results: Sequence[MirrorResult],
    snapshots: Sequence[SnapshotResult] = (),
) -> BatchReport:
    """Собирает все части отчёта в BatchReport."""
    report = BatchReport(raw_results=[*snapshots, *results])
    report.pages = _aggregate_pages(results)
    report.assets = _aggregate_assets(results)
    report.snapshots = _aggregate_snapshots(snapshots)
    report.failures = _aggregate_failures(results, snapshots)
    return report
