# File: page_mirror/engine.py
"""page_mirror.engine: оркестрация пакета зеркалирования и сводный отчёт."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import List, Optional, Sequence

from page_mirror.aggregator import BatchReport, aggregate_results
from page_mirror.browser import BrowserPool, describe_error
from page_mirror.config import MirrorConfig, load_config
from page_mirror.errors import MirrorError, RenderError
from page_mirror.logger import logger
from page_mirror.metadata import collect_snapshots
from page_mirror.mirror import mirror_page
from page_mirror.models import MirrorResult
from page_mirror.writer import MirrorWriter

__all__ = ["BatchState", "MirrorBatch", "run_batch", "process", "Engine"]


class BatchState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"


class MirrorBatch:
    """
    Пакет заданий зеркалирования: по одному заданию на URL, все параллельно.

    Один браузер на весь пакет; если пул не передан, он создаётся и
    гарантированно закрывается после завершения всех заданий.
    """

    def __init__(
        self,
        urls: Sequence[str],
        config: MirrorConfig,
        *,
        pool: Optional[BrowserPool] = None,
        writer: Optional[MirrorWriter] = None,
    ) -> None:
        self.urls = list(urls)
        self.config = config
        self.state = BatchState.PENDING
        self.results: List[MirrorResult] = []
        self._pool = pool
        self._writer = writer or MirrorWriter(
            config.output_dir, keep_query_variants=config.keep_query_variants
        )

    async def run(self) -> List[MirrorResult]:
        """Запускает все задания и ждёт завершения каждого; никогда не падает целиком."""
        if self.state is not BatchState.PENDING:
            raise RuntimeError(f"batch already {self.state.value}")
        self.state = BatchState.RUNNING
        logger.info("Starting mirroring process for %d URL(s)...", len(self.urls))
        try:
            if self._pool is not None:
                self.results = await self._run_jobs(self._pool)
            else:
                self.results = await self._run_with_own_pool()
        finally:
            self.state = BatchState.COMPLETED
        logger.info(
            "Mirroring process completed: %d/%d pages mirrored",
            sum(1 for r in self.results if r.ok),
            len(self.results),
        )
        return self.results

    async def _run_with_own_pool(self) -> List[MirrorResult]:
        pool = BrowserPool(self.config)
        try:
            await pool.start()
        except Exception as exc:  # driver missing or browser not installed
            reason = f"browser launch failed: {describe_error(exc)}"
            logger.error("%s", reason)
            return [MirrorResult(url=url, error=RenderError(url, reason, cause=exc)) for url in self.urls]
        try:
            return await self._run_jobs(pool)
        finally:
            await pool.close()

    async def _run_jobs(self, pool: BrowserPool) -> List[MirrorResult]:
        outcomes = await asyncio.gather(
            *(mirror_page(url, pool, self._writer, self.config) for url in self.urls),
            return_exceptions=True,
        )
        results: List[MirrorResult] = []
        for url, outcome in zip(self.urls, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Unexpected error while mirroring %s: %r", url, outcome)
                outcome = MirrorResult(url=url, error=MirrorError(url, repr(outcome), cause=outcome))
            results.append(outcome)
        return results


async def run_batch(
    urls: Sequence[str],
    config: MirrorConfig,
    *,
    pool: Optional[BrowserPool] = None,
) -> List[MirrorResult]:
    """Зеркалирует все URL одним пакетом и возвращает результаты в порядке входа."""
    return await MirrorBatch(urls, config, pool=pool).run()


async def process(
    urls: Sequence[str],
    config: MirrorConfig,
    *,
    mirror: bool = False,
    metadata: bool = False,
) -> BatchReport:
    """Сначала простые снимки всех URL, затем (по флагу) зеркалирование."""
    logger.info("Starting processing with URLs: %s", list(urls))
    snapshots = await collect_snapshots(urls, config, with_metadata=metadata)
    results = await run_batch(urls, config) if mirror else []
    return aggregate_results(results, snapshots)


class Engine:
    """Синхронный фасад для CLI и встраивания: конфиг → пакет → отчёт."""

    @staticmethod
    def load_config(path: Optional[str]) -> MirrorConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(self, config: MirrorConfig) -> None:
        self.config = config

    def start(self, urls: Sequence[str], *, mirror: bool = True, metadata: bool = False) -> BatchReport:
        """Запускает обработку пакета в новом цикле событий и возвращает отчёт."""
        try:
            return asyncio.run(process(urls, self.config, mirror=mirror, metadata=metadata))
        except Exception as exc:
            logger.error("Processing failed: %s", exc)
            raise
