# File: tests/test_engine.py
from __future__ import annotations

import pytest
from fakes import FakePool, FakeResource

import page_mirror.engine as engine_module
import page_mirror.mirror as mirror_module
from page_mirror.engine import BatchState, Engine, MirrorBatch, run_batch
from page_mirror.errors import InvalidURLError, MirrorError, RenderError


def _page(html: str) -> FakeResource:
    return FakeResource(html=html)


@pytest.mark.asyncio()
async def test_failure_in_the_middle_does_not_stop_siblings(mirror_config, output_root):
    pool = FakePool(
        {
            "https://one.test": _page("<p>1</p>"),
            "https://two.test": FakeResource(error="net::ERR_NAME_NOT_RESOLVED at https://two.test"),
            "https://three.test": _page("<p>3</p>"),
        }
    )
    results = await run_batch(
        ["https://one.test", "https://two.test", "https://three.test"], mirror_config, pool=pool
    )

    assert [r.url for r in results] == ["https://one.test", "https://two.test", "https://three.test"]
    assert [r.ok for r in results] == [True, False, True]
    assert isinstance(results[1].error, RenderError)
    assert (output_root / "one.test" / "index.html").exists()
    assert (output_root / "three.test" / "index.html").exists()
    assert not (output_root / "two.test").exists()


@pytest.mark.asyncio()
async def test_batch_state_machine(mirror_config):
    pool = FakePool({"https://one.test": _page("<p>1</p>")})
    batch = MirrorBatch(["https://one.test"], mirror_config, pool=pool)
    assert batch.state is BatchState.PENDING

    results = await batch.run()

    assert batch.state is BatchState.COMPLETED
    assert batch.results == results
    with pytest.raises(RuntimeError):
        await batch.run()


@pytest.mark.asyncio()
async def test_invalid_urls_are_skipped_individually(mirror_config, output_root):
    pool = FakePool({"https://one.test": _page("<p>1</p>")})
    results = await run_batch(["", "not a url", "https://one.test"], mirror_config, pool=pool)

    assert isinstance(results[0].error, InvalidURLError)
    assert isinstance(results[1].error, InvalidURLError)
    assert results[2].ok
    assert len(pool.pages) == 1


@pytest.mark.asyncio()
async def test_unexpected_job_error_is_contained(mirror_config, monkeypatch):
    real_mirror_page = mirror_module.mirror_page

    async def flaky(url, pool, writer, config):
        if "two" in url:
            raise KeyError("boom")
        return await real_mirror_page(url, pool, writer, config)

    monkeypatch.setattr(engine_module, "mirror_page", flaky)
    pool = FakePool({"https://one.test": _page("1"), "https://three.test": _page("3")})
    results = await run_batch(
        ["https://one.test", "https://two.test", "https://three.test"], mirror_config, pool=pool
    )

    assert [r.ok for r in results] == [True, False, True]
    assert type(results[1].error) is MirrorError
    assert "boom" in results[1].error.reason


@pytest.mark.asyncio()
async def test_jobs_run_concurrently(mirror_config):
    urls = [f"https://site{i}.test" for i in range(5)]
    pool = FakePool({url: _page(url) for url in urls})
    results = await run_batch(urls, mirror_config, pool=pool)
    assert all(r.ok for r in results)
    # all pages were checked out before any job finished writing
    assert pool.max_open_pages == len(urls)


class _BrokenPool:
    closed = False

    def __init__(self, config):
        self.config = config

    async def start(self):
        raise RuntimeError("Executable doesn't exist at /ms-playwright/chromium")

    async def close(self):
        _BrokenPool.closed = True


class _RecordingPool(FakePool):
    instances = []

    def __init__(self, config):
        super().__init__({"https://one.test": FakeResource(html="<p>1</p>")})
        self.started = False
        self.closed = False
        _RecordingPool.instances.append(self)

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True


@pytest.mark.asyncio()
async def test_browser_launch_failure_completes_batch(mirror_config, monkeypatch):
    monkeypatch.setattr(engine_module, "BrowserPool", _BrokenPool)
    batch = MirrorBatch(["https://one.test", "https://two.test"], mirror_config)

    results = await batch.run()

    assert batch.state is BatchState.COMPLETED
    assert [r.ok for r in results] == [False, False]
    assert all("browser launch failed" in r.error.reason for r in results)


@pytest.mark.asyncio()
async def test_owned_pool_is_closed_after_batch(mirror_config, monkeypatch):
    _RecordingPool.instances.clear()
    monkeypatch.setattr(engine_module, "BrowserPool", _RecordingPool)

    results = await run_batch(["https://one.test"], mirror_config)

    pool = _RecordingPool.instances[0]
    assert results[0].ok
    assert pool.started and pool.closed


def test_engine_facade_runs_snapshot_then_mirror(mirror_config, monkeypatch):
    calls = []

    async def fake_snapshots(urls, config, with_metadata=False):
        calls.append(("snapshots", list(urls), with_metadata))
        return []

    async def fake_batch(urls, config):
        calls.append(("mirror", list(urls)))
        return []

    monkeypatch.setattr(engine_module, "collect_snapshots", fake_snapshots)
    monkeypatch.setattr(engine_module, "run_batch", fake_batch)

    report = Engine(mirror_config).start(["https://one.test"], mirror=True, metadata=True)

    assert calls == [("snapshots", ["https://one.test"], True), ("mirror", ["https://one.test"])]
    assert report.pages == []

    calls.clear()
    Engine(mirror_config).start(["https://one.test"], mirror=False)
    assert calls == [("snapshots", ["https://one.test"], False)]
