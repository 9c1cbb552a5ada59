# File: tests/test_cli.py
"""Тесты для CLI (`page_mirror.cli`) с использованием click.testing.CliRunner.
Проверяют команды `fetch`, `config`, `--version`, а также обработку ошибок.
"""
import json
import sys

import pytest
from click.testing import CliRunner

from page_mirror.aggregator import BatchReport, aggregate_results
from page_mirror.cli import cli
from page_mirror.errors import AssetFetchError, RenderError
from page_mirror.logger import init_logging
from page_mirror.models import AssetKind, AssetReference, AssetResult, MirrorResult

cli_module = sys.modules["page_mirror.cli"]


@pytest.fixture(autouse=True)
def patch_process(monkeypatch):
    """Патчим process, чтобы не ходить в сеть и не запускать браузер."""
    calls = []

    async def fake_process(urls, cfg, *, mirror=False, metadata=False):
        calls.append({"urls": urls, "config": cfg, "mirror": mirror, "metadata": metadata})
        return BatchReport(pages=[{"url": urls[0], "ok": True, "path": "x", "error": None}])

    monkeypatch.setattr(cli_module, "process", fake_process)
    return calls


@pytest.fixture(autouse=True)
def restore_logging():
    """CLI rebinds the logger to the runner streams; restore console handlers afterwards."""
    yield
    init_logging()


@pytest.fixture()
def cfg_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(json.dumps({"output_dir": str(tmp_path / "mirrors"), "timeout": 5}), encoding="utf-8")
    return path


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "PageMirror" in result.output


def test_show_config(cfg_file, tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["output_dir"] == str(tmp_path / "mirrors")
    assert data["timeout"] == 5.0


def test_bad_config_reports_error(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("timeout: -3", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(bad), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_fetch_flags_and_summary(cfg_file, patch_process):
    runner = CliRunner()
    result = runner.invoke(
        cli, ["--config", str(cfg_file), "fetch", "https://example.com", "https://example.org", "-m", "--mirror"]
    )
    assert result.exit_code == 0
    assert patch_process[0]["urls"] == ["https://example.com", "https://example.org"]
    assert patch_process[0]["mirror"] is True
    assert patch_process[0]["metadata"] is True
    assert "Pages mirrored: 1/1" in result.output


def test_fetch_defaults_to_no_mirror(cfg_file, patch_process):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "fetch", "https://example.com"])
    assert result.exit_code == 0
    assert patch_process[0]["mirror"] is False
    assert patch_process[0]["metadata"] is False


def test_fetch_output_dir_override(cfg_file, tmp_path, patch_process):
    runner = CliRunner()
    out = tmp_path / "elsewhere"
    result = runner.invoke(cli, ["--config", str(cfg_file), "fetch", "https://example.com", "-o", str(out)])
    assert result.exit_code == 0
    assert patch_process[0]["config"].output_dir == out


def test_fetch_requires_urls(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "fetch"])
    assert result.exit_code != 0


def test_fetch_json_and_html_files(cfg_file, tmp_path):
    out_json = tmp_path / "out.json"
    out_html = tmp_path / "out.html"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--config", str(cfg_file), "fetch", "https://example.com", "--json", str(out_json), "--html", str(out_html)],
    )
    assert result.exit_code == 0
    assert f"JSON report: {out_json}" in result.output
    assert json.loads(out_json.read_text(encoding="utf-8"))["pages"][0]["url"] == "https://example.com"
    assert "PageMirror report" in out_html.read_text(encoding="utf-8")


def test_fetch_processing_error(cfg_file, monkeypatch):
    async def broken(urls, cfg, *, mirror=False, metadata=False):
        raise RuntimeError("event loop exploded")

    monkeypatch.setattr(cli_module, "process", broken)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "fetch", "https://example.com"])
    assert result.exit_code == 1
    assert "event loop exploded" in result.output


def test_fetch_metadata_is_printed(cfg_file, monkeypatch):
    async def with_snapshot(urls, cfg, *, mirror=False, metadata=False):
        return BatchReport(
            snapshots=[
                {
                    "url": urls[0],
                    "ok": True,
                    "path": "x.html",
                    "metadata": {"site": urls[0], "num_links": 3, "images": 2, "last_fetch": "now"},
                    "error": None,
                }
            ]
        )

    monkeypatch.setattr(cli_module, "process", with_snapshot)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "fetch", "https://example.com", "-m"])
    assert result.exit_code == 0
    assert "snapshots: 1/1" in result.output
    assert '"num_links": 3' in result.output


def test_fetch_json_report_with_failed_page_and_asset(cfg_file, tmp_path, monkeypatch):
    script = AssetReference("https://example.com/app.js", AssetKind.SCRIPT)

    async def failing_batch(urls, cfg, *, mirror=False, metadata=False):
        results = [
            MirrorResult(
                url=urls[0],
                page_path=tmp_path / "example.com" / "index.html",
                assets=[AssetResult(reference=script, error=AssetFetchError(script.url, "HTTP 503"))],
            ),
            MirrorResult(url=urls[1], error=RenderError(urls[1], "timed out after 5.0s")),
        ]
        return aggregate_results(results)

    monkeypatch.setattr(cli_module, "process", failing_batch)
    out_json = tmp_path / "report.json"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--config", str(cfg_file), "fetch", "https://example.com", "https://down.test", "--mirror", "-j", str(out_json)],
    )

    assert result.exit_code == 0, result.output
    assert "Pages mirrored: 1/2" in result.output
    data = json.loads(out_json.read_text(encoding="utf-8"))
    assert [f["stage"] for f in data["failures"]] == ["render", "asset_fetch"]
    assert data["totals"]["assets_failed"] == 1
