# File: tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest
from fakes import FakeResource

from page_mirror.config import MirrorConfig
from page_mirror.writer import MirrorWriter


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "browser: needs a real Chromium installed via `playwright install chromium`",
    )


# --------------------------------------------------------------------------- #
#                                  Fixtures                                   #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def output_root(tmp_path) -> Path:
    root = tmp_path / "mirrors"
    root.mkdir()
    return root


@pytest.fixture()
def mirror_config(output_root) -> MirrorConfig:
    """
    Return a MirrorConfig writing under a temporary output root.
    """
    return MirrorConfig(output_dir=output_root, timeout=2.0, asset_concurrency=4)


@pytest.fixture()
def writer(mirror_config) -> MirrorWriter:
    return MirrorWriter(mirror_config.output_dir)


@pytest.fixture()
def example_site() -> Dict[str, FakeResource]:
    """https://example.com with one image and one external script (plus an inline one)."""
    html = (
        '<html><head><script>var inline = 1;</script>'
        '<script src="https://example.com/app.js"></script></head>'
        '<body><img src="https://example.com/logo.png"></body></html>'
    )
    return {
        "https://example.com": FakeResource(
            html=html,
            assets=[("script", "https://example.com/app.js"), ("image", "https://example.com/logo.png")],
        ),
        "https://example.com/app.js": FakeResource(body=b"console.log('app');"),
        "https://example.com/logo.png": FakeResource(body=b"\x89PNG\r\n\x1a\nlogo"),
    }
