"""page_mirror.browser: Playwright-driven rendering, asset discovery and fetching."""

from .discovery import discover_assets
from .fetcher import AssetFetcher
from .pool import BrowserPool, describe_error
from .renderer import render_page

__all__ = ["BrowserPool", "AssetFetcher", "discover_assets", "render_page", "describe_error"]
