# File: page_mirror/report/__init__.py
"""page_mirror.report: Генерация отчётов (JSON и HTML), используемые CLI и тестами."""

from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_html"]
