# page_mirror/__init__.py
"""
PageMirror package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

from .cli import cli as main_cli  # noqa: E402
