"""Browser lifecycle management and test helpers."""

from .manager import BrowserManager

__all__ = ["BrowserManager"]
