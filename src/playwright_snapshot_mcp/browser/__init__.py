"""
Browser control package

Owns the Playwright browser, its tabs and the configuration used to launch it.
"""

from .config import BrowserConfig, load_browser_config, parse_viewport_size
from .session import BrowserSession
from .tab import Tab

__all__ = [
    "BrowserConfig",
    "BrowserSession",
    "Tab",
    "load_browser_config",
    "parse_viewport_size",
]
