"""
Exception types raised by the scraping engine.
"""

from __future__ import annotations


class ScrapingError(Exception):
    """
    Base class for engine errors.
    """


class ConfigurationError(ScrapingError, ValueError):
    """
    A scraping configuration violates one of its invariants.
    """


class BrowserUnavailable(ScrapingError):
    """
    Neither the remote endpoint nor a local launch produced a browser session.
    """


class NavigationTimeout(ScrapingError):
    """
    A page did not reach its load milestone within the navigation timeout.
    """

    def __init__(self, url: str, timeout_ms: int) -> None:
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Navigation to {url} timed out after {timeout_ms}ms")


class RenderTimeout(ScrapingError):
    """
    The subprocess DOM renderer exceeded its hard timeout and was killed.
    """

    def __init__(self, url: str, timeout_seconds: float) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Rendering {url} exceeded {timeout_seconds:g}s; renderer killed")
