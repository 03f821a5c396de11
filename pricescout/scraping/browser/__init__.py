"""
Browser session and rendering helpers.
"""

from pricescout.scraping.browser.rendered_dom import render_dom
from pricescout.scraping.browser.session import (
    BrowserSessionManager,
    SessionHandle,
    build_remote_endpoint,
)

__all__ = ["BrowserSessionManager", "SessionHandle", "build_remote_endpoint", "render_dom"]
