"""
Page loading, settling and lazy-load scrolling.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricescout.scraping.errors import NavigationTimeout
from pricescout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)


class NavigationController:
    """
    Thin wrapper over page navigation primitives. Does not retry.
    """

    def __init__(self, *, timeout_ms: int = 60_000, settle_timeout_ms: int = 10_000) -> None:
        self._timeout_ms = timeout_ms
        self._settle_timeout_ms = settle_timeout_ms

    async def goto(self, page: Any, url: str, timeout_ms: int | None = None) -> None:
        timeout = timeout_ms or self._timeout_ms
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(url, timeout) from exc
        log_event(logger, logging.DEBUG, "page_loaded", url=url)

    async def settle(self, page: Any, timeout_ms: int | None = None) -> bool:
        """
        Wait for network idle; a timeout is reported, not raised.
        """

        timeout = self._settle_timeout_ms if timeout_ms is None else timeout_ms
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout)
        except PlaywrightTimeoutError:
            log_event(logger, logging.INFO, "page_settle_timeout", timeout_ms=timeout)
            return False
        return True

    async def scroll_to_bottom_incrementally(
        self,
        page: Any,
        steps: int = 10,
        step_delay_ms: int = 100,
        step_px: int = 200,
    ) -> None:
        for _ in range(max(0, steps)):
            await page.mouse.wheel(0, step_px)
            await asyncio.sleep(step_delay_ms / 1000)

    async def wait_for_selector(self, page: Any, selector: str, timeout_ms: int = 10_000) -> bool:
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            log_event(logger, logging.INFO, "selector_wait_timeout", selector=selector, timeout_ms=timeout_ms)
            return False
        return True
