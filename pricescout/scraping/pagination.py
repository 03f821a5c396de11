"""
Pagination driver: decides whether another page of results exists and moves to it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pricescout.scraping.config.models import PaginationMode, ScrapingConfig
from pricescout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

SCROLL_HEIGHT_SCRIPT = "() => document.body.scrollHeight"
SCROLL_TO_BOTTOM_SCRIPT = "() => window.scrollTo(0, document.body.scrollHeight)"


class PaginationDriver:
    """
    Advances a page according to the config's pagination mode.

    Page and item ceilings are enforced by the caller, not here. Browser
    errors propagate.
    """

    def __init__(self, *, settle_delay_ms: int = 2_000) -> None:
        self._settle_delay_ms = settle_delay_ms

    async def advance(self, page: Any, config: ScrapingConfig) -> bool:
        if config.pagination_mode is PaginationMode.CLICK:
            return await self._click_next(page, config.pagination_next or "")
        if config.pagination_mode is PaginationMode.SCROLL:
            return await self._scroll(page)
        return False

    async def _click_next(self, page: Any, selector: str) -> bool:
        handle = await page.query_selector(selector)
        if handle is None:
            log_event(logger, logging.INFO, "pagination_exhausted", mode="click", selector=selector)
            return False
        await handle.click()
        await self._settle()
        return True

    async def _scroll(self, page: Any) -> bool:
        before = int(await page.evaluate(SCROLL_HEIGHT_SCRIPT))
        await page.evaluate(SCROLL_TO_BOTTOM_SCRIPT)
        await self._settle()
        after = int(await page.evaluate(SCROLL_HEIGHT_SCRIPT))
        grew = after > before
        if not grew:
            log_event(logger, logging.INFO, "pagination_exhausted", mode="scroll", scroll_height=after)
        return grew

    async def _settle(self) -> None:
        await asyncio.sleep(self._settle_delay_ms / 1000)
