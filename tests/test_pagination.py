"""
tests/test_pagination.py

Unit tests for the pagination driver against fake pages.
"""

from __future__ import annotations

import asyncio

from pricescout.scraping.config.models import ScrapingConfig, ScrapingField
from pricescout.scraping.pagination import PaginationDriver
from tests.fakes import FakePage

FIELDS = (ScrapingField(label="url", css="a", attr="href", unique_key=True),)


def _config(mode: str) -> ScrapingConfig:
    return ScrapingConfig(
        start_url="https://shop.example.com/tools",
        list_selector=".card",
        fields=FIELDS,
        pagination_mode=mode,
        pagination_next="a.next" if mode == "click" else None,
    )


def test_click_advances_until_next_disappears() -> None:
    page = FakePage(["<p>1</p>", "<p>2</p>"])
    driver = PaginationDriver(settle_delay_ms=0)

    assert asyncio.run(driver.advance(page, _config("click"))) is True
    assert page.index == 1
    assert asyncio.run(driver.advance(page, _config("click"))) is False
    assert page.clicks == 1


def test_scroll_advances_while_height_grows() -> None:
    page = FakePage(["<p>1</p>", "<p>2</p>"])
    driver = PaginationDriver(settle_delay_ms=0)

    assert asyncio.run(driver.advance(page, _config("scroll"))) is True
    assert asyncio.run(driver.advance(page, _config("scroll"))) is False
    assert page.scrolls == 2


def test_mode_none_never_advances() -> None:
    page = FakePage(["<p>1</p>", "<p>2</p>"])

    assert asyncio.run(PaginationDriver(settle_delay_ms=0).advance(page, _config("none"))) is False
    assert page.index == 0
