"""
tests/test_navigation.py

Unit tests for page loading and settling.
"""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricescout.scraping.errors import NavigationTimeout
from pricescout.scraping.navigation import NavigationController
from tests.fakes import FakePage


def test_goto_waits_for_dom_content_loaded() -> None:
    page = FakePage(["<p></p>"])

    asyncio.run(NavigationController(timeout_ms=1234).goto(page, "https://shop.example.com/"))

    assert page.goto_calls == [("https://shop.example.com/", "domcontentloaded", 1234)]


def test_goto_timeout_is_typed() -> None:
    page = FakePage(["<p></p>"], goto_error=PlaywrightTimeoutError("Timeout 10ms exceeded."))

    with pytest.raises(NavigationTimeout) as excinfo:
        asyncio.run(NavigationController().goto(page, "https://shop.example.com/", timeout_ms=10))

    assert excinfo.value.url == "https://shop.example.com/"
    assert excinfo.value.timeout_ms == 10


def test_settle_reports_timeout_without_raising() -> None:
    controller = NavigationController(settle_timeout_ms=5)

    assert asyncio.run(controller.settle(FakePage(["<p></p>"]))) is True
    assert asyncio.run(controller.settle(FakePage(["<p></p>"], settle_times_out=True))) is False


def test_scroll_to_bottom_incrementally_wheels_each_step() -> None:
    page = FakePage(["<p></p>"])

    asyncio.run(NavigationController().scroll_to_bottom_incrementally(page, steps=3, step_delay_ms=0))

    assert page.mouse.wheel_calls == [(0, 200), (0, 200), (0, 200)]
