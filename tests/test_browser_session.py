"""
tests/test_browser_session.py

Unit tests for browser session acquisition and teardown. All Playwright
objects are fakes; no browser is launched.
"""

from __future__ import annotations

import asyncio
import random

import pytest

from pricescout.scraping.browser.session import (
    BLOCKED_RESOURCE_TYPES,
    USER_AGENTS,
    BrowserSessionManager,
    build_remote_endpoint,
)
from pricescout.scraping.errors import BrowserUnavailable
from tests.fakes import FakeChromium, FakePlaywright, FakePlaywrightStarter, FakeRoute, fast_settings


def _manager(chromium: FakeChromium, **settings: object) -> tuple[BrowserSessionManager, FakePlaywright]:
    playwright = FakePlaywright(chromium)
    manager = BrowserSessionManager(
        settings=fast_settings(**settings),
        playwright_factory=lambda: FakePlaywrightStarter(playwright),
        rng=random.Random(7),
    )
    return manager, playwright


@pytest.mark.parametrize(
    ("value", "token", "expected"),
    [
        ("chrome.browserless.io", "abc", "wss://chrome.browserless.io/?token=abc"),
        ("chrome.browserless.io/", None, "wss://chrome.browserless.io/"),
        ("ws://localhost:3000/devtools", "ignored", "ws://localhost:3000/devtools"),
    ],
)
def test_build_remote_endpoint(value: str, token: str | None, expected: str) -> None:
    assert build_remote_endpoint(value, token) == expected


def test_remote_endpoint_is_preferred_and_borrowed() -> None:
    chromium = FakeChromium()
    manager, playwright = _manager(chromium, remote_browser_endpoint="chrome.example.io", remote_browser_token="t")

    async def scenario() -> None:
        handle = await manager.acquire()
        assert handle.source == "remote"
        assert handle.owned is False
        assert handle.user_agent in USER_AGENTS
        context = chromium.remote_browser.contexts[0]
        assert context.options["viewport"] == {"width": 1366, "height": 900}
        await manager.release(handle)
        assert context.closed is True
        assert chromium.remote_browser.closed is False

    asyncio.run(scenario())

    assert chromium.connect_calls[0][0] == "wss://chrome.example.io/?token=t"
    assert chromium.launch_calls == []
    assert playwright.stopped is True


def test_remote_failure_falls_back_to_local_launch() -> None:
    chromium = FakeChromium(remote_error=ConnectionError("refused"))
    manager, playwright = _manager(
        chromium,
        remote_browser_endpoint="chrome.example.io",
        chromium_executable_path="/usr/bin/chromium",
    )

    async def scenario() -> None:
        async with manager.session() as handle:
            assert handle.source == "local"
            assert handle.owned is True

    asyncio.run(scenario())

    assert len(chromium.launch_calls) == 1
    assert chromium.launch_calls[0]["executable_path"] == "/usr/bin/chromium"
    assert "--no-sandbox" in chromium.launch_calls[0]["args"]
    assert chromium.local_browser.closed is True
    assert playwright.stopped is True


def test_no_remote_configured_launches_locally() -> None:
    chromium = FakeChromium()
    manager, _ = _manager(chromium)

    async def scenario() -> None:
        async with manager.session() as handle:
            assert handle.owned is True

    asyncio.run(scenario())

    assert chromium.connect_calls == []
    assert chromium.launch_calls[0]["headless"] is True


def test_launch_failure_raises_browser_unavailable_and_stops_driver() -> None:
    chromium = FakeChromium(launch_error=RuntimeError("no chromium"))
    manager, playwright = _manager(chromium)

    with pytest.raises(BrowserUnavailable):
        asyncio.run(manager.acquire())

    assert playwright.stopped is True


def test_context_failure_releases_the_browser() -> None:
    chromium = FakeChromium()
    chromium.local_browser.context_error = RuntimeError("context crashed")
    manager, playwright = _manager(chromium)

    with pytest.raises(BrowserUnavailable, match="context"):
        asyncio.run(manager.acquire())

    assert chromium.local_browser.closed is True
    assert playwright.stopped is True


def test_session_releases_on_exception() -> None:
    chromium = FakeChromium()
    manager, playwright = _manager(chromium)

    async def scenario() -> None:
        async with manager.session():
            raise RuntimeError("job blew up")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())

    assert chromium.local_browser.closed is True
    assert playwright.stopped is True


def test_heavy_resources_are_blocked() -> None:
    chromium = FakeChromium()
    manager, _ = _manager(chromium)

    async def scenario() -> tuple[FakeRoute, FakeRoute]:
        async with manager.session():
            pattern, handler = chromium.local_browser.contexts[0].routes[0]
            assert pattern == "**/*"
            image = FakeRoute("image")
            document = FakeRoute("document")
            await handler(image)
            await handler(document)
            return image, document

    image, document = asyncio.run(scenario())

    assert "image" in BLOCKED_RESOURCE_TYPES
    assert image.aborted is True and image.continued is False
    assert document.continued is True and document.aborted is False


def test_cancelled_launch_stops_the_driver() -> None:
    chromium = FakeChromium(launch_delay=30)
    manager, playwright = _manager(chromium)

    async def scenario() -> None:
        await asyncio.wait_for(manager.acquire(), timeout=0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(scenario())

    assert len(chromium.launch_calls) == 1
    assert playwright.stopped is True


def test_cancelled_context_setup_closes_the_launched_browser() -> None:
    chromium = FakeChromium()
    chromium.local_browser.context_delay = 30
    manager, playwright = _manager(chromium)

    async def scenario() -> None:
        await asyncio.wait_for(manager.acquire(), timeout=0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(scenario())

    assert chromium.local_browser.closed is True
    assert playwright.stopped is True
