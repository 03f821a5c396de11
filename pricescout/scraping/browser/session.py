"""
Browser session lifecycle: remote CDP connection preferred, local Chromium fallback.
"""

from __future__ import annotations

import logging
import random
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from playwright.async_api import async_playwright

from pricescout.scraping.config.models import ScraperSettings
from pricescout.scraping.errors import BrowserUnavailable
from pricescout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_3) AppleWebKit/605.1.15 Version/16.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36",
)
VIEWPORT: dict[str, int] = {"width": 1366, "height": 900}
BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font"})
LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
)


@dataclass
class SessionHandle:
    """
    One acquired browser page plus everything needed to tear it down.

    ``owned`` is True when this process launched the browser; borrowed remote
    browsers are shared and must never be closed from here.
    """

    playwright: Any
    browser: Any
    context: Any
    page: Any
    owned: bool
    user_agent: str
    source: str


def build_remote_endpoint(host_or_url: str, token: str | None) -> str:
    """
    Build the CDP websocket endpoint for a remote browser service.
    """

    value = host_or_url.strip()
    if value.startswith(("ws://", "wss://")):
        return value
    endpoint = f"wss://{value.rstrip('/')}/"
    if token:
        endpoint = f"{endpoint}?token={token}"
    return endpoint


class BrowserSessionManager:
    """
    Acquires and releases isolated browser sessions for scrape jobs.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        playwright_factory: Callable[[], Any] = async_playwright,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._playwright_factory = playwright_factory
        self._rng = rng or random.Random()

    async def acquire(self) -> SessionHandle:
        try:
            playwright = await self._playwright_factory().start()
        except Exception as exc:  # noqa: BLE001
            raise BrowserUnavailable(f"Unable to start Playwright driver: {exc}") from exc

        try:
            browser, owned, source = await self._open_browser(playwright)
        except BaseException:
            # Also covers cancellation mid-launch; the driver must not outlive the job.
            await _stop_quietly(playwright)
            raise

        user_agent = self._rng.choice(USER_AGENTS)
        partial = SessionHandle(playwright, browser, None, None, owned, user_agent, source)
        try:
            partial.context = await browser.new_context(user_agent=user_agent, viewport=dict(VIEWPORT))
            await partial.context.route("**/*", _block_heavy_resources)
            page = await partial.context.new_page()
        except Exception as exc:  # noqa: BLE001
            await self.release(partial)
            raise BrowserUnavailable(f"Unable to open browser context: {exc}") from exc
        except BaseException:
            await self.release(partial)
            raise
        context = partial.context

        log_event(
            logger,
            logging.INFO,
            "browser_session_acquired",
            source=source,
            owned=owned,
            user_agent=user_agent,
        )
        return SessionHandle(
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
            owned=owned,
            user_agent=user_agent,
            source=source,
        )

    async def release(self, handle: SessionHandle) -> None:
        """
        Tear down a session. Never raises; failures are logged.
        """

        if handle.owned:
            if handle.browser is not None:
                await _run_quietly("browser_close_failed", handle.browser.close)
        elif handle.context is not None:
            await _run_quietly("context_close_failed", handle.context.close)
        await _stop_quietly(handle.playwright)
        log_event(logger, logging.DEBUG, "browser_session_released", source=handle.source)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[SessionHandle]:
        handle = await self.acquire()
        try:
            yield handle
        finally:
            await self.release(handle)

    async def _open_browser(self, playwright: Any) -> tuple[Any, bool, str]:
        settings = self._settings
        if settings.remote_browser_endpoint:
            endpoint = build_remote_endpoint(
                settings.remote_browser_endpoint,
                settings.remote_browser_token,
            )
            try:
                browser = await playwright.chromium.connect_over_cdp(
                    endpoint,
                    timeout=settings.protocol_timeout_ms,
                )
                return browser, False, "remote"
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.WARNING,
                    "remote_browser_unavailable",
                    error=str(exc),
                    fallback="local",
                )

        launch_options: dict[str, Any] = {
            "headless": settings.headless,
            "args": list(LAUNCH_ARGS),
            "timeout": settings.protocol_timeout_ms,
        }
        if settings.chromium_executable_path:
            launch_options["executable_path"] = settings.chromium_executable_path
        try:
            browser = await playwright.chromium.launch(**launch_options)
        except Exception as exc:  # noqa: BLE001
            raise BrowserUnavailable(f"Unable to launch local Chromium: {exc}") from exc
        return browser, True, "local"


async def _block_heavy_resources(route: Any) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


async def _run_quietly(event: str, closer: Callable[[], Any]) -> None:
    try:
        await closer()
    except Exception as exc:  # noqa: BLE001
        log_event(logger, logging.WARNING, event, error=str(exc))


async def _stop_quietly(playwright: Any) -> None:
    if playwright is None:
        return
    await _run_quietly("playwright_stop_failed", playwright.stop)
