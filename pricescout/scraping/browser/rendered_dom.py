"""
Single-shot DOM rendering through a headless Chromium child process.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil

from pricescout.scraping.errors import BrowserUnavailable, RenderTimeout
from pricescout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

MAX_DOM_BYTES = 50 * 1024 * 1024
RENDER_ARGS: tuple[str, ...] = (
    "--headless=new",
    "--disable-gpu",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--virtual-time-budget=15000",
    "--dump-dom",
)


def resolve_chromium_path(configured: str | None) -> str | None:
    if configured:
        return configured
    for candidate in ("chromium", "chromium-browser", "google-chrome"):
        found = shutil.which(candidate)
        if found:
            return found
    return None


async def render_dom(
    url: str,
    *,
    chromium_path: str | None = None,
    timeout_seconds: float = 15.0,
) -> str:
    """
    Return the serialized DOM of ``url`` after script execution.

    The child is force-killed when it overruns ``timeout_seconds`` or the
    awaiting task is cancelled.
    """

    executable = resolve_chromium_path(chromium_path)
    if executable is None:
        raise BrowserUnavailable("No Chromium executable found for DOM rendering.")

    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *RENDER_ARGS,
            url,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise BrowserUnavailable(f"Unable to start Chromium at {executable}: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        await _kill(process)
        log_event(logger, logging.WARNING, "dom_render_timeout", url=url, timeout_seconds=timeout_seconds)
        raise RenderTimeout(url, timeout_seconds) from exc
    except BaseException:
        # Caller cancelled first; the child must not outlive the job.
        await _kill(process)
        raise

    if process.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()[:500]
        raise BrowserUnavailable(f"Chromium exited with code {process.returncode}: {detail}")
    if len(stdout) > MAX_DOM_BYTES:
        stdout = stdout[:MAX_DOM_BYTES]
    log_event(logger, logging.DEBUG, "dom_rendered", url=url, bytes=len(stdout))
    return stdout.decode("utf-8", errors="replace")


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()
