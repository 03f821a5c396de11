"""
tests/test_rendered_dom.py

Tests for the subprocess DOM renderer. The child process is faked except
for the missing-executable case.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pricescout.scraping.browser import rendered_dom
from pricescout.scraping.browser.rendered_dom import render_dom, resolve_chromium_path
from pricescout.scraping.errors import BrowserUnavailable, RenderTimeout


class FakeProcess:
    def __init__(self, *, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, hang: bool = False) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self.returncode: int | None = None if hang else returncode
        self._final_code = returncode
        self.killed = False

    async def communicate(self) -> tuple[bytes, bytes]:
        if self._hang:
            await asyncio.sleep(30)
        self.returncode = self._final_code
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode or 0


def _patch_spawn(monkeypatch: pytest.MonkeyPatch, process: FakeProcess) -> list[tuple[Any, ...]]:
    calls: list[tuple[Any, ...]] = []

    async def fake_exec(*args: Any, **kwargs: Any) -> FakeProcess:
        calls.append(args)
        return process

    monkeypatch.setattr(rendered_dom.asyncio, "create_subprocess_exec", fake_exec)
    return calls


def test_returns_dumped_dom(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_spawn(monkeypatch, FakeProcess(stdout=b"<html><body>ok</body></html>"))

    html = asyncio.run(render_dom("https://example.com/", chromium_path="/opt/chromium"))

    assert html == "<html><body>ok</body></html>"
    assert calls[0][0] == "/opt/chromium"
    assert "--dump-dom" in calls[0]
    assert calls[0][-1] == "https://example.com/"


def test_overrun_kills_the_child(monkeypatch: pytest.MonkeyPatch) -> None:
    process = FakeProcess(hang=True)
    _patch_spawn(monkeypatch, process)

    with pytest.raises(RenderTimeout) as excinfo:
        asyncio.run(render_dom("https://example.com/", chromium_path="/opt/chromium", timeout_seconds=0.05))

    assert process.killed is True
    assert excinfo.value.timeout_seconds == 0.05


def test_caller_cancellation_kills_the_child(monkeypatch: pytest.MonkeyPatch) -> None:
    process = FakeProcess(hang=True)
    _patch_spawn(monkeypatch, process)

    async def scenario() -> None:
        render = render_dom("https://example.com/", chromium_path="/opt/chromium", timeout_seconds=30)
        await asyncio.wait_for(render, timeout=0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(scenario())

    assert process.killed is True


def test_nonzero_exit_is_browser_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_spawn(monkeypatch, FakeProcess(stderr=b"crashpad failure", returncode=1))

    with pytest.raises(BrowserUnavailable, match="crashpad failure"):
        asyncio.run(render_dom("https://example.com/", chromium_path="/opt/chromium"))


def test_missing_executable_is_browser_unavailable(tmp_path) -> None:
    missing = str(tmp_path / "no-such-chromium")

    with pytest.raises(BrowserUnavailable):
        asyncio.run(render_dom("https://example.com/", chromium_path=missing))


def test_no_chromium_on_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(rendered_dom.shutil, "which", lambda name: None)

    assert resolve_chromium_path(None) is None
    with pytest.raises(BrowserUnavailable, match="No Chromium executable"):
        asyncio.run(render_dom("https://example.com/"))


def test_configured_path_wins() -> None:
    assert resolve_chromium_path("/opt/chromium") == "/opt/chromium"
