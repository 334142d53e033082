"""Shared test fixtures for the tabwindow test suite.

Provides small window configurations, a recording launcher that never
starts a real browser, a scripted fake WebSocket and an opened session
bound to an ephemeral port on the loopback interface.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable

import pytest
import pytest_asyncio

from tabwindow.config.settings import WindowConfig
from tabwindow.domain.models import SessionState
from tabwindow.window.session import WindowSession, open_window


# ---------------------------------------------------------------------------
# Configuration / payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def small_config() -> WindowConfig:
    """A 4x3 window: frames are 48 bytes long."""
    return WindowConfig(title="Test Window", width=4, height=3, launch_browser=False)


@pytest.fixture
def pointerdown_payload() -> dict[str, Any]:
    return {
        "type": "event",
        "name": "pointerdown",
        "pointerId": 1,
        "pointerType": "mouse",
        "isPrimary": True,
        "x": 12.5,
        "y": 40.0,
        "width": 1.0,
        "height": 1.0,
        "pressure": 0.5,
        "button": 0,
        "buttons": 1,
    }


@pytest.fixture
def keydown_payload() -> dict[str, Any]:
    return {
        "type": "event",
        "name": "keydown",
        "key": "q",
        "code": "KeyA",
        "altKey": False,
        "ctrlKey": True,
        "metaKey": False,
        "shiftKey": False,
        "repeat": False,
    }


# ---------------------------------------------------------------------------
# Launcher / session fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def launched_urls() -> list[str]:
    return []


@pytest.fixture
def recording_launcher(launched_urls: list[str]) -> Callable[[str], Awaitable[bool]]:
    """A launcher that records the URL instead of opening a browser."""

    async def launcher(url: str) -> bool:
        launched_urls.append(url)
        return True

    return launcher


@pytest_asyncio.fixture
async def session(small_config: WindowConfig, recording_launcher) -> WindowSession:
    """An opened session on 127.0.0.1 with an OS-assigned port."""
    s = await open_window(small_config, launcher=recording_launcher)
    yield s
    if s.state in (SessionState.READY, SessionState.CLOSING):
        await asyncio.wait_for(s.close(), timeout=10)


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    """Poll a predicate on the event loop until it holds or time runs out."""

    async def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait_until


# ---------------------------------------------------------------------------
# Fake WebSocket
# ---------------------------------------------------------------------------


class FakeWebSocket:
    """Scripted stand-in for an accepted Starlette WebSocket."""

    def __init__(self) -> None:
        self.incoming: asyncio.Queue[Any] = asyncio.Queue()
        self.sent: list[bytes] = []
        self.send_error: Exception | None = None
        self.close_code: int | None = None
        self.send_gate: asyncio.Event | None = None

    def push_text(self, text: str) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "text": text})

    def push_json(self, payload: Any) -> None:
        self.push_text(json.dumps(payload))

    def push_bytes(self, data: bytes) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def push_error(self, error: Exception) -> None:
        self.incoming.put_nowait(error)

    def disconnect(self, code: int = 1000) -> None:
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": code})

    async def receive(self) -> dict[str, Any]:
        message = await self.incoming.get()
        if isinstance(message, Exception):
            raise message
        return message

    async def send_bytes(self, data: bytes) -> None:
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_code = code
        self.disconnect(code)


@pytest.fixture
def fake_websocket() -> FakeWebSocket:
    return FakeWebSocket()
