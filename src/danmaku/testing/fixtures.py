"""Pytest fixtures for danmaku client tests.

Fixtures:
    mock_websocket: Patches ``websockets.connect`` to hand out a MockWebSocket.
    refused_connect: Patches ``websockets.connect`` to fail like a refused connection.
"""

from typing import Any

import pytest
import websockets

from danmaku.testing.mocks import MockWebSocket


@pytest.fixture
def mock_websocket(monkeypatch: pytest.MonkeyPatch) -> MockWebSocket:
    """Route every ``websockets.connect`` call to one MockWebSocket.

    Returns:
        The MockWebSocket sessions will receive.
    """
    ws = MockWebSocket()

    async def _connect(url: str, **kwargs: Any) -> MockWebSocket:
        ws.connect_calls.append((url, kwargs))
        return ws

    monkeypatch.setattr(websockets, "connect", _connect)
    return ws


@pytest.fixture
def refused_connect(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Make ``websockets.connect`` raise ConnectionRefusedError.

    Returns:
        List collecting the URLs that were attempted.
    """
    attempts: list[str] = []

    async def _connect(url: str, **kwargs: Any) -> Any:
        attempts.append(url)
        raise ConnectionRefusedError("Connection refused")

    monkeypatch.setattr(websockets, "connect", _connect)
    return attempts
