"""Testing utilities for danmaku client tests.

Provides a scripted in-memory WebSocket, frame builders for test traffic and
pytest fixtures that patch ``websockets.connect``.

Load the fixtures in a conftest with::

    pytest_plugins = ["danmaku.testing.fixtures"]
"""

from danmaku.testing.mocks import (
    MockWebSocket,
    danmu_payload,
    gift_payload,
    json_frame,
    wait_until,
    zlib_frame,
)

__all__ = [
    "MockWebSocket",
    "danmu_payload",
    "gift_payload",
    "json_frame",
    "wait_until",
    "zlib_frame",
]
