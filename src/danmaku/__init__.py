"""Async client for the live-room danmaku (bullet chat) WebSocket protocol.

Example:
    >>> from danmaku import DanmakuClient
    >>>
    >>> async with DanmakuClient("12345") as client:
    ...     async for event in client.events:
    ...         print(event.display_text())
"""

from danmaku.config import ClientConfig
from danmaku.errors import (
    ChannelClosedError,
    CodecError,
    ConnectError,
    DanmakuError,
    InvalidTransitionError,
)
from danmaku.models import Danmaku, DanmakuEvent, EventData
from danmaku.transport import DanmakuClient, EventChannel, SessionState

__version__ = "0.1.0"

__all__ = [
    "ChannelClosedError",
    "ClientConfig",
    "CodecError",
    "ConnectError",
    "Danmaku",
    "DanmakuClient",
    "DanmakuError",
    "DanmakuEvent",
    "EventChannel",
    "EventData",
    "InvalidTransitionError",
    "SessionState",
    "__version__",
]
