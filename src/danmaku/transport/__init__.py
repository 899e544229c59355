"""WebSocket transport for live-room event streams.

Public exports:
    DanmakuClient: Handle that starts and stops one room subscription
    EventChannel: Consumer-facing queue of decoded events
    ProtocolSession: Connection state machine with send/receive loops
    SessionState: Session lifecycle states
    Timer: Repeating timer used for keepalives
"""

from danmaku.transport.channel import EventChannel
from danmaku.transport.client import DanmakuClient
from danmaku.transport.heartbeat import Timer
from danmaku.transport.session import (
    VALID_TRANSITIONS,
    ProtocolSession,
    SessionState,
    can_transition,
)

__all__ = [
    "DanmakuClient",
    "EventChannel",
    "ProtocolSession",
    "SessionState",
    "Timer",
    "VALID_TRANSITIONS",
    "can_transition",
]
