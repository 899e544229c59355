"""Data models for decoded live-room events."""

from danmaku.models.event import (
    CMD_DANMU_MSG,
    CMD_SEND_GIFT,
    Danmaku,
    DanmakuEvent,
    EventData,
)

__all__ = [
    "CMD_DANMU_MSG",
    "CMD_SEND_GIFT",
    "Danmaku",
    "DanmakuEvent",
    "EventData",
]
