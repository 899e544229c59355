"""Decoded live-room events.

A ``ver=0, action=5`` frame carries one JSON object of the shape
``{"cmd": str, "data": {"uname", "action", "giftName"}, "info": [...]}``.
Every field is optional; missing or null values fall back to empty
strings and empty sequences so that one odd notification never breaks
decoding of the rest of the stream.

Example:
    >>> event = DanmakuEvent.from_payload(
    ...     {"cmd": "DANMU_MSG", "info": [[], "hello", [1, "alice"]]}
    ... )
    >>> event.display_text()
    'alice: hello'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import Field, field_validator

from danmaku.models.base import DanmakuBaseModel

CMD_DANMU_MSG = "DANMU_MSG"
CMD_SEND_GIFT = "SEND_GIFT"


@dataclass(frozen=True)
class Danmaku:
    """A chat line: who said it and what they said."""

    username: str
    text: str


class EventData(DanmakuBaseModel):
    """Structured part of an event (used by gift notifications)."""

    username: str = Field(default="", alias="uname")
    action: str = ""
    gift_name: str = Field(default="", alias="giftName")

    @field_validator("username", "action", "gift_name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class DanmakuEvent(DanmakuBaseModel):
    """One decoded application message.

    Attributes:
        command: The ``cmd`` tag; empty string when the server omitted it
        data: Structured payload (``uname``, ``action``, ``giftName``)
        info: Loosely-typed positional values whose meaning depends on ``command``
    """

    command: str = Field(default="", alias="cmd")
    data: EventData = Field(default_factory=EventData)
    info: list[Any] = Field(default_factory=list)

    @field_validator("command", mode="before")
    @classmethod
    def _default_command(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("data", mode="before")
    @classmethod
    def _default_data(cls, value: Any) -> Any:
        # Some commands ship a list or scalar here; only objects carry the fields we read
        if isinstance(value, (dict, EventData)):
            return value
        return {}

    @field_validator("info", mode="before")
    @classmethod
    def _default_info(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DanmakuEvent:
        """Build an event from a decoded JSON object."""
        return cls.model_validate(payload)

    def is_danmaku(self) -> bool:
        return self.command == CMD_DANMU_MSG

    def is_send_gift(self) -> bool:
        return self.command == CMD_SEND_GIFT

    def as_danmaku(self) -> Danmaku | None:
        """Return the chat line for ``DANMU_MSG`` events, None for anything else.

        The text lives at ``info[1]`` and the sender name at ``info[2][1]``.
        Any index miss or non-string value yields an empty string.
        """
        if not self.is_danmaku():
            return None

        text = _str_at(self.info, 1)
        sender = self.info[2] if len(self.info) > 2 else None
        username = _str_at(sender, 1) if isinstance(sender, list) else ""
        return Danmaku(username=username, text=text)

    def display_text(self) -> str | None:
        """One-line rendering for chat and gift events; None for other commands."""
        danmaku = self.as_danmaku()
        if danmaku is not None:
            return f"{danmaku.username}: {danmaku.text}"
        if self.is_send_gift():
            return f"{self.data.username}: {self.data.action} {self.data.gift_name}"
        return None


def _str_at(values: list[Any], index: int) -> str:
    if index < len(values) and isinstance(values[index], str):
        return str(values[index])
    return ""
