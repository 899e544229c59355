"""Client configuration.

``ClientConfig`` gathers the endpoint, timing and decoding limits used by a
session. Defaults match the public broadcast endpoint; every field can be
overridden in code or through ``DANMAKU_*`` environment variables.

Environment Variables:
    DANMAKU_URL: WebSocket endpoint
    DANMAKU_HEARTBEAT_INTERVAL: Seconds between keepalive frames
    DANMAKU_OPEN_TIMEOUT: Seconds allowed for the WebSocket opening handshake
    DANMAKU_CLOSE_TIMEOUT: Seconds allowed for the closing handshake
    DANMAKU_EVENT_QUEUE_SIZE: Bound for the consumer channel (unset = unbounded)

Example:
    >>> config = ClientConfig(heartbeat_interval=10.0)
    >>> config.url
    'wss://broadcastlv.chat.bilibili.com:2245/sub'
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from danmaku.protocol.constants import (
    DEFAULT_HEARTBEAT_INTERVAL,
    DEFAULT_SERVER_URL,
    MAX_DECOMPRESSED_SIZE,
    MAX_NESTING_DEPTH,
)

ENV_URL = "DANMAKU_URL"
ENV_HEARTBEAT_INTERVAL = "DANMAKU_HEARTBEAT_INTERVAL"
ENV_OPEN_TIMEOUT = "DANMAKU_OPEN_TIMEOUT"
ENV_CLOSE_TIMEOUT = "DANMAKU_CLOSE_TIMEOUT"
ENV_EVENT_QUEUE_SIZE = "DANMAKU_EVENT_QUEUE_SIZE"

_ENV_FIELDS = {
    ENV_URL: "url",
    ENV_HEARTBEAT_INTERVAL: "heartbeat_interval",
    ENV_OPEN_TIMEOUT: "open_timeout",
    ENV_CLOSE_TIMEOUT: "close_timeout",
    ENV_EVENT_QUEUE_SIZE: "event_queue_size",
}


class ClientConfig(BaseModel):
    """Settings for one client session.

    Attributes:
        url: WebSocket endpoint of the broadcast server
        heartbeat_interval: Seconds between keepalive frames
        open_timeout: Seconds allowed for the WebSocket opening handshake
        close_timeout: Seconds allowed for the closing handshake and send-loop drain
        max_message_size: Largest incoming WebSocket message accepted, in bytes
        max_nesting_depth: Maximum compressed layers unwrapped per message
        max_decompressed_size: Maximum inflated size of one compressed payload
        event_queue_size: Bound for the consumer channel; None keeps it unbounded.
            When bounded, the oldest undelivered event is dropped on overflow.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = DEFAULT_SERVER_URL
    heartbeat_interval: float = Field(default=DEFAULT_HEARTBEAT_INTERVAL, gt=0)
    open_timeout: float = Field(default=10.0, gt=0)
    close_timeout: float = Field(default=5.0, gt=0)
    max_message_size: int = Field(default=2**22, gt=0)
    max_nesting_depth: int = Field(default=MAX_NESTING_DEPTH, ge=0)
    max_decompressed_size: int = Field(default=MAX_DECOMPRESSED_SIZE, gt=0)
    event_queue_size: int | None = Field(default=None, gt=0)

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Build a config from ``DANMAKU_*`` environment variables.

        Explicit keyword overrides win over the environment.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        values: dict[str, Any] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = os.environ.get(env_name, "").strip()
            if raw:
                values[field_name] = raw
        values.update(overrides)
        return cls.model_validate(values)
