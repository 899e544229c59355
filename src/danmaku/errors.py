"""Errors raised by the danmaku client.

Every error carries a stable ``danmaku:<area>/<reason>`` code, a readable
message and a details dict that can be logged as-is.

Errors fall into three groups:
- Codec errors: local to one received message; logged and dropped.
- Transport errors: fatal to the session (connect failure surfaces to the caller).
- Channel errors: the consumer closed its side; forwarding stops and the session closes.
"""
from __future__ import annotations

from typing import Any


class DanmakuError(Exception):
    """Base exception for all danmaku client errors.

    Attributes:
        code: Error code following the danmaku:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class CodecError(DanmakuError):
    """Raised when a received frame cannot be decoded.

    Covers truncated headers, undecodable JSON payloads, zlib failures
    and payloads nested or inflated beyond the configured limits.

    Attributes:
        reason: Short description of what was wrong with the frame
    """

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="danmaku:codec/malformed_frame",
            message=f"Malformed frame: {reason}",
            details=details or {},
        )
        self.reason = reason


class ConnectError(DanmakuError):
    """Raised when the WebSocket connection to the broadcast server fails.

    Attributes:
        url: The endpoint that could not be reached
    """

    def __init__(self, url: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="danmaku:transport/connect_failed",
            message=f"Failed to connect to {url}: {reason}",
            details={"url": url, "reason": reason, **(details or {})},
        )
        self.url = url
        self.reason = reason


class ChannelClosedError(DanmakuError):
    """Raised when sending to an event channel whose consumer has gone away."""

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="danmaku:channel/closed",
            message="Event channel is closed",
            details=details or {},
        )


class InvalidTransitionError(DanmakuError):
    """Raised when a session is moved to a state its current state cannot reach.

    Attributes:
        from_state: The current session state
        to_state: The attempted target state
    """

    def __init__(
        self, from_state: str, to_state: str, details: dict[str, Any] | None = None
    ) -> None:
        message = f"Invalid transition from '{from_state}' to '{to_state}'"
        super().__init__(
            code="danmaku:session/invalid_state",
            message=message,
            details={"from_state": from_state, "to_state": to_state, **(details or {})},
        )
        self.from_state = from_state
        self.to_state = to_state
