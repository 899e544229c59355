"""Binary frame codec for the live-room broadcast protocol."""

from danmaku.protocol.codec import (
    Frame,
    build_handshake,
    decode_header,
    encode_frame,
    heartbeat_frame,
    parse_frame,
    parse_message,
    split_frames,
)

__all__ = [
    "Frame",
    "build_handshake",
    "decode_header",
    "encode_frame",
    "heartbeat_frame",
    "parse_frame",
    "parse_message",
    "split_frames",
]
