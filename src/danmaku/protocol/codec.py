"""Frame codec for the live-room broadcast protocol.

One WebSocket message carries a stream of length-prefixed frames. A frame's
payload is either a JSON event (``ver=0``), a popularity ping (``ver=1``), or
a zlib-compressed frame stream (``ver=2``) that is decoded recursively.

All functions here are pure: identical input yields identical output.

Example:
    >>> from danmaku.protocol.codec import build_handshake, parse_message
    >>> build_handshake("12345")[:4]
    b'\\x00\\x00\\x00 '
    >>> parse_message(b"")
    []
"""

from __future__ import annotations

import json
import struct
import zlib
from dataclasses import dataclass

from pydantic import ValidationError

from danmaku.errors import CodecError
from danmaku.models.event import DanmakuEvent
from danmaku.observability import get_logger
from danmaku.protocol.constants import (
    ACTION_HEARTBEAT_REPLY,
    ACTION_MESSAGE,
    ACTION_OPEN,
    ACTION_OPEN_REPLY,
    HANDSHAKE_SUB_HEADER,
    HEADER_LENGTH,
    HEARTBEAT_FRAME,
    MAX_DECOMPRESSED_SIZE,
    MAX_NESTING_DEPTH,
    VER_JSON,
    VER_POPULARITY,
    VER_ZLIB,
)

logger = get_logger(__name__)

_HEADER = struct.Struct(">IHHII")
_LENGTH = struct.Struct(">I")

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


@dataclass(frozen=True)
class Frame:
    """A decoded frame header plus its payload bytes."""

    length: int
    header_length: int
    ver: int
    action: int
    sequence: int
    payload: bytes


def encode_frame(payload: bytes, ver: int, action: int, sequence: int = 1) -> bytes:
    """Prefix ``payload`` with a 16-byte header."""
    return _HEADER.pack(HEADER_LENGTH + len(payload), HEADER_LENGTH, ver, action, sequence) + payload


def build_handshake(room_id: str) -> bytes:
    """Build the open-subscription frame for ``room_id``.

    The room id is inserted verbatim into the JSON body, without quoting or
    escaping, so ``"12345"`` becomes ``{"roomid":12345}``.
    """
    body = f'{{"roomid":{room_id}}}'.encode("utf-8")
    return _LENGTH.pack(HEADER_LENGTH + len(body)) + HANDSHAKE_SUB_HEADER + body


def heartbeat_frame() -> bytes:
    """Return the constant 16-byte keepalive frame."""
    return HEARTBEAT_FRAME


def split_frames(buffer: bytes) -> list[bytes]:
    """Split one WebSocket message into its length-prefixed frames.

    Scanning stops silently at the first declared length below 16, at a
    length prefix that does not fit in the remaining bytes, or at a frame
    that would run past the end of the buffer. The returned frames always
    concatenate to a prefix of ``buffer``.
    """
    frames: list[bytes] = []
    total = len(buffer)
    offset = 0
    while offset < total:
        if total - offset < _LENGTH.size:
            break
        (length,) = _LENGTH.unpack_from(buffer, offset)
        if length < HEADER_LENGTH or offset + length > total:
            break
        frames.append(bytes(buffer[offset : offset + length]))
        offset += length

    if offset < total:
        logger.debug("danmaku.codec.trailing_bytes_dropped", offset=offset, remaining=total - offset)
    return frames


def decode_header(frame: bytes) -> Frame:
    """Read the fixed header of ``frame``.

    Raises:
        CodecError: If the frame is shorter than the 16-byte header
    """
    if len(frame) < HEADER_LENGTH:
        raise CodecError("frame shorter than header", details={"size": len(frame)})
    length, header_length, ver, action, sequence = _HEADER.unpack_from(frame, 0)
    return Frame(
        length=length,
        header_length=header_length,
        ver=ver,
        action=action,
        sequence=sequence,
        payload=bytes(frame[HEADER_LENGTH:length]),
    )


def parse_message(
    buffer: bytes,
    *,
    depth: int = 0,
    max_depth: int = MAX_NESTING_DEPTH,
    max_decompressed_size: int = MAX_DECOMPRESSED_SIZE,
) -> list[DanmakuEvent]:
    """Decode every frame in ``buffer`` and return their events in order.

    Raises:
        CodecError: If any frame is malformed; no partial result is returned
    """
    if depth > max_depth:
        raise CodecError("compressed payloads nested too deeply", details={"max_depth": max_depth})

    events: list[DanmakuEvent] = []
    for frame in split_frames(buffer):
        events.extend(
            parse_frame(
                frame,
                depth=depth,
                max_depth=max_depth,
                max_decompressed_size=max_decompressed_size,
            )
        )
    return events


def parse_frame(
    frame: bytes,
    *,
    depth: int = 0,
    max_depth: int = MAX_NESTING_DEPTH,
    max_decompressed_size: int = MAX_DECOMPRESSED_SIZE,
) -> list[DanmakuEvent]:
    """Decode a single frame into zero or more events.

    - ``ver=0``: JSON event when ``action=5``, otherwise nothing
    - ``ver=1``: popularity / heartbeat reply, nothing
    - ``ver=2``: zlib-compressed frame stream, decoded recursively
    - anything else: nothing

    Raises:
        CodecError: On a truncated header, bad JSON or a zlib failure
    """
    header = decode_header(frame)
    logger.debug(
        "danmaku.codec.frame",
        ver=header.ver,
        action=header.action,
        payload_len=len(header.payload),
    )

    if header.ver == VER_JSON:
        if header.action != ACTION_MESSAGE:
            logger.warning("danmaku.codec.unknown_action", ver=header.ver, action=header.action)
            return []
        return [_decode_event(header.payload)]

    if header.ver == VER_POPULARITY:
        _log_control_frame(header)
        return []

    if header.ver == VER_ZLIB:
        inner = _inflate(header.payload, max_decompressed_size)
        return parse_message(
            inner,
            depth=depth + 1,
            max_depth=max_depth,
            max_decompressed_size=max_decompressed_size,
        )

    logger.warning("danmaku.codec.unknown_version", ver=header.ver, action=header.action)
    return []


def _decode_event(payload: bytes) -> DanmakuEvent:
    try:
        obj = json.loads(payload)
    except (ValueError, RecursionError) as e:
        raise CodecError(f"invalid JSON payload: {e}") from e
    if not isinstance(obj, dict):
        raise CodecError("JSON payload is not an object", details={"type": type(obj).__name__})
    try:
        event = DanmakuEvent.from_payload(obj)
    except ValidationError as e:
        raise CodecError(f"unexpected event shape: {e.error_count()} error(s)") from e
    except RecursionError as e:
        raise CodecError("event payload nested too deeply") from e
    logger.debug("danmaku.codec.event", command=event.command)
    return event


def _inflate(payload: bytes, limit: int) -> bytes:
    decompressor = zlib.decompressobj()
    try:
        data = decompressor.decompress(payload, limit)
    except zlib.error as e:
        raise CodecError(f"zlib decompression failed: {e}") from e
    if not decompressor.eof:
        if decompressor.unconsumed_tail or len(data) >= limit:
            raise CodecError("decompressed payload too large", details={"limit": limit})
        raise CodecError("truncated zlib stream")
    return data


def _log_control_frame(header: Frame) -> None:
    if header.action == ACTION_HEARTBEAT_REPLY and len(header.payload) >= _LENGTH.size:
        (popularity,) = _LENGTH.unpack_from(header.payload, 0)
        logger.debug("danmaku.codec.popularity", popularity=popularity)
    elif header.action in (ACTION_OPEN, ACTION_OPEN_REPLY):
        logger.debug("danmaku.codec.open_reply", action=header.action)
