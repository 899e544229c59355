"""Wire constants for the live-room broadcast protocol.

Every frame starts with a 16-byte big-endian header:

| Offset | Width | Field                                  |
|--------|-------|----------------------------------------|
| 0      | 4     | total frame length (header + payload)  |
| 4      | 2     | header length, always 16               |
| 6      | 2     | protocol version (``ver``)             |
| 8      | 4     | action code                            |
| 12     | 4     | sequence (unused on receive)           |
"""

HEADER_LENGTH = 16

# Protocol versions (payload encodings)
VER_JSON = 0
VER_POPULARITY = 1
VER_ZLIB = 2

# Action codes
ACTION_HEARTBEAT = 2
ACTION_HEARTBEAT_REPLY = 3
ACTION_MESSAGE = 5
ACTION_OPEN = 7
ACTION_OPEN_REPLY = 8

# header length 16, ver 1, action 7 (open), sequence 1
HANDSHAKE_SUB_HEADER = bytes.fromhex("001000010000000700000001")

# length 16, header length 16, ver 1, action 2 (heartbeat), sequence 1
HEARTBEAT_FRAME = bytes.fromhex("00000010001000010000000200000001")

DEFAULT_SERVER_URL = "wss://broadcastlv.chat.bilibili.com:2245/sub"
DEFAULT_HEARTBEAT_INTERVAL = 30.0

MAX_NESTING_DEPTH = 8
"""Maximum number of zlib layers unwrapped for a single WebSocket message.

Real traffic nests exactly once; the cap keeps hostile input from driving
unbounded recursion.
"""

MAX_DECOMPRESSED_SIZE = 16 * 1024 * 1024
"""Maximum size in bytes a single compressed payload may inflate to."""
