"""
API Frame Protocol Constants

Special bytes and size limits of the binary API frame format:

    +------+--------+--------+------------------+----------+
    | 0x7E | LEN_HI | LEN_LO | frame data (LEN) | checksum |
    +------+--------+--------+------------------+----------+

The frame data starts with the frame type byte. In escaped mode every
byte after the start delimiter that is one of the special bytes below is
sent as ESCAPE_BYTE followed by the byte XOR ESCAPE_XOR.
"""

from __future__ import annotations

__all__ = [
    "START_DELIMITER",
    "ESCAPE_BYTE",
    "XON",
    "XOFF",
    "ESCAPE_XOR",
    "SPECIAL_BYTES",
    "HEADER_SIZE",
    "CHECKSUM_SIZE",
    "MAX_FRAME_DATA",
    "NO_FRAME_ID",
    "MIN_FRAME_ID",
    "MAX_FRAME_ID",
    "EXTENDED_TLV_LENGTH",
    "MAX_OPTIONS_LENGTH",
    "DEFAULT_READ_SIZE",
    "DEFAULT_TIMEOUT",
    "DEFAULT_LISTENER_WORKERS",
    "DEFAULT_QUEUE_SIZE",
]

# Framing bytes
START_DELIMITER: int = 0x7E
ESCAPE_BYTE: int = 0x7D
XON: int = 0x11
XOFF: int = 0x13
ESCAPE_XOR: int = 0x20
SPECIAL_BYTES: frozenset[int] = frozenset({START_DELIMITER, ESCAPE_BYTE, XON, XOFF})

# Delimiter + 2 length bytes
HEADER_SIZE: int = 3
CHECKSUM_SIZE: int = 1
MAX_FRAME_DATA: int = 0xFFFF

# Frame ID 0 asks the module not to answer
NO_FRAME_ID: int = 0x00
MIN_FRAME_ID: int = 0x01
MAX_FRAME_ID: int = 0xFF

# TLV length byte announcing a 2-byte extended length
EXTENDED_TLV_LENGTH: int = 0xFF
MAX_OPTIONS_LENGTH: int = 0xFF

# Dispatcher defaults
DEFAULT_READ_SIZE: int = 256
DEFAULT_TIMEOUT: float = 2.0
DEFAULT_LISTENER_WORKERS: int = 20
DEFAULT_QUEUE_SIZE: int = 50
