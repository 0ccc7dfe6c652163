"""API Frame Framing

- RawFrame: checksum-validated frame type + payload
- Deframer: incremental stream parser with escape handling
- encode_frame: wire form of an outgoing frame
"""

from xbframes.frames.deframer import (
    Deframer,
    DeframerState,
    RawFrame,
    encode_frame,
    escape,
    parse_frame,
    parse_hex_frame,
    unescape,
)

__all__ = [
    "RawFrame",
    "Deframer",
    "DeframerState",
    "encode_frame",
    "escape",
    "unescape",
    "parse_frame",
    "parse_hex_frame",
]
