"""
API Frame Deframer

Turns a serial byte stream into checksum-validated raw frames and builds
the wire form of outgoing frames.

Wire format:

    0x7E | LEN_HI | LEN_LO | frame type | frame data ... | checksum

LEN counts the unescaped bytes from the frame type through the last data
byte. The checksum covers the same bytes. In escaped mode (API mode 2)
every special byte (0x7E, 0x7D, 0x11, 0x13) from LEN_HI through the
checksum is sent as 0x7D followed by the byte XOR 0x20.

The deframer is a byte-at-a-time state machine:

    AWAITING_START -> READING_LENGTH -> READING_BODY -> READING_CHECKSUM
          ^                                                   |
          +------------------- validate ----------------------+

Corrupted frames are reported as FrameError values in the output of
``feed`` and the stream continues at the next start delimiter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Union

from xbframes.core.checksum import checksum, verify_checksum
from xbframes.core.constants import (
    ESCAPE_BYTE,
    ESCAPE_XOR,
    MAX_FRAME_DATA,
    SPECIAL_BYTES,
    START_DELIMITER,
)
from xbframes.core.errors import BadChecksum, FrameError, IncompleteFrame

__all__ = [
    "RawFrame",
    "DeframerState",
    "Deframer",
    "escape",
    "unescape",
    "encode_frame",
    "parse_frame",
    "parse_hex_frame",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFrame:
    """
    A checksum-validated frame.

    Attributes:
        frame_type: Frame type byte.
        payload: Frame data following the frame type byte.
    """

    frame_type: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.frame_type <= 0xFF:
            raise ValueError(f"Frame type must be 0-255, got {self.frame_type}")
        if len(self.payload) + 1 > MAX_FRAME_DATA:
            raise ValueError(f"Frame data must be at most {MAX_FRAME_DATA} bytes, got {len(self.payload) + 1}")
        object.__setattr__(self, "payload", bytes(self.payload))

    @property
    def data(self) -> bytes:
        """Frame type followed by the payload, as covered by the checksum."""
        return bytes([self.frame_type]) + self.payload

    @classmethod
    def from_data(cls, data: Union[bytes, bytearray]) -> RawFrame:
        if not data:
            raise ValueError("Frame data must contain at least the frame type byte")
        return cls(data[0], bytes(data[1:]))

    def __len__(self) -> int:
        return len(self.payload) + 1

    def __repr__(self) -> str:
        return f"RawFrame(frame_type=0x{self.frame_type:02X}, payload={self.payload.hex()!r})"


class DeframerState(Enum):
    """Position of the deframer inside a frame."""

    AWAITING_START = "awaiting_start"
    READING_LENGTH = "reading_length"
    READING_BODY = "reading_body"
    READING_CHECKSUM = "reading_checksum"


FeedResult = Union[RawFrame, FrameError]


class Deframer:
    """
    Incremental API frame parser.

    Feed it bytes in chunks of any size; complete frames come out in
    arrival order. A frame split across chunks is buffered until the rest
    arrives.

    Example:
        >>> d = Deframer(escaped=True)
        >>> d.feed(bytes.fromhex("7e0002"))
        []
        >>> d.feed(bytes.fromhex("8a066f"))
        [RawFrame(frame_type=0x8A, payload='06')]
    """

    def __init__(self, escaped: bool = True) -> None:
        self.escaped = escaped
        self.frames_received = 0
        self.errors = 0
        self.discarded_bytes = 0
        self.reset()

    def reset(self) -> None:
        """Drop any partially received frame."""
        self._state = DeframerState.AWAITING_START
        self._escape_next = False
        self._length_bytes = bytearray()
        self._length = 0
        self._body = bytearray()

    @property
    def state(self) -> DeframerState:
        return self._state

    @property
    def buffered(self) -> int:
        """Number of body bytes of the frame in progress."""
        return len(self._body)

    def _begin(self) -> None:
        self.reset()
        self._state = DeframerState.READING_LENGTH

    def _error(self, error: FrameError, out: list[FeedResult]) -> None:
        self.errors += 1
        logger.warning(f"Dropping frame: {error}")
        out.append(error)

    def feed(self, data: Iterable[int]) -> list[FeedResult]:
        """
        Process received bytes.

        Args:
            data: Raw bytes from the serial link.

        Returns:
            Completed frames and frame errors, in stream order.
        """
        out: list[FeedResult] = []
        for byte in data:
            if self._state is DeframerState.AWAITING_START:
                if byte == START_DELIMITER:
                    self._begin()
                else:
                    self.discarded_bytes += 1
                continue

            if self.escaped:
                if byte == START_DELIMITER:
                    # Unescaped delimiter inside a frame starts a new one
                    self._error(
                        IncompleteFrame("start delimiter inside frame", received=len(self._body)),
                        out,
                    )
                    self._begin()
                    continue
                if self._escape_next:
                    byte ^= ESCAPE_XOR
                    self._escape_next = False
                elif byte == ESCAPE_BYTE:
                    self._escape_next = True
                    continue

            self._consume(byte, out)
        return out

    def _consume(self, byte: int, out: list[FeedResult]) -> None:
        if self._state is DeframerState.READING_LENGTH:
            self._length_bytes.append(byte)
            if len(self._length_bytes) == 2:
                self._length = int.from_bytes(self._length_bytes, "big")
                if self._length == 0:
                    self._error(IncompleteFrame("declared length is zero"), out)
                    self.reset()
                else:
                    self._state = DeframerState.READING_BODY
        elif self._state is DeframerState.READING_BODY:
            self._body.append(byte)
            if len(self._body) == self._length:
                self._state = DeframerState.READING_CHECKSUM
        elif self._state is DeframerState.READING_CHECKSUM:
            body = bytes(self._body)
            self.reset()
            if verify_checksum(body, byte):
                self.frames_received += 1
                frame = RawFrame.from_data(body)
                logger.debug(f"RX frame type 0x{frame.frame_type:02X} ({len(body)} bytes)")
                out.append(frame)
            else:
                self._error(BadChecksum(checksum(body), byte, body), out)


def escape(data: Union[bytes, bytearray]) -> bytes:
    """
    Byte-stuff the special bytes.

    Examples:
        >>> escape(bytes.fromhex("7e7d1113aa")).hex()
        '7d5e7d5d7d317d33aa'
    """
    out = bytearray()
    for byte in data:
        if byte in SPECIAL_BYTES:
            out.append(ESCAPE_BYTE)
            out.append(byte ^ ESCAPE_XOR)
        else:
            out.append(byte)
    return bytes(out)


def unescape(data: Union[bytes, bytearray]) -> bytes:
    """
    Reverse ``escape``.

    Raises:
        ValueError: If the data ends with a dangling escape byte.
    """
    out = bytearray()
    escape_next = False
    for byte in data:
        if escape_next:
            out.append(byte ^ ESCAPE_XOR)
            escape_next = False
        elif byte == ESCAPE_BYTE:
            escape_next = True
        else:
            out.append(byte)
    if escape_next:
        raise ValueError("Data ends with an escape byte")
    return bytes(out)


def encode_frame(frame: RawFrame, escaped: bool = True) -> bytes:
    """
    Build the wire form of a frame.

    Args:
        frame: Frame to send.
        escaped: Escape special bytes (API mode 2).

    Returns:
        Bytes starting with the 0x7E start delimiter.

    Examples:
        >>> encode_frame(RawFrame(0x08, b"\\x01NI")).hex()
        '7e000408014e495f'
        >>> encode_frame(RawFrame(0x08, b"\\x13NI")).hex()
        '7e0004087d334e494d'
    """
    data = frame.data
    body = len(data).to_bytes(2, "big") + data + bytes([checksum(data)])
    if escaped:
        body = escape(body)
    return bytes([START_DELIMITER]) + body


def parse_frame(data: Union[bytes, bytearray], escaped: bool = True) -> RawFrame:
    """
    Parse exactly one complete frame.

    Raises:
        FrameError: If the data does not hold exactly one valid frame.
    """
    if not data or data[0] != START_DELIMITER:
        raise FrameError("Invalid start delimiter")
    deframer = Deframer(escaped=escaped)
    results = deframer.feed(data)
    for result in results:
        if isinstance(result, FrameError):
            raise result
    if deframer.state is not DeframerState.AWAITING_START:
        raise IncompleteFrame("data ends inside a frame", received=deframer.buffered)
    if len(results) != 1 or deframer.discarded_bytes:
        raise FrameError(f"Expected exactly one frame, found {len(results)} and {deframer.discarded_bytes} stray byte(s)")
    return results[0]


def parse_hex_frame(text: str, escaped: bool = True) -> RawFrame:
    """Parse a frame written as a hex string (spaces allowed)."""
    try:
        data = bytes.fromhex("".join(text.split()))
    except ValueError:
        raise FrameError(f"Invalid hex frame: {text!r}") from None
    return parse_frame(data, escaped=escaped)
