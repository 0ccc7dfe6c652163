"""
Byte Field Helpers

Big-endian integer conversion, hex helpers and a cursor for reading the
fixed-width fields of an API frame left to right.

Examples:
    >>> int_to_bytes(0x1234, 2).hex()
    '1234'
    >>> bytes_to_int(b"\\x01\\x00")
    256
    >>> hex_to_bytes("7E 00 02").hex()
    '7e0002'
    >>> pretty_hex(b"\\x7e\\x00\\x02")
    '7E 00 02'
"""

from __future__ import annotations

from typing import Optional, Union

from xbframes.core.errors import MalformedPacket, MalformedReason

__all__ = [
    "int_to_bytes",
    "bytes_to_int",
    "hex_to_bytes",
    "pretty_hex",
    "ByteReader",
]

BytesLike = Union[bytes, bytearray, memoryview]


def int_to_bytes(value: int, size: int) -> bytes:
    """
    Encode an unsigned integer as big-endian bytes.

    Raises:
        ValueError: If the value does not fit in ``size`` bytes.
    """
    if value < 0 or value >> (8 * size):
        raise ValueError(f"Value {value} does not fit in {size} byte(s)")
    return value.to_bytes(size, "big")


def bytes_to_int(data: BytesLike) -> int:
    """Decode big-endian bytes as an unsigned integer."""
    return int.from_bytes(bytes(data), "big")


def hex_to_bytes(text: str) -> bytes:
    """Parse a hex string, ignoring whitespace, colons and a 0x prefix."""
    cleaned = "".join(text.split()).replace(":", "")
    if cleaned.lower().startswith("0x"):
        cleaned = cleaned[2:]
    try:
        return bytes.fromhex(cleaned)
    except ValueError:
        raise ValueError(f"Invalid hex string: {text!r}") from None


def pretty_hex(data: BytesLike) -> str:
    """Upper-case hex with a space between bytes."""
    return bytes(data).hex(" ").upper()


class ByteReader:
    """Cursor over frame data.

    Every read checks that enough bytes remain and raises
    ``MalformedPacket(TRUNCATED_FIELD)`` otherwise, naming the field and
    the packet variant being parsed.
    """

    def __init__(self, data: BytesLike, variant: Optional[str] = None, offset: int = 0) -> None:
        self._data = bytes(data)
        self._pos = offset
        self.variant = variant

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _need(self, size: int, field_name: str) -> None:
        if size > self.remaining:
            raise MalformedPacket(
                MalformedReason.TRUNCATED_FIELD,
                f"{field_name} needs {size} byte(s) at offset {self._pos}, "
                f"only {self.remaining} left",
                self.variant,
            )

    def read(self, size: int, field_name: str = "field") -> bytes:
        self._need(size, field_name)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def u8(self, field_name: str = "field") -> int:
        self._need(1, field_name)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def u16(self, field_name: str = "field") -> int:
        return bytes_to_int(self.read(2, field_name))

    def rest(self) -> Optional[bytes]:
        """Consume the remaining bytes; None if nothing is left."""
        if self.remaining <= 0:
            return None
        chunk = self._data[self._pos:]
        self._pos = len(self._data)
        return chunk
