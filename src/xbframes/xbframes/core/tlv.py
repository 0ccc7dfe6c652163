"""
TLV Option Lists

Type-length-value entries as carried in the options block of CoAP
passthrough frames:

    +------+-----+-------------+
    | type | len | value (len) |
    +------+-----+-------------+

A length byte of 0xFF announces a 2-byte big-endian extended length
(used for values of 255 bytes or more). Values are never empty, so every
encoded entry is at least 3 bytes long and a whole options block is
either empty or at least 3 bytes long.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from xbframes.core.byteutils import pretty_hex
from xbframes.core.constants import EXTENDED_TLV_LENGTH

__all__ = ["TLV", "MIN_TLV_SIZE", "parse_tlvs", "encode_tlvs", "tlvs_length"]

MIN_TLV_SIZE: int = 3


@dataclass(frozen=True)
class TLV:
    """A single option entry.

    Examples:
        >>> TLV(0x0B, b"temp").to_bytes().hex()
        '0b0474656d70'
        >>> TLV.from_bytes(bytes.fromhex("0b0474656d70"))
        TLV(type=11, value=b'temp')
    """

    type: int
    value: bytes

    def __post_init__(self) -> None:
        if not 0 <= self.type <= 0xFF:
            raise ValueError(f"TLV type must be 0-255, got {self.type}")
        if not isinstance(self.value, (bytes, bytearray)):
            raise ValueError(f"TLV value must be bytes, got {type(self.value).__name__}")
        if not self.value:
            raise ValueError("TLV value must not be empty")
        if len(self.value) > 0xFFFF:
            raise ValueError(f"TLV value must be at most 65535 bytes, got {len(self.value)}")
        object.__setattr__(self, "value", bytes(self.value))

    @property
    def encoded_length(self) -> int:
        """Length of the entry on the wire."""
        header = 4 if len(self.value) >= EXTENDED_TLV_LENGTH else 2
        return header + len(self.value)

    def to_bytes(self) -> bytes:
        size = len(self.value)
        if size >= EXTENDED_TLV_LENGTH:
            header = bytes([self.type, EXTENDED_TLV_LENGTH]) + size.to_bytes(2, "big")
        else:
            header = bytes([self.type, size])
        return header + self.value

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> TLV:
        """
        Parse exactly one entry.

        Raises:
            ValueError: If data is shorter than 3 bytes or its length does
                not match the declared value length.
        """
        entries = parse_tlvs(data)
        if len(entries) != 1:
            raise ValueError(f"Expected a single TLV entry, got {len(entries)}")
        return entries[0]

    def __str__(self) -> str:
        return f"Type: {self.type:02X}, length: {len(self.value)}, value: {pretty_hex(self.value)}"


def parse_tlvs(data: Union[bytes, bytearray]) -> list[TLV]:
    """
    Parse an options block into TLV entries.

    Args:
        data: The options block, exactly as long as its declared length.

    Returns:
        Entries in wire order. Empty list for an empty block.

    Raises:
        ValueError: If the block is 1-2 bytes long, an entry is cut short
            or an entry has an empty value.

    Examples:
        >>> parse_tlvs(b"")
        []
        >>> [t.type for t in parse_tlvs(bytes.fromhex("0101aa0202bbcc"))]
        [1, 2]
    """
    data = bytes(data)
    if 0 < len(data) < MIN_TLV_SIZE:
        raise ValueError(f"TLV length must be at least {MIN_TLV_SIZE} bytes.")

    entries: list[TLV] = []
    i = 0
    while i < len(data):
        tlv_type = data[i]
        if i + 1 >= len(data):
            raise ValueError(f"Invalid TLV length: entry at offset {i} has no length byte")
        length = data[i + 1]
        i += 2
        if length == EXTENDED_TLV_LENGTH:
            if i + 2 > len(data):
                raise ValueError(f"Invalid TLV length: extended length cut short at offset {i}")
            length = int.from_bytes(data[i:i + 2], "big")
            i += 2
        if length == 0:
            raise ValueError(f"Invalid TLV length: entry of type 0x{tlv_type:02X} has no value")
        if i + length > len(data):
            raise ValueError(
                f"Invalid TLV length: entry of type 0x{tlv_type:02X} declares {length} "
                f"byte(s), {len(data) - i} available"
            )
        entries.append(TLV(tlv_type, data[i:i + length]))
        i += length
    return entries


def encode_tlvs(entries: Iterable[TLV]) -> bytes:
    """Concatenate the wire form of each entry."""
    return b"".join(entry.to_bytes() for entry in entries)


def tlvs_length(entries: Sequence[TLV]) -> int:
    """Sum of the encoded length of each entry (not the entry count)."""
    return sum(entry.encoded_length for entry in entries)
