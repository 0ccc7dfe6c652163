"""
Radio Addresses

64-bit (IEEE extended) and 16-bit (network) device addresses as they
appear in API frames. Both are big-endian on the wire.

Reserved values:
- 64-bit broadcast: 000000000000FFFF
- 64-bit coordinator: 0000000000000000
- 64-bit unknown: FFFFFFFFFFFFFFFF
- 16-bit broadcast: FFFF
- 16-bit unknown: FFFE
- 16-bit coordinator: 0000

IPv4 and IPv6 addresses are handled with the ``ipaddress`` module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

__all__ = ["Address64", "Address16"]


def _parse_hex(value: str, size: int, kind: str) -> int:
    text = value.strip().replace(":", "").replace("-", "").replace(" ", "")
    if text.lower().startswith("0x"):
        text = text[2:]
    if not text or len(text) > size * 2:
        raise ValueError(f"{kind} address must be 1-{size * 2} hex digits, got {value!r}")
    try:
        return int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid {kind} address: {value!r}") from None


@dataclass(frozen=True, slots=True)
class Address64:
    """64-bit device address.

    Examples
    --------
        >>> addr = Address64.from_hex("0013A20040A1B2C3")
        >>> str(addr)
        '0013A20040A1B2C3'
        >>> Address64.from_bytes(bytes(addr)) == addr
        True
        >>> Address64.BROADCAST.is_broadcast
        True
    """

    value: int = 0

    SIZE: ClassVar[int] = 8
    BROADCAST: ClassVar[Address64]
    COORDINATOR: ClassVar[Address64]
    UNKNOWN: ClassVar[Address64]

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFFFFFFFFFFFFFFFF:
            raise ValueError(f"64-bit address must be 0-0xFFFFFFFFFFFFFFFF, got {self.value:#x}")

    @classmethod
    def from_hex(cls, value: str) -> Address64:
        """Parse a hex string, with or without separators."""
        return cls(_parse_hex(value, cls.SIZE, "64-bit"))

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> Address64:
        if len(data) != cls.SIZE:
            raise ValueError(f"64-bit address must be 8 bytes, got {len(data)}")
        return cls(int.from_bytes(data, "big"))

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(self.SIZE, "big")

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __str__(self) -> str:
        return f"{self.value:016X}"

    @property
    def is_broadcast(self) -> bool:
        return self.value == 0xFFFF


@dataclass(frozen=True, slots=True)
class Address16:
    """16-bit network address.

    Examples
    --------
        >>> str(Address16.from_hex("fffe"))
        'FFFE'
        >>> Address16.UNKNOWN.is_unknown
        True
    """

    value: int = 0xFFFE

    SIZE: ClassVar[int] = 2
    BROADCAST: ClassVar[Address16]
    COORDINATOR: ClassVar[Address16]
    UNKNOWN: ClassVar[Address16]

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFFFF:
            raise ValueError(f"16-bit address must be 0-65535, got {self.value}")

    @classmethod
    def from_hex(cls, value: str) -> Address16:
        return cls(_parse_hex(value, cls.SIZE, "16-bit"))

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> Address16:
        if len(data) != cls.SIZE:
            raise ValueError(f"16-bit address must be 2 bytes, got {len(data)}")
        return cls(int.from_bytes(data, "big"))

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(self.SIZE, "big")

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __str__(self) -> str:
        return f"{self.value:04X}"

    @property
    def is_broadcast(self) -> bool:
        return self.value == 0xFFFF

    @property
    def is_unknown(self) -> bool:
        return self.value == 0xFFFE


Address64.BROADCAST = Address64(0xFFFF)
Address64.COORDINATOR = Address64(0)
Address64.UNKNOWN = Address64(0xFFFFFFFFFFFFFFFF)

Address16.BROADCAST = Address16(0xFFFF)
Address16.COORDINATOR = Address16(0)
Address16.UNKNOWN = Address16(0xFFFE)
