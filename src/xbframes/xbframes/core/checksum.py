"""
API Frame Checksum

8-bit checksum over the frame data (frame type through the last data byte,
unescaped): 0xFF minus the low byte of the sum of all bytes. A frame is
valid when the low byte of sum(frame data) + checksum is 0xFF.

Test vectors:
- b"" -> 0xFF
- bytes.fromhex("0801 4E49") -> 0x5F  (AT command NI, frame ID 1)
- bytes.fromhex("8A 06") -> 0x6F
"""

from __future__ import annotations

__all__ = ["checksum", "verify_checksum"]


def checksum(data: bytes | bytearray) -> int:
    """
    Calculate the API frame checksum.

    Args:
        data: Unescaped frame data, starting with the frame type byte.

    Returns:
        8-bit checksum value.

    Examples:
        >>> checksum(b"")
        255
        >>> hex(checksum(bytes.fromhex("08014e49")))
        '0x5f'
        >>> hex(checksum(bytes.fromhex("8a06")))
        '0x6f'
    """
    return 0xFF - (sum(data) & 0xFF)


def verify_checksum(data: bytes | bytearray, received: int) -> bool:
    """
    Check a received checksum against the frame data.

    Args:
        data: Unescaped frame data.
        received: Checksum byte that followed the frame data.

    Returns:
        True if the frame data and checksum add up to 0xFF.

    Examples:
        >>> verify_checksum(bytes.fromhex("08014e49"), 0x5F)
        True
        >>> verify_checksum(bytes.fromhex("08014e48"), 0x5F)
        False
    """
    return (sum(data) + received) & 0xFF == 0xFF
