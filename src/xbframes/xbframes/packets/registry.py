"""
Packet Registry

Static table from frame type byte to the (parse, serialize) pair of its
packet variant. Variants add themselves with the ``register_packet``
class decorator when their module is imported; importing
``xbframes.packets`` loads every built-in variant.

Frame types without a registered variant decode to ``UnknownPacket``
unless strict decoding is requested.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import NamedTuple, Optional, TypeVar, Union

from xbframes.core.errors import MalformedPacket, MalformedReason, UnknownFrameType
from xbframes.frames.deframer import RawFrame, encode_frame, parse_frame
from xbframes.packets.base import APIPacket, GenericPacket, UnknownPacket

__all__ = [
    "PacketCodec",
    "register_packet",
    "get_codec",
    "registered_types",
    "decode",
    "decode_bytes",
    "encode",
    "encode_bytes",
    "to_wire",
    "from_wire",
]

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


class PacketCodec(NamedTuple):
    """Parse/serialize pair of one packet variant."""

    variant: type[APIPacket]
    parse: Callable[[bytes], APIPacket]
    serialize: Callable[[APIPacket], bytes]


_CODECS: dict[int, PacketCodec] = {}


def register_packet(cls: T) -> T:
    """
    Class decorator adding a packet variant to the registry.

    Raises:
        ValueError: If another variant already owns the frame type.
    """
    tag = int(cls.frame_type)
    existing = _CODECS.get(tag)
    if existing is not None and existing.variant is not cls:
        raise ValueError(
            f"Frame type 0x{tag:02X} already registered to {existing.variant.__name__}"
        )
    _CODECS[tag] = PacketCodec(cls, cls.from_bytes, cls.to_bytes)
    return cls


def get_codec(frame_type: int) -> Optional[PacketCodec]:
    return _CODECS.get(frame_type)


def registered_types() -> list[int]:
    return sorted(_CODECS)


def decode(frame: Optional[RawFrame], strict: bool = False) -> APIPacket:
    """
    Turn a raw frame into a typed packet.

    Args:
        frame: Checksum-validated frame from the deframer.
        strict: Raise UnknownFrameType for unregistered frame types
            instead of returning an UnknownPacket.

    Raises:
        MalformedPacket: If the frame does not match its variant layout.
        UnknownFrameType: In strict mode, for unregistered frame types.
    """
    if frame is None:
        raise MalformedPacket(MalformedReason.NULL_INPUT, "frame cannot be None")
    codec = _CODECS.get(frame.frame_type)
    if codec is None:
        if strict:
            raise UnknownFrameType(frame.frame_type)
        logger.debug(f"No variant for frame type 0x{frame.frame_type:02X}, decoding as unknown")
        return UnknownPacket.from_bytes(frame.data)
    return codec.parse(frame.data)


def decode_bytes(data: Optional[Union[bytes, bytearray]], strict: bool = False) -> APIPacket:
    """Decode frame data (frame type byte first)."""
    if data is None:
        raise MalformedPacket(MalformedReason.NULL_INPUT, "frame data cannot be None")
    if not data:
        raise MalformedPacket(MalformedReason.TOO_SHORT, "frame data is empty")
    return decode(RawFrame.from_data(data), strict=strict)


def encode(packet: APIPacket) -> RawFrame:
    """Serialize a packet into a raw frame."""
    codec = _CODECS.get(packet.frame_type)
    if codec is not None and isinstance(packet, codec.variant):
        return RawFrame.from_data(codec.serialize(packet))
    return RawFrame.from_data(packet.to_bytes())


def encode_bytes(packet: APIPacket) -> bytes:
    """Serialize a packet into frame data."""
    return encode(packet).data


def to_wire(packet: APIPacket, escaped: bool = True) -> bytes:
    """Complete wire form: delimiter, length, frame data and checksum."""
    return encode_frame(encode(packet), escaped=escaped)


def from_wire(data: Union[bytes, bytearray], escaped: bool = True, strict: bool = False) -> APIPacket:
    """Parse one complete wire frame into a packet."""
    return decode(parse_frame(data, escaped=escaped), strict=strict)


register_packet(GenericPacket)
