"""
IPv4 Packets

Socket-style send/receive frames of Wi-Fi and cellular modules.

    0x20 TX IPv4   [fid] dst_ip(4) dst_port(2) src_port(2) protocol options [data]
    0xB0 RX IPv4   src_ip(4) dst_port(2) src_port(2) protocol status [data]

The RX status byte is reserved and sent as zero; it is kept on the packet
so that frames round-trip unchanged.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from xbframes.core.byteutils import ByteReader
from xbframes.core.types import FrameType, NetworkProtocol
from xbframes.packets.base import APIPacket, FrameIDPacket, check_optional_bytes, check_u8, check_u16
from xbframes.packets.registry import register_packet

__all__ = ["TXIPv4Request", "RXIPv4Indicator", "TX_OPTIONS_CLOSE_SOCKET"]

# Close the socket after sending (TCP)
TX_OPTIONS_CLOSE_SOCKET: int = 0x02

IPv4Like = Union[ipaddress.IPv4Address, str, int]


def _ipv4(value: IPv4Like) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(value)
    except ipaddress.AddressValueError as e:
        raise ValueError(f"Invalid IPv4 address: {value!r}") from e


@register_packet
@dataclass
class TXIPv4Request(FrameIDPacket):
    """Send data to an IPv4 host."""

    frame_type: ClassVar[int] = FrameType.TX_IPV4
    min_length: ClassVar[int] = 12

    dest_address: ipaddress.IPv4Address = field(default_factory=lambda: ipaddress.IPv4Address("0.0.0.0"))
    dest_port: int = 0
    source_port: int = 0
    protocol: int = NetworkProtocol.UDP
    options: int = 0
    data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.dest_address = _ipv4(self.dest_address)
        self.dest_port = check_u16("Destination port", self.dest_port)
        self.source_port = check_u16("Source port", self.source_port)
        self.protocol = check_u8("Protocol", self.protocol)
        self.options = check_u8("Transmit options", self.options)
        self.data = check_optional_bytes("Data", self.data)

    @property
    def network_protocol(self) -> NetworkProtocol:
        return NetworkProtocol.lookup(self.protocol)

    def _encode_fields(self) -> bytes:
        return (
            self.dest_address.packed
            + self.dest_port.to_bytes(2, "big")
            + self.source_port.to_bytes(2, "big")
            + bytes([self.protocol, self.options])
            + (self.data or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> TXIPv4Request:
        return cls(
            dest_address=ipaddress.IPv4Address(reader.read(4, "destination address")),
            dest_port=reader.u16("destination port"),
            source_port=reader.u16("source port"),
            protocol=reader.u8("protocol"),
            options=reader.u8("transmit options"),
            data=reader.rest(),
            **header,
        )


@register_packet
@dataclass
class RXIPv4Indicator(APIPacket):
    """Data received from an IPv4 host."""

    frame_type: ClassVar[int] = FrameType.RX_IPV4
    min_length: ClassVar[int] = 11

    source_address: ipaddress.IPv4Address = field(default_factory=lambda: ipaddress.IPv4Address("0.0.0.0"))
    dest_port: int = 0
    source_port: int = 0
    protocol: int = NetworkProtocol.UDP
    status: int = 0
    data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.source_address = _ipv4(self.source_address)
        self.dest_port = check_u16("Destination port", self.dest_port)
        self.source_port = check_u16("Source port", self.source_port)
        self.protocol = check_u8("Protocol", self.protocol)
        self.status = check_u8("Status", self.status)
        self.data = check_optional_bytes("Data", self.data)

    @property
    def network_protocol(self) -> NetworkProtocol:
        return NetworkProtocol.lookup(self.protocol)

    def _encode_fields(self) -> bytes:
        return (
            self.source_address.packed
            + self.dest_port.to_bytes(2, "big")
            + self.source_port.to_bytes(2, "big")
            + bytes([self.protocol, self.status])
            + (self.data or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RXIPv4Indicator:
        return cls(
            source_address=ipaddress.IPv4Address(reader.read(4, "source address")),
            dest_port=reader.u16("destination port"),
            source_port=reader.u16("source port"),
            protocol=reader.u8("protocol"),
            status=reader.u8("status"),
            data=reader.rest(),
            **header,
        )
