"""
802.15.4 Raw Packets

Legacy point-to-point frame types of 802.15.4 modules. Receive frames
carry the RSSI of the last hop.

    0x00 TX 64            [fid] dst64(8) options [rf data]
    0x01 TX 16            [fid] dst16(2) options [rf data]
    0x80 RX 64            src64(8) rssi options [rf data]
    0x81 RX 16            src16(2) rssi options [rf data]
    0x82 RX IO 64         src64(8) rssi options [sample]
    0x83 RX IO 16         src16(2) rssi options [sample]
    0x89 TX status        [fid] status
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from xbframes.core.address import Address16, Address64
from xbframes.core.byteutils import ByteReader
from xbframes.core.types import FrameType, ReceiveOptions, TransmitStatus
from xbframes.io.sample import IOSample
from xbframes.packets.base import APIPacket, FrameIDPacket, check_optional_bytes, check_u8
from xbframes.packets.registry import register_packet

__all__ = [
    "TX64Request",
    "TX16Request",
    "RX64Indicator",
    "RX16Indicator",
    "RX64IOIndicator",
    "RX16IOIndicator",
    "TXStatusPacket",
]


@register_packet
@dataclass
class TX64Request(FrameIDPacket):
    """Send RF data to a 64-bit address."""

    frame_type: ClassVar[int] = FrameType.TX_64
    min_length: ClassVar[int] = 11

    dest64: Address64 = field(default_factory=lambda: Address64.BROADCAST)
    options: int = 0
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.options = check_u8("Transmit options", self.options)
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.dest64) + bytes([self.options]) + (self.rf_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> TX64Request:
        dest64 = Address64.from_bytes(reader.read(8, "64-bit destination"))
        options = reader.u8("transmit options")
        return cls(dest64=dest64, options=options, rf_data=reader.rest(), **header)


@register_packet
@dataclass
class TX16Request(FrameIDPacket):
    """Send RF data to a 16-bit address."""

    frame_type: ClassVar[int] = FrameType.TX_16
    min_length: ClassVar[int] = 5

    dest16: Address16 = field(default_factory=lambda: Address16.BROADCAST)
    options: int = 0
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.options = check_u8("Transmit options", self.options)
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.dest16) + bytes([self.options]) + (self.rf_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> TX16Request:
        dest16 = Address16.from_bytes(reader.read(2, "16-bit destination"))
        options = reader.u8("transmit options")
        return cls(dest16=dest16, options=options, rf_data=reader.rest(), **header)


@dataclass
class _RawReceive(APIPacket):
    """Shared layout of the 802.15.4 receive frames: address, RSSI, options, tail."""

    rssi: int = 0
    options: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        self.rssi = check_u8("RSSI", self.rssi)
        self.options = check_u8("Receive options", self.options)

    @property
    def is_broadcast(self) -> bool:
        return bool(self.options & ReceiveOptions.BROADCAST_PACKET)


@register_packet
@dataclass
class RX64Indicator(_RawReceive):
    """RF data from a 64-bit source address."""

    frame_type: ClassVar[int] = FrameType.RX_64
    min_length: ClassVar[int] = 11

    source64: Address64 = field(default_factory=lambda: Address64.UNKNOWN)
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.source64) + bytes([self.rssi, self.options]) + (self.rf_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RX64Indicator:
        source64 = Address64.from_bytes(reader.read(8, "64-bit source"))
        rssi = reader.u8("RSSI")
        options = reader.u8("receive options")
        return cls(source64=source64, rssi=rssi, options=options, rf_data=reader.rest(), **header)


@register_packet
@dataclass
class RX16Indicator(_RawReceive):
    """RF data from a 16-bit source address."""

    frame_type: ClassVar[int] = FrameType.RX_16
    min_length: ClassVar[int] = 5

    source16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.source16) + bytes([self.rssi, self.options]) + (self.rf_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RX16Indicator:
        source16 = Address16.from_bytes(reader.read(2, "16-bit source"))
        rssi = reader.u8("RSSI")
        options = reader.u8("receive options")
        return cls(source16=source16, rssi=rssi, options=options, rf_data=reader.rest(), **header)


@register_packet
@dataclass
class RX64IOIndicator(_RawReceive):
    """IO sample from a 64-bit source address."""

    frame_type: ClassVar[int] = FrameType.RX_IO_64
    min_length: ClassVar[int] = 11

    source64: Address64 = field(default_factory=lambda: Address64.UNKNOWN)
    sample_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.sample_data = check_optional_bytes("Sample data", self.sample_data)

    @property
    def io_sample(self) -> Optional[IOSample]:
        if self.sample_data is None or len(self.sample_data) < 5:
            return None
        return IOSample.from_bytes(self.sample_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.source64) + bytes([self.rssi, self.options]) + (self.sample_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RX64IOIndicator:
        source64 = Address64.from_bytes(reader.read(8, "64-bit source"))
        rssi = reader.u8("RSSI")
        options = reader.u8("receive options")
        return cls(source64=source64, rssi=rssi, options=options, sample_data=reader.rest(), **header)


@register_packet
@dataclass
class RX16IOIndicator(_RawReceive):
    """IO sample from a 16-bit source address."""

    frame_type: ClassVar[int] = FrameType.RX_IO_16
    min_length: ClassVar[int] = 5

    source16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    sample_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.sample_data = check_optional_bytes("Sample data", self.sample_data)

    @property
    def io_sample(self) -> Optional[IOSample]:
        if self.sample_data is None or len(self.sample_data) < 5:
            return None
        return IOSample.from_bytes(self.sample_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.source16) + bytes([self.rssi, self.options]) + (self.sample_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RX16IOIndicator:
        source16 = Address16.from_bytes(reader.read(2, "16-bit source"))
        rssi = reader.u8("RSSI")
        options = reader.u8("receive options")
        return cls(source16=source16, rssi=rssi, options=options, sample_data=reader.rest(), **header)


@register_packet
@dataclass
class TXStatusPacket(FrameIDPacket):
    """Delivery report for a TX 64 / TX 16 request."""

    frame_type: ClassVar[int] = FrameType.TX_STATUS
    min_length: ClassVar[int] = 3

    status: int = TransmitStatus.SUCCESS

    def __post_init__(self) -> None:
        super().__post_init__()
        self.status = check_u8("Transmit status", self.status)

    @property
    def transmit_status(self) -> TransmitStatus:
        return TransmitStatus.lookup(self.status)

    def _encode_fields(self) -> bytes:
        return bytes([self.status])

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> TXStatusPacket:
        return cls(status=reader.u8("transmit status"), **header)
