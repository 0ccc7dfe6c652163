"""
Common API Packets

Frame types shared by the mesh protocol families: local and remote AT
commands, addressed transmit requests, receive indicators, transmit and
modem status.

Layouts (after the frame type byte; [fid] = frame ID):

    0x08 AT command            [fid] cmd(2) [param]
    0x09 AT command queue      [fid] cmd(2) [param]
    0x10 Transmit request      [fid] dst64(8) dst16(2) radius options [rf data]
    0x11 Explicit addressing   [fid] dst64 dst16 src_ep dst_ep cluster(2) profile(2) radius options [rf data]
    0x17 Remote AT command     [fid] dst64 dst16 options cmd(2) [param]
    0x88 AT command response   [fid] cmd(2) status [value]
    0x8A Modem status          status
    0x8B Transmit status       [fid] dst16 retries delivery discovery
    0x90 Receive packet        src64 src16 options [rf data]
    0x91 Explicit RX indicator src64 src16 src_ep dst_ep cluster(2) profile(2) options [rf data]
    0x92 IO data sample RX     src64 src16 options [sample]
    0x97 Remote AT response    [fid] src64 src16 cmd(2) status [value]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from xbframes.core.address import Address16, Address64
from xbframes.core.byteutils import ByteReader
from xbframes.core.types import (
    ATCommandStatus,
    DiscoveryStatus,
    FrameType,
    ModemStatus,
    ReceiveOptions,
    TransmitStatus,
)
from xbframes.io.sample import IOSample
from xbframes.packets.base import (
    APIPacket,
    FrameIDPacket,
    check_command,
    check_optional_bytes,
    check_u8,
    check_u16,
)
from xbframes.packets.registry import register_packet

__all__ = [
    "ATCommandRequest",
    "ATCommandQueueRequest",
    "ATCommandResponse",
    "TransmitRequest",
    "ExplicitAddressingRequest",
    "RemoteATCommandRequest",
    "RemoteATCommandResponse",
    "ModemStatusIndicator",
    "TransmitStatusPacket",
    "ReceivePacket",
    "ExplicitRxIndicator",
    "IODataSampleRxIndicator",
]


def _read_command(reader: ByteReader) -> str:
    return reader.read(2, "AT command").decode("latin-1")


def _read_address64(reader: ByteReader, name: str) -> Address64:
    return Address64.from_bytes(reader.read(Address64.SIZE, name))


def _read_address16(reader: ByteReader, name: str) -> Address16:
    return Address16.from_bytes(reader.read(Address16.SIZE, name))


# =============================================================================
# AT commands
# =============================================================================


@register_packet
@dataclass
class ATCommandRequest(FrameIDPacket):
    """Local AT command, applied immediately.

    Attributes:
        command: Two-character command name, e.g. "NI".
        parameter: Value to set; None to query.
    """

    frame_type: ClassVar[int] = FrameType.AT_COMMAND
    min_length: ClassVar[int] = 4

    command: str = "NI"
    parameter: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.command = check_command(self.command)
        self.parameter = check_optional_bytes("Parameter", self.parameter)

    def _encode_fields(self) -> bytes:
        return self.command.encode("latin-1") + (self.parameter or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> ATCommandRequest:
        command = _read_command(reader)
        return cls(command=command, parameter=reader.rest(), **header)


@register_packet
@dataclass
class ATCommandQueueRequest(ATCommandRequest):
    """Local AT command, queued until AC or a non-queued command."""

    frame_type: ClassVar[int] = FrameType.AT_COMMAND_QUEUE


@register_packet
@dataclass
class ATCommandResponse(FrameIDPacket):
    """Answer to a local AT command."""

    frame_type: ClassVar[int] = FrameType.AT_COMMAND_RESPONSE
    min_length: ClassVar[int] = 5

    command: str = "NI"
    status: int = ATCommandStatus.OK
    value: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.command = check_command(self.command)
        self.status = check_u8("Status", self.status)
        self.value = check_optional_bytes("Value", self.value)

    @property
    def command_status(self) -> ATCommandStatus:
        return ATCommandStatus.lookup(self.status)

    def _encode_fields(self) -> bytes:
        return self.command.encode("latin-1") + bytes([self.status]) + (self.value or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> ATCommandResponse:
        command = _read_command(reader)
        status = reader.u8("status")
        return cls(command=command, status=status, value=reader.rest(), **header)


@register_packet
@dataclass
class RemoteATCommandRequest(FrameIDPacket):
    """AT command addressed to another module."""

    frame_type: ClassVar[int] = FrameType.REMOTE_AT_COMMAND_REQUEST
    min_length: ClassVar[int] = 15

    dest64: Address64 = field(default_factory=lambda: Address64.BROADCAST)
    dest16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    options: int = 0
    command: str = "NI"
    parameter: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.options = check_u8("Options", self.options)
        self.command = check_command(self.command)
        self.parameter = check_optional_bytes("Parameter", self.parameter)

    def _encode_fields(self) -> bytes:
        return (
            bytes(self.dest64)
            + bytes(self.dest16)
            + bytes([self.options])
            + self.command.encode("latin-1")
            + (self.parameter or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RemoteATCommandRequest:
        dest64 = _read_address64(reader, "64-bit destination")
        dest16 = _read_address16(reader, "16-bit destination")
        options = reader.u8("options")
        command = _read_command(reader)
        return cls(
            dest64=dest64,
            dest16=dest16,
            options=options,
            command=command,
            parameter=reader.rest(),
            **header,
        )


@register_packet
@dataclass
class RemoteATCommandResponse(FrameIDPacket):
    """Answer to a remote AT command."""

    frame_type: ClassVar[int] = FrameType.REMOTE_AT_COMMAND_RESPONSE
    min_length: ClassVar[int] = 15

    source64: Address64 = field(default_factory=lambda: Address64.UNKNOWN)
    source16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    command: str = "NI"
    status: int = ATCommandStatus.OK
    value: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.command = check_command(self.command)
        self.status = check_u8("Status", self.status)
        self.value = check_optional_bytes("Value", self.value)

    @property
    def command_status(self) -> ATCommandStatus:
        return ATCommandStatus.lookup(self.status)

    def _encode_fields(self) -> bytes:
        return (
            bytes(self.source64)
            + bytes(self.source16)
            + self.command.encode("latin-1")
            + bytes([self.status])
            + (self.value or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> RemoteATCommandResponse:
        source64 = _read_address64(reader, "64-bit source")
        source16 = _read_address16(reader, "16-bit source")
        command = _read_command(reader)
        status = reader.u8("status")
        return cls(
            source64=source64,
            source16=source16,
            command=command,
            status=status,
            value=reader.rest(),
            **header,
        )


# =============================================================================
# Transmit
# =============================================================================


@register_packet
@dataclass
class TransmitRequest(FrameIDPacket):
    """Send RF data to a 64/16-bit addressed device."""

    frame_type: ClassVar[int] = FrameType.TRANSMIT_REQUEST
    min_length: ClassVar[int] = 14

    dest64: Address64 = field(default_factory=lambda: Address64.BROADCAST)
    dest16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    broadcast_radius: int = 0
    options: int = 0
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.broadcast_radius = check_u8("Broadcast radius", self.broadcast_radius)
        self.options = check_u8("Options", self.options)
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return (
            bytes(self.dest64)
            + bytes(self.dest16)
            + bytes([self.broadcast_radius, self.options])
            + (self.rf_data or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> TransmitRequest:
        dest64 = _read_address64(reader, "64-bit destination")
        dest16 = _read_address16(reader, "16-bit destination")
        radius = reader.u8("broadcast radius")
        options = reader.u8("options")
        return cls(
            dest64=dest64,
            dest16=dest16,
            broadcast_radius=radius,
            options=options,
            rf_data=reader.rest(),
            **header,
        )


@register_packet
@dataclass
class ExplicitAddressingRequest(FrameIDPacket):
    """Transmit request with application-layer endpoint, cluster and profile."""

    frame_type: ClassVar[int] = FrameType.EXPLICIT_ADDRESSING_REQUEST
    min_length: ClassVar[int] = 20

    dest64: Address64 = field(default_factory=lambda: Address64.BROADCAST)
    dest16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    source_endpoint: int = 0xE8
    dest_endpoint: int = 0xE8
    cluster_id: int = 0x0011
    profile_id: int = 0xC105
    broadcast_radius: int = 0
    options: int = 0
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.source_endpoint = check_u8("Source endpoint", self.source_endpoint)
        self.dest_endpoint = check_u8("Destination endpoint", self.dest_endpoint)
        self.cluster_id = check_u16("Cluster ID", self.cluster_id)
        self.profile_id = check_u16("Profile ID", self.profile_id)
        self.broadcast_radius = check_u8("Broadcast radius", self.broadcast_radius)
        self.options = check_u8("Options", self.options)
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return (
            bytes(self.dest64)
            + bytes(self.dest16)
            + bytes([self.source_endpoint, self.dest_endpoint])
            + self.cluster_id.to_bytes(2, "big")
            + self.profile_id.to_bytes(2, "big")
            + bytes([self.broadcast_radius, self.options])
            + (self.rf_data or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> ExplicitAddressingRequest:
        return cls(
            dest64=_read_address64(reader, "64-bit destination"),
            dest16=_read_address16(reader, "16-bit destination"),
            source_endpoint=reader.u8("source endpoint"),
            dest_endpoint=reader.u8("destination endpoint"),
            cluster_id=reader.u16("cluster ID"),
            profile_id=reader.u16("profile ID"),
            broadcast_radius=reader.u8("broadcast radius"),
            options=reader.u8("options"),
            rf_data=reader.rest(),
            **header,
        )


@register_packet
@dataclass
class TransmitStatusPacket(FrameIDPacket):
    """Delivery report for a transmit request."""

    frame_type: ClassVar[int] = FrameType.TRANSMIT_STATUS
    min_length: ClassVar[int] = 7

    dest16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    retry_count: int = 0
    delivery_status: int = TransmitStatus.SUCCESS
    discovery_status: int = DiscoveryStatus.NO_DISCOVERY_OVERHEAD

    def __post_init__(self) -> None:
        super().__post_init__()
        self.retry_count = check_u8("Retry count", self.retry_count)
        self.delivery_status = check_u8("Delivery status", self.delivery_status)
        self.discovery_status = check_u8("Discovery status", self.discovery_status)

    @property
    def transmit_status(self) -> TransmitStatus:
        return TransmitStatus.lookup(self.delivery_status)

    @property
    def discovery(self) -> DiscoveryStatus:
        return DiscoveryStatus.lookup(self.discovery_status)

    def _encode_fields(self) -> bytes:
        return bytes(self.dest16) + bytes([self.retry_count, self.delivery_status, self.discovery_status])

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> TransmitStatusPacket:
        return cls(
            dest16=_read_address16(reader, "16-bit destination"),
            retry_count=reader.u8("retry count"),
            delivery_status=reader.u8("delivery status"),
            discovery_status=reader.u8("discovery status"),
            **header,
        )


# =============================================================================
# Indicators
# =============================================================================


@register_packet
@dataclass
class ModemStatusIndicator(APIPacket):
    """Unsolicited modem status change."""

    frame_type: ClassVar[int] = FrameType.MODEM_STATUS
    min_length: ClassVar[int] = 2

    status: int = ModemStatus.HARDWARE_RESET

    def __post_init__(self) -> None:
        super().__post_init__()
        self.status = check_u8("Modem status", self.status)

    @property
    def modem_status(self) -> ModemStatus:
        return ModemStatus.lookup(self.status)

    def _encode_fields(self) -> bytes:
        return bytes([self.status])

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> ModemStatusIndicator:
        return cls(status=reader.u8("modem status"), **header)


class _ReceiveOptionsMixin:
    """Helpers for packets with a receive options byte."""

    options: int

    @property
    def is_broadcast(self) -> bool:
        return bool(self.options & ReceiveOptions.BROADCAST_PACKET)

    @property
    def is_acknowledged(self) -> bool:
        return bool(self.options & ReceiveOptions.PACKET_ACKNOWLEDGED)


@register_packet
@dataclass
class ReceivePacket(_ReceiveOptionsMixin, APIPacket):
    """RF data received from a remote device."""

    frame_type: ClassVar[int] = FrameType.RECEIVE_PACKET
    min_length: ClassVar[int] = 12

    source64: Address64 = field(default_factory=lambda: Address64.UNKNOWN)
    source16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    options: int = 0
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.options = check_u8("Receive options", self.options)
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.source64) + bytes(self.source16) + bytes([self.options]) + (self.rf_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> ReceivePacket:
        source64 = _read_address64(reader, "64-bit source")
        source16 = _read_address16(reader, "16-bit source")
        options = reader.u8("receive options")
        return cls(source64=source64, source16=source16, options=options, rf_data=reader.rest(), **header)


@register_packet
@dataclass
class ExplicitRxIndicator(_ReceiveOptionsMixin, APIPacket):
    """RF data received with its application-layer addressing."""

    frame_type: ClassVar[int] = FrameType.EXPLICIT_RX_INDICATOR
    min_length: ClassVar[int] = 18

    source64: Address64 = field(default_factory=lambda: Address64.UNKNOWN)
    source16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    source_endpoint: int = 0xE8
    dest_endpoint: int = 0xE8
    cluster_id: int = 0x0011
    profile_id: int = 0xC105
    options: int = 0
    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.source_endpoint = check_u8("Source endpoint", self.source_endpoint)
        self.dest_endpoint = check_u8("Destination endpoint", self.dest_endpoint)
        self.cluster_id = check_u16("Cluster ID", self.cluster_id)
        self.profile_id = check_u16("Profile ID", self.profile_id)
        self.options = check_u8("Receive options", self.options)
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return (
            bytes(self.source64)
            + bytes(self.source16)
            + bytes([self.source_endpoint, self.dest_endpoint])
            + self.cluster_id.to_bytes(2, "big")
            + self.profile_id.to_bytes(2, "big")
            + bytes([self.options])
            + (self.rf_data or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> ExplicitRxIndicator:
        return cls(
            source64=_read_address64(reader, "64-bit source"),
            source16=_read_address16(reader, "16-bit source"),
            source_endpoint=reader.u8("source endpoint"),
            dest_endpoint=reader.u8("destination endpoint"),
            cluster_id=reader.u16("cluster ID"),
            profile_id=reader.u16("profile ID"),
            options=reader.u8("receive options"),
            rf_data=reader.rest(),
            **header,
        )


@register_packet
@dataclass
class IODataSampleRxIndicator(_ReceiveOptionsMixin, APIPacket):
    """IO sample received from a remote device."""

    frame_type: ClassVar[int] = FrameType.IO_DATA_SAMPLE_RX_INDICATOR
    min_length: ClassVar[int] = 12

    source64: Address64 = field(default_factory=lambda: Address64.UNKNOWN)
    source16: Address16 = field(default_factory=lambda: Address16.UNKNOWN)
    options: int = 0
    sample_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.options = check_u8("Receive options", self.options)
        self.sample_data = check_optional_bytes("Sample data", self.sample_data)

    @property
    def io_sample(self) -> Optional[IOSample]:
        """Parsed sample, or None if the block is missing or too short."""
        if self.sample_data is None or len(self.sample_data) < 5:
            return None
        return IOSample.from_bytes(self.sample_data)

    def _encode_fields(self) -> bytes:
        return bytes(self.source64) + bytes(self.source16) + bytes([self.options]) + (self.sample_data or b"")

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> IODataSampleRxIndicator:
        source64 = _read_address64(reader, "64-bit source")
        source16 = _read_address16(reader, "16-bit source")
        options = reader.u8("receive options")
        return cls(source64=source64, source16=source16, options=options, sample_data=reader.rest(), **header)
