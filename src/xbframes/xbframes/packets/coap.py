"""
CoAP Passthrough Packets

HTTP-style request/response pair of Thread modules. The request carries
a method, an IPv6 destination, a URI and a TLV option list; the response
carries a RESTful status code and its own option list.

    0x1E CoAP passthru TX request   [fid] method dst_ip(16) uri_len uri opts_len opts [payload]
    0x9E CoAP passthru RX response  [fid] src_ip(16) status(2) opts_len opts [payload]

opts_len is the total encoded size of the option entries, not their
count.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from xbframes.core.byteutils import ByteReader
from xbframes.core.constants import MAX_OPTIONS_LENGTH
from xbframes.core.errors import MalformedPacket, MalformedReason
from xbframes.core.tlv import TLV, encode_tlvs, parse_tlvs, tlvs_length
from xbframes.core.types import FrameType, HTTPMethod, RestfulStatus
from xbframes.packets.base import FrameIDPacket, check_optional_bytes, check_u8, check_u16
from xbframes.packets.registry import register_packet

__all__ = ["CoAPPassthruTxRequest", "CoAPPassthruRxResponse"]


IPv6Like = Union[ipaddress.IPv6Address, str, int]


def _ipv6(value: IPv6Like) -> ipaddress.IPv6Address:
    try:
        return ipaddress.IPv6Address(value)
    except ipaddress.AddressValueError as e:
        raise ValueError(f"Invalid IPv6 address: {value!r}") from e


def _check_options(options: Optional[list[TLV]]) -> list[TLV]:
    entries = list(options or [])
    for entry in entries:
        if not isinstance(entry, TLV):
            raise ValueError(f"Options must be TLV entries, got {type(entry).__name__}")
    length = tlvs_length(entries)
    if length > MAX_OPTIONS_LENGTH:
        raise ValueError(f"Options must encode to at most {MAX_OPTIONS_LENGTH} bytes, got {length}")
    return entries


def _read_options(reader: ByteReader) -> list[TLV]:
    length = reader.u8("options length")
    block = reader.read(length, "options")
    try:
        return parse_tlvs(block)
    except ValueError as e:
        raise MalformedPacket(MalformedReason.BAD_OPTIONS, str(e), reader.variant) from e


def _write_options(options: list[TLV]) -> bytes:
    return bytes([tlvs_length(options)]) + encode_tlvs(options)


@register_packet
@dataclass
class CoAPPassthruTxRequest(FrameIDPacket):
    """
    CoAP request to a remote Thread node.

    Attributes:
        method: HTTP method code (see HTTPMethod).
        dest_address: IPv6 address of the target node.
        uri: Resource URI, at most 255 bytes.
        options: TLV option entries.
        payload: Request body, e.g. the value to PUT.
    """

    frame_type: ClassVar[int] = FrameType.COAP_PASSTHRU_TX_REQUEST
    # tag, fid, method, address, uri length, options length
    min_length: ClassVar[int] = 21

    method: int = HTTPMethod.GET
    dest_address: ipaddress.IPv6Address = field(default_factory=lambda: ipaddress.IPv6Address("::"))
    uri: str = ""
    options: list[TLV] = field(default_factory=list)
    payload: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.method = check_u8("HTTP method", self.method)
        self.dest_address = _ipv6(self.dest_address)
        if not isinstance(self.uri, str):
            raise ValueError(f"URI must be a string, got {type(self.uri).__name__}")
        if len(self.uri.encode("utf-8")) > 0xFF:
            raise ValueError(f"URI must be at most 255 bytes, got {len(self.uri.encode('utf-8'))}")
        self.options = _check_options(self.options)
        self.payload = check_optional_bytes("Payload", self.payload)

    @property
    def http_method(self) -> HTTPMethod:
        return HTTPMethod.lookup(self.method)

    def _encode_fields(self) -> bytes:
        uri = self.uri.encode("utf-8")
        return (
            bytes([self.method])
            + self.dest_address.packed
            + bytes([len(uri)])
            + uri
            + _write_options(self.options)
            + (self.payload or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> CoAPPassthruTxRequest:
        method = reader.u8("HTTP method")
        dest = ipaddress.IPv6Address(reader.read(16, "destination address"))
        uri_length = reader.u8("URI length")
        uri_bytes = reader.read(uri_length, "URI")
        try:
            uri = uri_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPacket(MalformedReason.INVALID_VALUE, f"URI is not valid UTF-8: {e}", reader.variant) from e
        options = _read_options(reader)
        return cls(
            method=method,
            dest_address=dest,
            uri=uri,
            options=options,
            payload=reader.rest(),
            **header,
        )


@register_packet
@dataclass
class CoAPPassthruRxResponse(FrameIDPacket):
    """
    CoAP response from a remote Thread node.

    Attributes:
        source_address: IPv6 address of the responding node.
        status: RESTful status code (see RestfulStatus).
        options: TLV option entries.
        payload: Response body.
    """

    frame_type: ClassVar[int] = FrameType.COAP_PASSTHRU_RX_RESPONSE
    min_length: ClassVar[int] = 21

    source_address: ipaddress.IPv6Address = field(default_factory=lambda: ipaddress.IPv6Address("::"))
    status: int = RestfulStatus.SUCCESS
    options: list[TLV] = field(default_factory=list)
    payload: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.source_address = _ipv6(self.source_address)
        self.status = check_u16("RESTful status", self.status)
        self.options = _check_options(self.options)
        self.payload = check_optional_bytes("Payload", self.payload)

    @property
    def restful_status(self) -> RestfulStatus:
        return RestfulStatus.lookup(self.status)

    def _encode_fields(self) -> bytes:
        return (
            self.source_address.packed
            + self.status.to_bytes(2, "big")
            + _write_options(self.options)
            + (self.payload or b"")
        )

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> CoAPPassthruRxResponse:
        source = ipaddress.IPv6Address(reader.read(16, "source address"))
        status = reader.u16("RESTful status")
        options = _read_options(reader)
        return cls(
            source_address=source,
            status=status,
            options=options,
            payload=reader.rest(),
            **header,
        )
