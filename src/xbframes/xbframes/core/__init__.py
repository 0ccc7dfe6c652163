"""API Frame Core Components

Building blocks shared by the framing, packet and dispatch layers:
- Checksum calculation
- 64/16-bit device addresses
- Frame type and status enumerations
- Byte field helpers and TLV option lists
- Exception hierarchy
- Protocol constants
"""

from xbframes.core.address import Address16, Address64
from xbframes.core.byteutils import ByteReader, bytes_to_int, hex_to_bytes, int_to_bytes, pretty_hex
from xbframes.core.checksum import checksum, verify_checksum
from xbframes.core.constants import (
    ESCAPE_BYTE,
    ESCAPE_XOR,
    NO_FRAME_ID,
    SPECIAL_BYTES,
    START_DELIMITER,
    XOFF,
    XON,
)
from xbframes.core.errors import (
    BadChecksum,
    CorrelationError,
    DecodeError,
    DispatcherNotRunning,
    DuplicateCorrelationID,
    FrameError,
    IncompleteFrame,
    MalformedPacket,
    MalformedReason,
    RequestCancelled,
    RequestTimeout,
    UnknownFrameType,
    XBFramesError,
)
from xbframes.core.tlv import TLV, encode_tlvs, parse_tlvs, tlvs_length
from xbframes.core.types import (
    ATCommandStatus,
    DiscoveryStatus,
    FrameType,
    HTTPMethod,
    ModemStatus,
    NetworkProtocol,
    OperatingMode,
    RestfulStatus,
    TransmitStatus,
)

__all__ = [
    # Checksum
    "checksum",
    "verify_checksum",
    # Addresses
    "Address64",
    "Address16",
    # Types
    "OperatingMode",
    "FrameType",
    "ModemStatus",
    "TransmitStatus",
    "DiscoveryStatus",
    "ATCommandStatus",
    "HTTPMethod",
    "RestfulStatus",
    "NetworkProtocol",
    # Bytes and TLV
    "ByteReader",
    "int_to_bytes",
    "bytes_to_int",
    "hex_to_bytes",
    "pretty_hex",
    "TLV",
    "parse_tlvs",
    "encode_tlvs",
    "tlvs_length",
    # Constants
    "START_DELIMITER",
    "ESCAPE_BYTE",
    "ESCAPE_XOR",
    "XON",
    "XOFF",
    "SPECIAL_BYTES",
    "NO_FRAME_ID",
    # Errors
    "XBFramesError",
    "FrameError",
    "BadChecksum",
    "IncompleteFrame",
    "DecodeError",
    "UnknownFrameType",
    "MalformedReason",
    "MalformedPacket",
    "CorrelationError",
    "DuplicateCorrelationID",
    "RequestTimeout",
    "RequestCancelled",
    "DispatcherNotRunning",
]
