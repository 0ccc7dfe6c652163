"""
API Frame Field Definitions

Enumerations for the one-byte (and two-byte) coded fields carried in API
frames: frame types, status codes and protocol selectors.

Status fields are stored on packets as plain integers so that values
unknown to this library survive a decode/encode round trip. Use the
``lookup`` class method of each status enum to get an enum member, falling
back to ``UNKNOWN``.
"""

from __future__ import annotations

from enum import Enum, IntEnum

__all__ = [
    "OperatingMode",
    "FrameType",
    "ModemStatus",
    "TransmitStatus",
    "DiscoveryStatus",
    "ATCommandStatus",
    "HTTPMethod",
    "RestfulStatus",
    "NetworkProtocol",
    "ReceiveOptions",
    "TransmitOptions",
]


class _LookupMixin:
    """Provide ``lookup(value)`` with an ``UNKNOWN`` fallback."""

    @classmethod
    def lookup(cls, value: int):
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN  # type: ignore[attr-defined]


class OperatingMode(Enum):
    """Serial API operating mode (AP parameter)."""

    API = "api"  # AP=1, no escaping
    API_ESCAPE = "api_escape"  # AP=2, special bytes escaped

    @property
    def escaped(self) -> bool:
        return self is OperatingMode.API_ESCAPE


class FrameType(IntEnum):
    """API frame type tags."""

    TX_64 = 0x00
    TX_16 = 0x01
    AT_COMMAND = 0x08
    AT_COMMAND_QUEUE = 0x09
    TRANSMIT_REQUEST = 0x10
    EXPLICIT_ADDRESSING_REQUEST = 0x11
    REMOTE_AT_COMMAND_REQUEST = 0x17
    COAP_PASSTHRU_TX_REQUEST = 0x1E
    TX_IPV4 = 0x20
    RX_64 = 0x80
    RX_16 = 0x81
    RX_IO_64 = 0x82
    RX_IO_16 = 0x83
    AT_COMMAND_RESPONSE = 0x88
    TX_STATUS = 0x89
    MODEM_STATUS = 0x8A
    TRANSMIT_STATUS = 0x8B
    RECEIVE_PACKET = 0x90
    EXPLICIT_RX_INDICATOR = 0x91
    IO_DATA_SAMPLE_RX_INDICATOR = 0x92
    REMOTE_AT_COMMAND_RESPONSE = 0x97
    COAP_PASSTHRU_RX_RESPONSE = 0x9E
    RX_IPV4 = 0xB0
    GENERIC = 0xFF


class ModemStatus(_LookupMixin, IntEnum):
    """Modem status indicator values (frame type 0x8A)."""

    HARDWARE_RESET = 0x00
    WATCHDOG_TIMER_RESET = 0x01
    JOINED_NETWORK = 0x02
    DISASSOCIATED = 0x03
    ERROR_SYNCHRONIZATION_LOST = 0x04
    COORDINATOR_REALIGNMENT = 0x05
    COORDINATOR_STARTED = 0x06
    NETWORK_SECURITY_KEY_UPDATED = 0x07
    NETWORK_WOKE_UP = 0x0B
    NETWORK_WENT_TO_SLEEP = 0x0C
    VOLTAGE_SUPPLY_LIMIT_EXCEEDED = 0x0D
    MODEM_CONFIG_CHANGED_WHILE_JOINING = 0x11
    ERROR_STACK = 0x80
    SEND_OR_JOIN_COMMAND_ISSUED_WITHOUT_CONNECTION_FROM_AP = 0x82
    ACCESS_POINT_NOT_FOUND = 0x83
    PSK_NOT_CONFIGURED = 0x84
    SSID_NOT_FOUND = 0x87
    FAILED_JOIN_SECURITY_SETTINGS = 0x88
    INVALID_CHANNEL = 0x8A
    FAILED_TO_JOIN_ACCESS_POINT = 0x8E
    UNKNOWN = 0xFF


class TransmitStatus(_LookupMixin, IntEnum):
    """Delivery status of a transmission (frame types 0x89 and 0x8B)."""

    SUCCESS = 0x00
    NO_ACK = 0x01
    CCA_FAILURE = 0x02
    PURGED = 0x03
    WIFI_PHYSICAL_ERROR = 0x04
    INVALID_DESTINATION = 0x15
    NO_BUFFERS = 0x18
    NETWORK_ACK_FAILURE = 0x21
    NOT_JOINED = 0x22
    SELF_ADDRESSED = 0x23
    ADDRESS_NOT_FOUND = 0x24
    ROUTE_NOT_FOUND = 0x25
    BROADCAST_FAILED = 0x26
    INVALID_BINDING_TABLE_INDEX = 0x2B
    INVALID_ENDPOINT = 0x2C
    BROADCAST_ERROR_APS = 0x2D
    BROADCAST_ERROR_APS_EE0 = 0x2E
    SOFTWARE_ERROR = 0x31
    RESOURCE_ERROR = 0x32
    PAYLOAD_TOO_LARGE = 0x74
    INDIRECT_MESSAGE_UNREQUESTED = 0x75
    SOCKET_CREATION_FAILED = 0x76
    UNKNOWN = 0xFF


class DiscoveryStatus(_LookupMixin, IntEnum):
    """Route discovery overhead reported in a transmit status."""

    NO_DISCOVERY_OVERHEAD = 0x00
    ADDRESS_DISCOVERY = 0x01
    ROUTE_DISCOVERY = 0x02
    ADDRESS_AND_ROUTE = 0x03
    EXTENDED_TIMEOUT_DISCOVERY = 0x40
    UNKNOWN = 0xFF


class ATCommandStatus(_LookupMixin, IntEnum):
    """Result of a local or remote AT command."""

    OK = 0x00
    ERROR = 0x01
    INVALID_COMMAND = 0x02
    INVALID_PARAMETER = 0x03
    TX_FAILURE = 0x04
    UNKNOWN = 0xFF


class HTTPMethod(_LookupMixin, IntEnum):
    """Request method of a CoAP passthrough request."""

    EMPTY = 0x00
    GET = 0x01
    POST = 0x02
    PUT = 0x03
    DELETE = 0x04
    UNKNOWN = 0xFF


class RestfulStatus(_LookupMixin, IntEnum):
    """CoAP response code, class in the high byte and detail in the low byte."""

    SUCCESS = 0x0200
    CREATED = 0x0201
    DELETED = 0x0202
    VALID = 0x0203
    CHANGED = 0x0204
    CONTENT = 0x0205
    BAD_REQUEST = 0x0400
    UNAUTHORIZED = 0x0401
    BAD_OPTION = 0x0402
    FORBIDDEN = 0x0403
    NOT_FOUND = 0x0404
    METHOD_NOT_ALLOWED = 0x0405
    NOT_ACCEPTABLE = 0x0406
    PRECONDITION_FAILED = 0x040C
    REQUEST_ENTITY_TOO_LARGE = 0x040D
    UNSUPPORTED_CONTENT_FORMAT = 0x040F
    INTERNAL_SERVER_ERROR = 0x0500
    NOT_IMPLEMENTED = 0x0501
    BAD_GATEWAY = 0x0502
    SERVICE_UNAVAILABLE = 0x0503
    GATEWAY_TIMEOUT = 0x0504
    PROXYING_NOT_SUPPORTED = 0x0505
    UNKNOWN = 0xFFFF


class NetworkProtocol(_LookupMixin, IntEnum):
    """Transport protocol of an IPv4 frame."""

    UDP = 0x00
    TCP = 0x01
    SSL = 0x04
    UNKNOWN = 0xFF


class ReceiveOptions(IntEnum):
    """Bits of the receive options byte."""

    NONE = 0x00
    PACKET_ACKNOWLEDGED = 0x01
    BROADCAST_PACKET = 0x02
    APS_ENCRYPTED = 0x20
    SENT_FROM_END_DEVICE = 0x40


class TransmitOptions(IntEnum):
    """Bits of the transmit options byte."""

    NONE = 0x00
    DISABLE_ACK = 0x01
    DISABLE_ROUTE_DISCOVERY = 0x02
    ENABLE_UNICAST_NACK = 0x04
    ENABLE_UNICAST_TRACE_ROUTE = 0x08
    ENABLE_APS_ENCRYPTION = 0x20
    USE_EXTENDED_TIMEOUT = 0x40
