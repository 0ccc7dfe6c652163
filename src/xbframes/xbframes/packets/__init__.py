"""API Packet Variants

Importing this package registers every built-in packet variant with the
registry:
- common: AT commands, transmit/receive, modem and transmit status
- raw: 802.15.4 64/16-bit transmit and receive
- ip: IPv4 socket frames
- coap: CoAP passthrough request/response with TLV options
"""

from xbframes.packets.base import APIPacket, FrameIDPacket, GenericPacket, UnknownPacket
from xbframes.packets.registry import (
    PacketCodec,
    decode,
    decode_bytes,
    encode,
    encode_bytes,
    from_wire,
    get_codec,
    register_packet,
    registered_types,
    to_wire,
)
from xbframes.packets.common import (
    ATCommandQueueRequest,
    ATCommandRequest,
    ATCommandResponse,
    ExplicitAddressingRequest,
    ExplicitRxIndicator,
    IODataSampleRxIndicator,
    ModemStatusIndicator,
    ReceivePacket,
    RemoteATCommandRequest,
    RemoteATCommandResponse,
    TransmitRequest,
    TransmitStatusPacket,
)
from xbframes.packets.raw import (
    RX16Indicator,
    RX16IOIndicator,
    RX64Indicator,
    RX64IOIndicator,
    TX16Request,
    TX64Request,
    TXStatusPacket,
)
from xbframes.packets.ip import RXIPv4Indicator, TXIPv4Request
from xbframes.packets.coap import CoAPPassthruRxResponse, CoAPPassthruTxRequest

__all__ = [
    # Base
    "APIPacket",
    "FrameIDPacket",
    "GenericPacket",
    "UnknownPacket",
    # Registry
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
    # Common
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
    # Raw
    "TX64Request",
    "TX16Request",
    "RX64Indicator",
    "RX16Indicator",
    "RX64IOIndicator",
    "RX16IOIndicator",
    "TXStatusPacket",
    # IP
    "TXIPv4Request",
    "RXIPv4Indicator",
    # CoAP
    "CoAPPassthruTxRequest",
    "CoAPPassthruRxResponse",
]
