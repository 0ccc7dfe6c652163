from xbframes.core.address import Address16, Address64
from xbframes.core.errors import (
    BadChecksum,
    DecodeError,
    DuplicateCorrelationID,
    FrameError,
    IncompleteFrame,
    MalformedPacket,
    RequestCancelled,
    RequestTimeout,
    UnknownFrameType,
)
from xbframes.core.tlv import TLV
from xbframes.core.types import FrameType, OperatingMode
from xbframes.dispatch import (
    Dispatcher,
    DispatcherConfig,
    ListenerCategory,
    StreamTransport,
    Transport,
)
from xbframes.frames import Deframer, RawFrame, encode_frame
from xbframes.packets import APIPacket, decode, encode

__version__ = "0.1.0"

__all__ = [
    'Address64',
    'Address16',
    'TLV',
    'FrameType',
    'OperatingMode',
    'RawFrame',
    'Deframer',
    'encode_frame',
    'APIPacket',
    'decode',
    'encode',
    'Dispatcher',
    'DispatcherConfig',
    'ListenerCategory',
    'Transport',
    'StreamTransport',
    'FrameError',
    'BadChecksum',
    'IncompleteFrame',
    'DecodeError',
    'UnknownFrameType',
    'MalformedPacket',
    'DuplicateCorrelationID',
    'RequestTimeout',
    'RequestCancelled',
]
