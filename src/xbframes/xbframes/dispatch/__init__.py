"""Dispatching

- Transport: abstract async byte stream, with asyncio stream adapters
- RequestCorrelator: frame ID request/response matching with timeout
- ListenerRegistry: categorized subscriptions
- PacketQueue: bounded queue for polling readers
- Dispatcher: reader task tying it all together
"""

from xbframes.dispatch.correlator import PendingRequest, RequestCorrelator
from xbframes.dispatch.dispatcher import Dispatcher, DispatcherConfig, DispatcherState
from xbframes.dispatch.listeners import (
    DataMessage,
    ExplicitDataMessage,
    IOSampleMessage,
    IPMessage,
    ListenerCategory,
    ListenerRegistry,
    Subscription,
    events_for,
)
from xbframes.dispatch.queue import PacketQueue, is_data_packet
from xbframes.dispatch.transport import (
    StreamTransport,
    Transport,
    open_serial_transport,
    open_tcp_transport,
)

__all__ = [
    "Transport",
    "StreamTransport",
    "open_serial_transport",
    "open_tcp_transport",
    "PendingRequest",
    "RequestCorrelator",
    "ListenerCategory",
    "ListenerRegistry",
    "Subscription",
    "DataMessage",
    "ExplicitDataMessage",
    "IOSampleMessage",
    "IPMessage",
    "events_for",
    "PacketQueue",
    "is_data_packet",
    "Dispatcher",
    "DispatcherConfig",
    "DispatcherState",
]
