"""
Listener Registry

Subscriptions for received packets, grouped by category:

- PACKET: every packet. May be scoped to one frame ID, in which case the
  subscription is removed after its first delivery.
- DATA: RF data from a remote device (0x80, 0x81, 0x90).
- EXPLICIT_DATA: RF data with endpoint/cluster/profile (0x91).
- IO_SAMPLE: IO samples (0x82, 0x83, 0x92).
- MODEM_STATUS: modem status changes (0x8A).
- IP_DATA: IPv4 data (0xB0).
- ERROR: stream, decode and listener errors.

The category of a packet follows from its variant. Subscriptions are
guarded by a lock held only while the table is modified; callbacks are
invoked by the dispatcher outside the lock.
"""

from __future__ import annotations

import ipaddress
import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from xbframes.core.address import Address16, Address64
from xbframes.core.types import ModemStatus
from xbframes.io.sample import IOSample
from xbframes.packets.base import APIPacket
from xbframes.packets.common import (
    ExplicitRxIndicator,
    IODataSampleRxIndicator,
    ModemStatusIndicator,
    ReceivePacket,
)
from xbframes.packets.ip import RXIPv4Indicator
from xbframes.packets.raw import RX16Indicator, RX16IOIndicator, RX64Indicator, RX64IOIndicator

__all__ = [
    "ListenerCategory",
    "Subscription",
    "DataMessage",
    "ExplicitDataMessage",
    "IOSampleMessage",
    "IPMessage",
    "events_for",
    "ListenerRegistry",
]

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class ListenerCategory(Enum):
    """Kinds of events a listener can subscribe to."""

    PACKET = "packet"
    DATA = "data"
    EXPLICIT_DATA = "explicit_data"
    IO_SAMPLE = "io_sample"
    MODEM_STATUS = "modem_status"
    IP_DATA = "ip_data"
    ERROR = "error"


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class DataMessage:
    """RF data received from a remote device."""

    source64: Optional[Address64]
    source16: Optional[Address16]
    data: bytes
    is_broadcast: bool = False
    packet: Optional[APIPacket] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ExplicitDataMessage:
    """RF data with its application-layer addressing."""

    source64: Address64
    source16: Address16
    source_endpoint: int
    dest_endpoint: int
    cluster_id: int
    profile_id: int
    data: bytes
    is_broadcast: bool = False
    packet: Optional[APIPacket] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class IOSampleMessage:
    """IO sample received from a remote device."""

    source64: Optional[Address64]
    source16: Optional[Address16]
    sample: IOSample
    packet: Optional[APIPacket] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class IPMessage:
    """Data received from an IPv4 host."""

    source_address: ipaddress.IPv4Address
    source_port: int
    dest_port: int
    protocol: int
    data: bytes
    packet: Optional[APIPacket] = field(default=None, compare=False, repr=False)


def events_for(packet: APIPacket) -> list[tuple[ListenerCategory, Any]]:
    """
    Category-specific events carried by a packet.

    The generic PACKET category is not included; every packet goes there.
    """
    if isinstance(packet, ReceivePacket):
        message = DataMessage(packet.source64, packet.source16, packet.rf_data or b"", packet.is_broadcast, packet)
        return [(ListenerCategory.DATA, message)]
    if isinstance(packet, RX64Indicator):
        message = DataMessage(packet.source64, None, packet.rf_data or b"", packet.is_broadcast, packet)
        return [(ListenerCategory.DATA, message)]
    if isinstance(packet, RX16Indicator):
        message = DataMessage(None, packet.source16, packet.rf_data or b"", packet.is_broadcast, packet)
        return [(ListenerCategory.DATA, message)]
    if isinstance(packet, ExplicitRxIndicator):
        message = ExplicitDataMessage(
            packet.source64,
            packet.source16,
            packet.source_endpoint,
            packet.dest_endpoint,
            packet.cluster_id,
            packet.profile_id,
            packet.rf_data or b"",
            packet.is_broadcast,
            packet,
        )
        return [(ListenerCategory.EXPLICIT_DATA, message)]
    if isinstance(packet, (IODataSampleRxIndicator, RX64IOIndicator, RX16IOIndicator)):
        sample = packet.io_sample
        if sample is None:
            logger.debug(f"{type(packet).__name__} without a usable IO sample")
            return []
        source64 = getattr(packet, "source64", None)
        source16 = getattr(packet, "source16", None)
        return [(ListenerCategory.IO_SAMPLE, IOSampleMessage(source64, source16, sample, packet))]
    if isinstance(packet, ModemStatusIndicator):
        return [(ListenerCategory.MODEM_STATUS, packet.modem_status)]
    if isinstance(packet, RXIPv4Indicator):
        message = IPMessage(
            packet.source_address,
            packet.source_port,
            packet.dest_port,
            packet.protocol,
            packet.data or b"",
            packet,
        )
        return [(ListenerCategory.IP_DATA, message)]
    return []


# =============================================================================
# Registry
# =============================================================================

_ids = itertools.count(1)


@dataclass(eq=False)
class Subscription:
    """
    Handle returned by subscribe, used to unsubscribe.

    Attributes:
        category: Subscribed category.
        callback: Plain function or coroutine function taking one event.
        frame_id: For one-shot PACKET subscriptions, the frame ID to wait for.
    """

    category: ListenerCategory
    callback: Listener
    frame_id: Optional[int] = None
    id: int = field(default_factory=lambda: next(_ids))
    active: bool = True

    @property
    def once(self) -> bool:
        return self.frame_id is not None

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        scope = f", frame_id={self.frame_id}" if self.once else ""
        return f"Subscription(#{self.id} {self.category.value} -> {name}{scope})"


class ListenerRegistry:
    """Thread-safe table of subscriptions per category."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subs: dict[ListenerCategory, list[Subscription]] = {c: [] for c in ListenerCategory}

    def add(
        self,
        category: Union[ListenerCategory, str],
        callback: Listener,
        frame_id: Optional[int] = None,
    ) -> Subscription:
        """
        Register a callback.

        Raises:
            ValueError: For a non-callable callback, an unknown category or
                a frame ID scope on a category other than PACKET.
        """
        category = ListenerCategory(category)
        if not callable(callback):
            raise ValueError(f"Listener must be callable, got {callback!r}")
        if frame_id is not None:
            if category is not ListenerCategory.PACKET:
                raise ValueError("Only PACKET listeners can be scoped to a frame ID")
            if not 0 <= frame_id <= 0xFF:
                raise ValueError(f"Frame ID must be 0-255, got {frame_id}")
        sub = Subscription(category, callback, frame_id)
        with self._lock:
            self._subs[category].append(sub)
        logger.debug(f"Added {sub}")
        return sub

    def remove(self, sub: Subscription) -> bool:
        """
        Unregister a subscription.

        Returns:
            False if it was not registered (already removed or fired).
        """
        with self._lock:
            subs = self._subs[sub.category]
            if sub not in subs:
                return False
            subs.remove(sub)
            sub.active = False
        logger.debug(f"Removed {sub}")
        return True

    def snapshot(self, category: ListenerCategory) -> list[Subscription]:
        """Copy of the current subscriptions of a category."""
        with self._lock:
            return list(self._subs[category])

    def take_matching(self, packet: APIPacket) -> list[Subscription]:
        """
        PACKET subscriptions that should receive ``packet``.

        One-shot subscriptions scoped to the packet's frame ID are removed
        in the same step, so each fires at most once.
        """
        frame_id = getattr(packet, "frame_id", None) if packet.needs_frame_id else None
        with self._lock:
            subs = self._subs[ListenerCategory.PACKET]
            matched = [s for s in subs if s.frame_id is None or s.frame_id == frame_id]
            for sub in matched:
                if sub.once:
                    subs.remove(sub)
                    sub.active = False
        return matched

    def count(self, category: Optional[ListenerCategory] = None) -> int:
        with self._lock:
            if category is not None:
                return len(self._subs[category])
            return sum(len(subs) for subs in self._subs.values())

    def clear(self) -> None:
        with self._lock:
            for subs in self._subs.values():
                for sub in subs:
                    sub.active = False
                subs.clear()
