"""
Received Packet Queue

Bounded FIFO of received packets for callers that poll instead of
subscribing. When full, the oldest packet is dropped to make room.
Used from the event loop thread only.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from typing import Optional

from xbframes.core.address import Address64
from xbframes.core.constants import DEFAULT_QUEUE_SIZE
from xbframes.packets.base import APIPacket
from xbframes.packets.common import ExplicitRxIndicator, ReceivePacket
from xbframes.packets.ip import RXIPv4Indicator
from xbframes.packets.raw import RX16Indicator, RX64Indicator

__all__ = ["PacketQueue", "is_data_packet"]

logger = logging.getLogger(__name__)

_DATA_VARIANTS = (ReceivePacket, RX64Indicator, RX16Indicator, ExplicitRxIndicator)


def is_data_packet(packet: APIPacket) -> bool:
    """True for packets carrying RF data from a remote device."""
    return isinstance(packet, _DATA_VARIANTS)


def _source64(packet: APIPacket) -> Optional[Address64]:
    return getattr(packet, "source64", None)


class PacketQueue:
    """Bounded queue of received packets with filtered reads."""

    def __init__(self, max_size: int = DEFAULT_QUEUE_SIZE) -> None:
        if max_size < 1:
            raise ValueError(f"Queue size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._items: deque[APIPacket] = deque(maxlen=max_size)
        self._changed = asyncio.Event()
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._items)

    def put(self, packet: APIPacket) -> None:
        if len(self._items) == self.max_size:
            self.dropped += 1
            logger.debug(f"Packet queue full, dropping oldest of {self.max_size}")
        self._items.append(packet)
        self._changed.set()

    def get_nowait(self, predicate: Optional[Callable[[APIPacket], bool]] = None) -> Optional[APIPacket]:
        """Remove and return the first packet matching ``predicate``, or None."""
        for packet in self._items:
            if predicate is None or predicate(packet):
                self._items.remove(packet)
                return packet
        return None

    async def get(
        self,
        timeout: Optional[float] = None,
        predicate: Optional[Callable[[APIPacket], bool]] = None,
    ) -> Optional[APIPacket]:
        """
        Wait for a packet matching ``predicate``.

        Args:
            timeout: Seconds to wait; None waits forever.
            predicate: Filter; None accepts any packet.

        Returns:
            The packet, or None if the timeout elapsed.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            packet = self.get_nowait(predicate)
            if packet is not None:
                return packet
            self._changed.clear()
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return None
            try:
                await asyncio.wait_for(self._changed.wait(), remaining)
            except asyncio.TimeoutError:
                return None

    async def get_data(self, timeout: Optional[float] = None) -> Optional[APIPacket]:
        """Wait for the first RF data packet."""
        return await self.get(timeout, is_data_packet)

    async def get_data_from(self, address: Address64, timeout: Optional[float] = None) -> Optional[APIPacket]:
        """Wait for the first RF data packet sent by ``address``."""
        return await self.get(timeout, lambda p: is_data_packet(p) and _source64(p) == address)

    async def get_ip_data(self, timeout: Optional[float] = None) -> Optional[APIPacket]:
        return await self.get(timeout, lambda p: isinstance(p, RXIPv4Indicator))

    def clear(self) -> None:
        self._items.clear()
