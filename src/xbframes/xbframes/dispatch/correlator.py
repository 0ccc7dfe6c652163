"""
Request/Response Correlation

Matches responses to outstanding requests by their 8-bit frame ID.

A caller registers a waiter for the frame ID embedded in its request,
sends the request, then awaits the waiter's future. The dispatcher
resolves the future when a packet with that frame ID arrives and answers
the request: an echo of the request itself, or an AT response for another
command, leaves the waiter in place. At most one waiter exists per frame
ID. The waiter table is guarded by a lock held only while the table is
modified, so registration from other threads never blocks the reader.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Optional

from xbframes.core.constants import MAX_FRAME_ID, MIN_FRAME_ID, NO_FRAME_ID
from xbframes.core.errors import CorrelationError, DuplicateCorrelationID, RequestCancelled, RequestTimeout
from xbframes.packets.base import APIPacket
from xbframes.packets.common import (
    ATCommandRequest,
    ATCommandResponse,
    RemoteATCommandRequest,
    RemoteATCommandResponse,
)

__all__ = ["PendingRequest", "RequestCorrelator", "accepts_response"]

logger = logging.getLogger(__name__)


def accepts_response(request: Optional[APIPacket], response: APIPacket) -> bool:
    """
    Whether ``response`` answers ``request``, frame ID aside.

    AT requests (local, queued or remote) only take the matching response
    type with the same command, compared case-insensitively. A packet equal
    to the request is its echo and never answers it.
    """
    if request is None:
        return True
    if response == request:
        return False
    if isinstance(request, ATCommandRequest):
        return isinstance(response, ATCommandResponse) and response.command.upper() == request.command.upper()
    if isinstance(request, RemoteATCommandRequest):
        return (
            isinstance(response, RemoteATCommandResponse) and response.command.upper() == request.command.upper()
        )
    return True


@dataclass(eq=False)
class PendingRequest:
    """
    A request waiting for its response.

    Attributes:
        frame_id: Frame ID of the request.
        deadline: Event loop time after which the caller gives up.
        future: Receives the response packet, or an error.
        loop: Loop owning the future.
        request: The packet sent, used to reject echoes and mismatched
            AT responses; None accepts any packet with the frame ID.
    """

    frame_id: int
    deadline: float
    future: asyncio.Future = field(repr=False)
    loop: asyncio.AbstractEventLoop = field(repr=False)
    request: Optional[APIPacket] = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.future.done()

    def _settle(self, result: Optional[APIPacket] = None, error: Optional[BaseException] = None) -> None:
        def apply() -> None:
            if self.future.done():
                return
            if error is not None:
                self.future.set_exception(error)
            else:
                self.future.set_result(result)

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self.loop:
            apply()
        else:
            self.loop.call_soon_threadsafe(apply)


class RequestCorrelator:
    """Frame ID waiter table."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[int, PendingRequest] = {}
        self._next_id = MIN_FRAME_ID

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, frame_id: int) -> bool:
        return frame_id in self._pending

    def pending_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._pending)

    def next_frame_id(self) -> int:
        """
        Allocate a frame ID, cycling through 1-255 and skipping IDs in flight.

        Raises:
            CorrelationError: If all 255 IDs are in flight.
        """
        with self._lock:
            for _ in range(MAX_FRAME_ID):
                candidate = self._next_id
                self._next_id = candidate + 1 if candidate < MAX_FRAME_ID else MIN_FRAME_ID
                if candidate not in self._pending:
                    return candidate
        raise CorrelationError("No free frame ID: 255 requests in flight")

    def register(self, frame_id: int, timeout: float, request: Optional[APIPacket] = None) -> PendingRequest:
        """
        Create the waiter for a frame ID.

        Must be called from a running event loop.

        Raises:
            DuplicateCorrelationID: If a waiter for the ID already exists.
        """
        if not MIN_FRAME_ID <= frame_id <= MAX_FRAME_ID:
            raise ValueError(f"Frame ID must be 1-255, got {frame_id}")
        loop = asyncio.get_running_loop()
        pending = PendingRequest(frame_id, loop.time() + timeout, loop.create_future(), loop, request)
        with self._lock:
            if frame_id in self._pending:
                raise DuplicateCorrelationID(frame_id)
            self._pending[frame_id] = pending
        logger.debug(f"Waiting for frame ID {frame_id}")
        return pending

    def resolve(self, frame_id: int, packet: APIPacket) -> bool:
        """
        Hand a response to its waiter.

        Returns:
            True if a waiter for the frame ID took the packet.
        """
        with self._lock:
            request = self._pending.get(frame_id)
            if request is None:
                return False
            if not accepts_response(request.request, packet):
                logger.debug(f"Frame ID {frame_id}: {packet.frame_type_name} does not answer the request")
                return False
            del self._pending[frame_id]
        request._settle(result=packet)
        logger.debug(f"Resolved frame ID {frame_id}")
        return True

    def discard(self, frame_id: int, request: Optional[PendingRequest] = None) -> bool:
        """
        Remove a waiter without resolving it.

        If ``request`` is given, only that exact waiter is removed, so a
        newer registration for the same ID is left alone.
        """
        with self._lock:
            current = self._pending.get(frame_id)
            if current is None or (request is not None and current is not request):
                return False
            del self._pending[frame_id]
        return True

    def cancel_all(self, reason: str = "request cancelled") -> int:
        """
        Fail every waiter with RequestCancelled.

        Returns:
            Number of waiters cancelled.
        """
        with self._lock:
            requests = list(self._pending.values())
            self._pending.clear()
        for request in requests:
            request._settle(error=RequestCancelled(f"Frame ID {request.frame_id}: {reason}"))
        if requests:
            logger.info(f"Cancelled {len(requests)} pending request(s): {reason}")
        return len(requests)

    async def send_and_wait(
        self,
        packet: APIPacket,
        send: Callable[[APIPacket], Awaitable[None]],
        timeout: float,
    ) -> APIPacket:
        """
        Send a request and wait for the response with the same frame ID.

        Args:
            packet: Request carrying a non-zero frame ID.
            send: Coroutine function that transmits the packet.
            timeout: Seconds to wait for the response.

        Returns:
            The response packet.

        Raises:
            ValueError: If the packet cannot be correlated.
            DuplicateCorrelationID: If the frame ID is already in flight.
            RequestTimeout: If no response arrives in time.
            RequestCancelled: If the waiter is cancelled, e.g. on shutdown.
        """
        if not packet.needs_frame_id:
            raise ValueError(f"{type(packet).__name__} has no frame ID and cannot be correlated")
        frame_id = packet.frame_id  # type: ignore[attr-defined]
        if frame_id == NO_FRAME_ID:
            raise ValueError("Frame ID 0 disables the response and cannot be correlated")
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")

        request = self.register(frame_id, timeout, packet)
        try:
            await send(packet)
            try:
                return await asyncio.wait_for(request.future, timeout)
            except asyncio.TimeoutError:
                logger.warning(f"No response for frame ID {frame_id} after {timeout}s")
                raise RequestTimeout(frame_id, timeout) from None
        finally:
            self.discard(frame_id, request)
