"""
Packet Dispatcher

Owns the transport and runs the single reader task:

    read bytes -> Deframer -> decode -> resolve waiter -> queue -> listeners

Frame and decode errors go to the ERROR listeners and the loop goes on.
Every listener call runs as its own task, so a slow or failing listener
never stalls the reader or its siblings. Coroutine listeners run on the
event loop; plain callables run on a bounded thread pool.

Lifecycle: STOPPED -> RUNNING -> STOPPING -> STOPPED. ``stop`` is
idempotent and may be called from inside a listener.

Example:
    transport = await open_serial_transport("/dev/ttyUSB0", 9600)
    async with Dispatcher(transport) as xbee:
        xbee.subscribe(ListenerCategory.DATA, print)
        response = await xbee.send_and_wait(ATCommandRequest(frame_id=xbee.next_frame_id(), command="NI"))
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from xbframes.core.address import Address64
from xbframes.core.constants import (
    DEFAULT_LISTENER_WORKERS,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_READ_SIZE,
    DEFAULT_TIMEOUT,
)
from xbframes.core.errors import DecodeError, DispatcherNotRunning, FrameError
from xbframes.core.types import OperatingMode
from xbframes.dispatch.correlator import RequestCorrelator
from xbframes.dispatch.listeners import ListenerCategory, ListenerRegistry, Subscription, events_for
from xbframes.dispatch.queue import PacketQueue
from xbframes.dispatch.transport import Transport
from xbframes.frames.deframer import Deframer, RawFrame
from xbframes.packets.base import APIPacket
from xbframes.packets.registry import decode, to_wire

__all__ = ["DispatcherConfig", "DispatcherState", "Dispatcher"]

logger = logging.getLogger(__name__)


@dataclass
class DispatcherConfig:
    """Dispatcher configuration.

    Attributes
    ----------
        mode: Serial API mode; API_ESCAPE escapes special bytes.
        read_size: Maximum bytes per transport read.
        default_timeout: Seconds send_and_wait waits when no timeout is given.
        max_listener_workers: Thread pool size for plain-function listeners.
        queue_size: Capacity of the received packet queue.
        strict_decode: Report unknown frame types as errors instead of
            delivering them as UnknownPacket.
    """

    mode: OperatingMode = OperatingMode.API_ESCAPE
    read_size: int = DEFAULT_READ_SIZE
    default_timeout: float = DEFAULT_TIMEOUT
    max_listener_workers: int = DEFAULT_LISTENER_WORKERS
    queue_size: int = DEFAULT_QUEUE_SIZE
    strict_decode: bool = False

    def __post_init__(self) -> None:
        self.mode = OperatingMode(self.mode)
        if self.read_size < 1:
            raise ValueError(f"Read size must be at least 1, got {self.read_size}")
        if self.default_timeout <= 0:
            raise ValueError(f"Default timeout must be positive, got {self.default_timeout}")
        if self.max_listener_workers < 1:
            raise ValueError(f"Listener workers must be at least 1, got {self.max_listener_workers}")
        if self.queue_size < 1:
            raise ValueError(f"Queue size must be at least 1, got {self.queue_size}")

    @property
    def escaped(self) -> bool:
        return self.mode.escaped


class DispatcherState(Enum):
    """Dispatcher lifecycle state."""

    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


class Dispatcher:
    """Reader loop, request correlation and listener fan-out over one transport."""

    def __init__(self, transport: Transport, config: Optional[DispatcherConfig] = None) -> None:
        """Initialize dispatcher.

        Args:
        ----
            transport: Byte stream to the module.
            config: Dispatcher configuration; defaults if omitted.
        """
        self.transport = transport
        self.config = config or DispatcherConfig()
        self.deframer = Deframer(escaped=self.config.escaped)
        self.correlator = RequestCorrelator()
        self.listeners = ListenerRegistry()
        self.queue = PacketQueue(self.config.queue_size)
        self._state = DispatcherState.STOPPED
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._tasks: set[asyncio.Task] = set()
        self._write_lock: Optional[asyncio.Lock] = None
        self.packets_received = 0
        self.packets_sent = 0

    async def __aenter__(self) -> Dispatcher:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    # -- lifecycle ----------------------------------------------------------

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is DispatcherState.RUNNING

    async def start(self) -> None:
        """Start the reader task. Starting a running dispatcher is a no-op."""
        if self._state is DispatcherState.RUNNING:
            logger.warning("Dispatcher already running")
            return
        if self._state is DispatcherState.STOPPING:
            raise RuntimeError("Dispatcher is stopping")

        self._loop = asyncio.get_running_loop()
        self._write_lock = asyncio.Lock()
        self.queue = PacketQueue(self.config.queue_size)
        self.deframer.reset()
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.max_listener_workers,
            thread_name_prefix="xbframes-listener",
        )
        self._state = DispatcherState.RUNNING
        self._reader_task = asyncio.create_task(self._read_loop(), name="xbframes-reader")
        logger.info(f"Dispatcher started ({self.config.mode.value} mode)")

    async def stop(self) -> None:
        """
        Stop the reader, cancel pending requests and close the transport.

        Listener tasks already running are left to finish on their own.
        Idempotent; safe to call from a listener.
        """
        if self._state is not DispatcherState.RUNNING:
            return
        self._state = DispatcherState.STOPPING

        task = self._reader_task
        self._reader_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self.correlator.cancel_all("dispatcher stopped")

        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

        try:
            await self.transport.close()
        except OSError as e:
            logger.warning(f"Error closing transport: {e}")

        self._state = DispatcherState.STOPPED
        logger.info("Dispatcher stopped")

    def stop_threadsafe(self) -> Optional[concurrent.futures.Future]:
        """Request a stop from a thread other than the event loop's."""
        if self._loop is None or self._state is not DispatcherState.RUNNING:
            return None
        return asyncio.run_coroutine_threadsafe(self.stop(), self._loop)

    # -- sending ------------------------------------------------------------

    def next_frame_id(self) -> int:
        """Frame ID not currently waiting for a response."""
        return self.correlator.next_frame_id()

    async def send(self, packet: APIPacket) -> None:
        """
        Send a packet without waiting for a response.

        Raises:
            DispatcherNotRunning: If the dispatcher is not running.
        """
        if self._state is not DispatcherState.RUNNING or self._write_lock is None:
            raise DispatcherNotRunning("Dispatcher is not running")
        data = to_wire(packet, escaped=self.config.escaped)
        async with self._write_lock:
            await self.transport.write(data)
        self.packets_sent += 1
        logger.debug(f"TX {packet.frame_type_name} ({len(data)} bytes)")

    async def send_and_wait(self, packet: APIPacket, timeout: Optional[float] = None) -> APIPacket:
        """
        Send a packet and wait for the response carrying its frame ID.

        Args:
            packet: Request with a non-zero frame ID.
            timeout: Seconds to wait; the configured default if omitted.

        Raises:
            RequestTimeout: No response in time.
            RequestCancelled: The dispatcher stopped while waiting.
            DuplicateCorrelationID: The frame ID is already in flight.
        """
        if self._state is not DispatcherState.RUNNING:
            raise DispatcherNotRunning("Dispatcher is not running")
        if timeout is None:
            timeout = self.config.default_timeout
        return await self.correlator.send_and_wait(packet, self.send, timeout)

    def send_and_wait_blocking(self, packet: APIPacket, timeout: Optional[float] = None) -> APIPacket:
        """
        Blocking send_and_wait for threads other than the event loop's,
        e.g. plain-function listeners. Blocks only the calling thread.
        """
        if self._loop is None or self._state is not DispatcherState.RUNNING:
            raise DispatcherNotRunning("Dispatcher is not running")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            raise RuntimeError("send_and_wait_blocking() would block the event loop; await send_and_wait()")
        future = asyncio.run_coroutine_threadsafe(self.send_and_wait(packet, timeout), self._loop)
        return future.result()

    # -- subscriptions ------------------------------------------------------

    def subscribe(self, category: Union[ListenerCategory, str], callback: Callable[[Any], Any]) -> Subscription:
        """Call ``callback`` with every event of ``category``."""
        return self.listeners.add(category, callback)

    def subscribe_once(self, frame_id: int, callback: Callable[[Any], Any]) -> Subscription:
        """Call ``callback`` with the next packet carrying ``frame_id``, then unsubscribe."""
        return self.listeners.add(ListenerCategory.PACKET, callback, frame_id=frame_id)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self.listeners.remove(subscription)

    # -- polling --------------------------------------------------------------

    async def read_packet(self, timeout: Optional[float] = None) -> Optional[APIPacket]:
        """Next received packet from the queue, or None on timeout."""
        return await self.queue.get(timeout)

    async def read_data(
        self,
        timeout: Optional[float] = None,
        source: Optional[Address64] = None,
    ) -> Optional[APIPacket]:
        """Next RF data packet from the queue, optionally from one sender."""
        if source is not None:
            return await self.queue.get_data_from(source, timeout)
        return await self.queue.get_data(timeout)

    # -- reader ---------------------------------------------------------------

    async def _read_loop(self) -> None:
        try:
            while self._state is DispatcherState.RUNNING:
                try:
                    data = await self.transport.read(self.config.read_size)
                except OSError as e:
                    logger.error(f"Transport read failed: {e}")
                    self._emit_error(e)
                    break
                if not data:
                    logger.info("Transport closed by peer")
                    break
                for item in self.deframer.feed(data):
                    if isinstance(item, FrameError):
                        self._emit_error(item)
                    else:
                        self._process_frame(item)
        finally:
            if self._state is DispatcherState.RUNNING and self._loop is not None:
                # Reader ended on its own: shut down from a separate task
                self._track(self._loop.create_task(self.stop()))

    def _process_frame(self, frame: RawFrame) -> None:
        try:
            packet = decode(frame, strict=self.config.strict_decode)
        except DecodeError as e:
            logger.warning(f"Dropping frame type 0x{frame.frame_type:02X}: {e}")
            self._emit_error(e)
            return

        self.packets_received += 1
        logger.debug(f"RX {packet.frame_type_name}")

        if packet.needs_frame_id:
            self.correlator.resolve(packet.frame_id, packet)  # type: ignore[attr-defined]

        self.queue.put(packet)

        for sub in self.listeners.take_matching(packet):
            self._spawn(sub, packet)
        for category, event in events_for(packet):
            for sub in self.listeners.snapshot(category):
                self._spawn(sub, event)

    def _emit_error(self, error: BaseException) -> None:
        for sub in self.listeners.snapshot(ListenerCategory.ERROR):
            self._spawn(sub, error)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _spawn(self, sub: Subscription, event: Any) -> None:
        self._track(asyncio.create_task(self._run_listener(sub, event)))

    async def _run_listener(self, sub: Subscription, event: Any) -> None:
        try:
            if inspect.iscoroutinefunction(sub.callback):
                await sub.callback(event)
            elif self._executor is not None and self._loop is not None:
                await self._loop.run_in_executor(self._executor, sub.callback, event)
            else:
                logger.debug(f"Skipping {sub}: dispatcher stopped")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Listener {sub} raised {e!r}")
            if sub.category is not ListenerCategory.ERROR:
                self._emit_error(e)
