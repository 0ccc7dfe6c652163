"""
Byte Stream Transports

The dispatcher only needs an async duplex byte stream. Transport is the
abstract interface; StreamTransport adapts an asyncio StreamReader /
StreamWriter pair, which covers serial ports (through pyserial-asyncio)
and serial-over-TCP bridges.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

__all__ = [
    "Transport",
    "StreamTransport",
    "open_serial_transport",
    "open_tcp_transport",
]

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract duplex byte stream."""

    @abstractmethod
    async def read(self, size: int) -> bytes:
        """
        Read up to ``size`` bytes.

        Returns:
            Received bytes; an empty result means the stream is closed.
        """

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write all of ``data``."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying stream. Calling it twice is harmless."""


class StreamTransport(Transport):
    """Transport over an asyncio StreamReader/StreamWriter pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, name: str = "stream") -> None:
        self.reader = reader
        self.writer = writer
        self.name = name
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def read(self, size: int) -> bytes:
        if self._closed:
            return b""
        return await self.reader.read(size)

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise ConnectionError(f"{self.name} is closed")
        self.writer.write(data)
        await self.writer.drain()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (OSError, ConnectionError) as e:
            logger.debug(f"Error while closing {self.name}: {e}")
        logger.info(f"Closed {self.name}")


async def open_serial_transport(port: str, baudrate: int = 9600, **kwargs) -> StreamTransport:
    """
    Open a serial port.

    Requires the ``serial`` extra (pyserial-asyncio).

    Args:
        port: Device path or pyserial URL, e.g. "/dev/ttyUSB0".
        baudrate: Line speed.
        **kwargs: Passed to ``serial_asyncio.open_serial_connection``.
    """
    try:
        import serial_asyncio
    except ImportError as e:
        raise RuntimeError("pyserial-asyncio not installed. Run: pip install xbframes[serial]") from e

    reader, writer = await serial_asyncio.open_serial_connection(url=port, baudrate=baudrate, **kwargs)
    logger.info(f"Opened serial port {port} at {baudrate} baud")
    return StreamTransport(reader, writer, name=port)


async def open_tcp_transport(host: str, port: int) -> StreamTransport:
    """Connect to a serial-over-TCP bridge."""
    reader, writer = await asyncio.open_connection(host, port)
    logger.info(f"Connected to {host}:{port}")
    return StreamTransport(reader, writer, name=f"{host}:{port}")
