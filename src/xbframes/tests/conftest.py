"""Pytest configuration and fixtures for xbframes tests.

This module provides shared fixtures and configuration for the test suite:
an in-memory transport standing in for the serial port, and a few
well-known frames.
"""

import asyncio
import random
from collections.abc import Callable
from typing import Optional

import pytest

from xbframes.dispatch.transport import Transport

# Fixed seed for reproducible tests
# Random payloads used by the escaping and checksum tests
# come out the same on every run
RANDOM_SEED = 42


@pytest.fixture(autouse=True)
def seed_random():
    """Seed the random number generator for reproducible tests."""
    random.seed(RANDOM_SEED)
    yield


def random_bytes(size: int) -> bytes:
    return bytes(random.getrandbits(8) for _ in range(size))


async def wait_until(condition: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll ``condition`` on the running loop until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            pytest.fail(f"Condition not met within {timeout}s")
        await asyncio.sleep(0.005)


class MemoryTransport(Transport):
    """Transport backed by an asyncio queue.

    Tests push received bytes with ``feed``; everything the dispatcher
    writes is kept in ``written``. ``on_write`` lets a test play the
    module and answer requests.
    """

    def __init__(self) -> None:
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.written: list[bytes] = []
        self.closed = False
        self.close_calls = 0
        self.on_write: Optional[Callable[[bytes], None]] = None

    def feed(self, data: bytes) -> None:
        self.incoming.put_nowait(data)

    def feed_eof(self) -> None:
        self.incoming.put_nowait(b"")

    async def read(self, size: int) -> bytes:
        if self.closed:
            return b""
        return await self.incoming.get()

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise ConnectionError("transport closed")
        self.written.append(data)
        if self.on_write is not None:
            self.on_write(data)

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True


@pytest.fixture
def transport():
    """Fresh in-memory transport."""
    return MemoryTransport()


@pytest.fixture
def rx64_data_frame():
    """RX 64 indicator from 0123456789ABCDEF carrying b"data" (unescaped wire form)."""
    return bytes.fromhex("7E000F80" "0123456789ABCDEF" "28" "00" "64617461" "FD")


@pytest.fixture
def modem_status_frame():
    """Modem status "coordinator started"."""
    return bytes.fromhex("7E00028A066F")
