"""Tests for the packet dispatcher over an in-memory transport."""

import asyncio
import threading

import pytest

from conftest import wait_until
from xbframes.core.address import Address64
from xbframes.core.errors import (
    BadChecksum,
    DispatcherNotRunning,
    MalformedPacket,
    RequestCancelled,
    RequestTimeout,
    UnknownFrameType,
)
from xbframes.core.types import ModemStatus, OperatingMode
from xbframes.dispatch import (
    DataMessage,
    Dispatcher,
    DispatcherConfig,
    DispatcherState,
    ListenerCategory,
)
from xbframes.frames.deframer import RawFrame, encode_frame
from xbframes.packets import (
    ATCommandRequest,
    ATCommandResponse,
    RX64Indicator,
    TransmitRequest,
    TransmitStatusPacket,
    UnknownPacket,
    from_wire,
    to_wire,
)


def answer_at_commands(transport, value=b"Node"):
    """Make the transport reply to every AT command like a module would."""

    def on_write(data):
        request = from_wire(data)
        response = ATCommandResponse(frame_id=request.frame_id, command=request.command, value=value)
        transport.feed(to_wire(response))

    transport.on_write = on_write


class TestDispatcherConfig:
    """Test configuration validation."""

    def test_defaults(self):
        """Escaped mode and documented defaults."""
        config = DispatcherConfig()
        assert config.mode is OperatingMode.API_ESCAPE
        assert config.escaped
        assert config.max_listener_workers == 20
        assert config.default_timeout == 2.0

    def test_mode_by_value(self):
        """Mode may be given by value."""
        assert DispatcherConfig(mode="api").mode is OperatingMode.API

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"read_size": 0},
            {"default_timeout": 0},
            {"max_listener_workers": 0},
            {"queue_size": 0},
        ],
    )
    def test_invalid(self, kwargs):
        """Non-positive settings are rejected."""
        with pytest.raises(ValueError):
            DispatcherConfig(**kwargs)


class TestLifecycle:
    """Test start/stop behaviour."""

    @pytest.mark.asyncio
    async def test_start_stop(self, transport):
        """Stopped -> Running -> Stopped, transport closed once."""
        dispatcher = Dispatcher(transport)
        assert dispatcher.state is DispatcherState.STOPPED
        await dispatcher.start()
        assert dispatcher.is_running
        await dispatcher.stop()
        await dispatcher.stop()
        assert dispatcher.state is DispatcherState.STOPPED
        assert transport.close_calls == 1

    @pytest.mark.asyncio
    async def test_start_twice(self, transport):
        """Starting a running dispatcher is a no-op."""
        async with Dispatcher(transport) as dispatcher:
            task = dispatcher._reader_task
            await dispatcher.start()
            assert dispatcher._reader_task is task

    @pytest.mark.asyncio
    async def test_send_when_stopped(self, transport):
        """Sending requires a running dispatcher."""
        dispatcher = Dispatcher(transport)
        with pytest.raises(DispatcherNotRunning):
            await dispatcher.send(ATCommandRequest())
        with pytest.raises(DispatcherNotRunning):
            await dispatcher.send_and_wait(ATCommandRequest())
        assert transport.written == []

    @pytest.mark.asyncio
    async def test_eof_stops(self, transport):
        """End of stream stops the dispatcher."""
        dispatcher = Dispatcher(transport)
        await dispatcher.start()
        transport.feed_eof()
        await wait_until(lambda: dispatcher.state is DispatcherState.STOPPED)
        assert transport.closed

    @pytest.mark.asyncio
    async def test_stop_from_listener(self, transport, modem_status_frame):
        """A listener may stop the dispatcher."""
        async with Dispatcher(transport) as dispatcher:

            async def on_status(status):
                await dispatcher.stop()

            dispatcher.subscribe(ListenerCategory.MODEM_STATUS, on_status)
            transport.feed(modem_status_frame)
            await wait_until(lambda: dispatcher.state is DispatcherState.STOPPED)
        assert transport.close_calls == 1

    @pytest.mark.asyncio
    async def test_stop_cancels_waiters(self, transport):
        """Pending requests fail with RequestCancelled on stop."""
        dispatcher = Dispatcher(transport)
        await dispatcher.start()
        task = asyncio.create_task(dispatcher.send_and_wait(ATCommandRequest(frame_id=9), timeout=5.0))
        await wait_until(lambda: transport.written)
        await dispatcher.stop()
        with pytest.raises(RequestCancelled):
            await task
        assert len(dispatcher.correlator) == 0


class TestReceive:
    """Test the receive path: deframing, decoding and listener fan-out."""

    @pytest.mark.asyncio
    async def test_rx64_data_event(self, transport, rx64_data_frame):
        """An RX 64 frame gives one DATA event and no IO event."""
        data, io, packets = [], [], []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.DATA, data.append)
            dispatcher.subscribe(ListenerCategory.IO_SAMPLE, io.append)
            dispatcher.subscribe(ListenerCategory.PACKET, packets.append)
            transport.feed(rx64_data_frame)
            await wait_until(lambda: data and packets)
            await asyncio.sleep(0.02)

        assert data == [DataMessage(Address64(0x0123456789ABCDEF), None, b"data", False)]
        assert io == []
        assert len(packets) == 1
        assert isinstance(packets[0], RX64Indicator)
        assert packets[0].rssi == 0x28

    @pytest.mark.asyncio
    async def test_frame_split_across_reads(self, transport, rx64_data_frame):
        """A frame arriving in two reads is delivered once."""
        received = []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.DATA, received.append)
            transport.feed(rx64_data_frame[:7])
            await asyncio.sleep(0.02)
            assert received == []
            transport.feed(rx64_data_frame[7:])
            await wait_until(lambda: received)
        assert received[0].data == b"data"

    @pytest.mark.asyncio
    async def test_modem_status_event(self, transport, modem_status_frame):
        """Modem status listeners get the status enum."""
        statuses = []

        async def on_status(status):
            statuses.append(status)

        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.MODEM_STATUS, on_status)
            transport.feed(modem_status_frame)
            await wait_until(lambda: statuses)
        assert statuses == [ModemStatus.COORDINATOR_STARTED]

    @pytest.mark.asyncio
    async def test_bad_checksum_reported(self, transport, modem_status_frame):
        """Checksum errors go to ERROR listeners and the stream continues."""
        errors, packets = [], []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.ERROR, errors.append)
            dispatcher.subscribe(ListenerCategory.PACKET, packets.append)
            transport.feed(modem_status_frame[:-1] + b"\x00" + modem_status_frame)
            await wait_until(lambda: errors and packets)
        assert isinstance(errors[0], BadChecksum)
        assert len(packets) == 1

    @pytest.mark.asyncio
    async def test_malformed_packet_reported(self, transport):
        """A checksum-valid frame too short for its variant is an error."""
        errors = []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.ERROR, errors.append)
            transport.feed(encode_frame(RawFrame(0x90, b"\x00\x00\x00")))
            await wait_until(lambda: errors)
            assert dispatcher.packets_received == 0
        assert isinstance(errors[0], MalformedPacket)

    @pytest.mark.asyncio
    async def test_unknown_frame_type(self, transport):
        """Unknown frame types reach PACKET listeners as UnknownPacket."""
        packets = []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.PACKET, packets.append)
            transport.feed(encode_frame(RawFrame(0x42, b"\x01")))
            await wait_until(lambda: packets)
        assert isinstance(packets[0], UnknownPacket)
        assert packets[0].frame_type == 0x42

    @pytest.mark.asyncio
    async def test_unknown_frame_type_strict(self, transport):
        """Strict decoding reports unknown frame types as errors."""
        errors = []
        config = DispatcherConfig(strict_decode=True)
        async with Dispatcher(transport, config) as dispatcher:
            dispatcher.subscribe(ListenerCategory.ERROR, errors.append)
            transport.feed(encode_frame(RawFrame(0x42, b"\x01")))
            await wait_until(lambda: errors)
        assert isinstance(errors[0], UnknownFrameType)

    @pytest.mark.asyncio
    async def test_unescaped_mode(self, transport):
        """In API mode 1 the dispatcher neither escapes nor unescapes."""
        packets = []
        frame = RawFrame(0x90, bytes(8) + b"\xff\xfe" + b"\x00" + b"\x7e\x11")
        config = DispatcherConfig(mode=OperatingMode.API)
        async with Dispatcher(transport, config) as dispatcher:
            dispatcher.subscribe(ListenerCategory.PACKET, packets.append)
            transport.feed(encode_frame(frame, escaped=False))
            await wait_until(lambda: packets)
            await dispatcher.send(ATCommandRequest(frame_id=0x11))
        assert packets[0].rf_data == b"\x7e\x11"
        assert transport.written == [bytes.fromhex("7E00040811" "4E49" "4F")]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, transport, modem_status_frame):
        """Unsubscribed listeners are not called."""
        first, second = [], []
        async with Dispatcher(transport) as dispatcher:
            sub = dispatcher.subscribe(ListenerCategory.PACKET, first.append)
            dispatcher.subscribe(ListenerCategory.PACKET, second.append)
            assert dispatcher.unsubscribe(sub) is True
            transport.feed(modem_status_frame)
            await wait_until(lambda: second)
            await asyncio.sleep(0.02)
        assert first == []

    @pytest.mark.asyncio
    async def test_read_queue(self, transport, modem_status_frame, rx64_data_frame):
        """Received packets can be polled from the queue."""
        async with Dispatcher(transport) as dispatcher:
            transport.feed(modem_status_frame + rx64_data_frame)
            data = await dispatcher.read_data(timeout=1.0, source=Address64(0x0123456789ABCDEF))
            assert data.rf_data == b"data"
            packet = await dispatcher.read_packet(timeout=1.0)
            assert packet.frame_type == 0x8A
            assert await dispatcher.read_packet(timeout=0.02) is None


class TestListenerIsolation:
    """Test that listener failures stay contained."""

    @pytest.mark.asyncio
    async def test_failing_listener(self, transport, rx64_data_frame):
        """A raising listener does not affect others; its error is reported."""
        received, errors = [], []

        def broken(message):
            raise ValueError("boom")

        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.DATA, broken)
            dispatcher.subscribe(ListenerCategory.DATA, received.append)
            dispatcher.subscribe(ListenerCategory.ERROR, errors.append)
            transport.feed(rx64_data_frame)
            await wait_until(lambda: received and errors)
            assert dispatcher.is_running
        assert isinstance(errors[0], ValueError)
        assert str(errors[0]) == "boom"

    @pytest.mark.asyncio
    async def test_failing_error_listener(self, transport, modem_status_frame):
        """An ERROR listener that raises is not fed its own error."""
        calls = []

        async def broken(error):
            calls.append(error)
            raise RuntimeError("error listener failed")

        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.ERROR, broken)
            transport.feed(modem_status_frame[:-1] + b"\x00")
            await wait_until(lambda: calls)
            await asyncio.sleep(0.02)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_slow_listener_does_not_block_reader(self, transport, modem_status_frame):
        """Packets keep flowing while a listener is busy."""
        release = asyncio.Event()
        packets = []

        async def slow(packet):
            await release.wait()

        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.PACKET, slow)
            dispatcher.subscribe(ListenerCategory.PACKET, packets.append)
            transport.feed(modem_status_frame)
            transport.feed(modem_status_frame)
            await wait_until(lambda: len(packets) == 2)
            release.set()

    @pytest.mark.asyncio
    async def test_sync_listener_runs_in_thread(self, transport, modem_status_frame):
        """Plain-function listeners run off the event loop thread."""
        threads = []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.PACKET, lambda p: threads.append(threading.current_thread()))
            transport.feed(modem_status_frame)
            await wait_until(lambda: threads)
        assert threads[0] is not threading.main_thread()
        assert threads[0].name.startswith("xbframes-listener")


class TestRequests:
    """Test send and request/response correlation."""

    @pytest.mark.asyncio
    async def test_send_escaped(self, transport):
        """Outgoing frames are escaped in API mode 2."""
        async with Dispatcher(transport) as dispatcher:
            await dispatcher.send(ATCommandRequest(frame_id=0x13, command="NI"))
            assert dispatcher.packets_sent == 1
        assert transport.written == [bytes.fromhex("7E0004087D334E494D")]

    @pytest.mark.asyncio
    async def test_send_and_wait(self, transport):
        """The response with the request's frame ID is returned."""
        answer_at_commands(transport)
        async with Dispatcher(transport) as dispatcher:
            frame_id = dispatcher.next_frame_id()
            response = await dispatcher.send_and_wait(ATCommandRequest(frame_id=frame_id, command="NI"))
        assert isinstance(response, ATCommandResponse)
        assert response.frame_id == frame_id
        assert response.value == b"Node"

    @pytest.mark.asyncio
    async def test_concurrent_requests(self, transport):
        """Concurrent requests each receive their own response."""
        answer_at_commands(transport)
        async with Dispatcher(transport) as dispatcher:
            requests = [ATCommandRequest(frame_id=dispatcher.next_frame_id(), command=c) for c in ("NI", "SH", "SL")]
            responses = await asyncio.gather(*(dispatcher.send_and_wait(r) for r in requests))
        assert [r.command for r in responses] == ["NI", "SH", "SL"]
        assert [r.frame_id for r in responses] == [r.frame_id for r in requests]

    @pytest.mark.asyncio
    async def test_echo_ignored(self, transport):
        """An echoed request does not complete its own wait."""

        def on_write(data):
            transport.feed(data)
            transport.feed(to_wire(ATCommandResponse(frame_id=5, command="NI", value=b"Node")))

        transport.on_write = on_write
        async with Dispatcher(transport) as dispatcher:
            response = await dispatcher.send_and_wait(ATCommandRequest(frame_id=5, command="NI"))
        assert isinstance(response, ATCommandResponse)
        assert response.value == b"Node"

    @pytest.mark.asyncio
    async def test_echoed_transmit_ignored(self, transport):
        """Echoed transmit requests are skipped until the status arrives."""

        def on_write(data):
            transport.feed(data)
            transport.feed(to_wire(TransmitStatusPacket(frame_id=2)))

        transport.on_write = on_write
        async with Dispatcher(transport) as dispatcher:
            response = await dispatcher.send_and_wait(TransmitRequest(frame_id=2, rf_data=b"hi"))
        assert isinstance(response, TransmitStatusPacket)

    @pytest.mark.asyncio
    async def test_stale_response_for_other_command(self, transport):
        """A response for another AT command does not answer the request."""

        def on_write(data):
            transport.feed(to_wire(ATCommandResponse(frame_id=5, command="SH", value=b"\x00\x13")))
            transport.feed(to_wire(ATCommandResponse(frame_id=5, command="NI", value=b"Node")))

        transport.on_write = on_write
        async with Dispatcher(transport) as dispatcher:
            response = await dispatcher.send_and_wait(ATCommandRequest(frame_id=5, command="NI"))
        assert response.command == "NI"
        assert response.value == b"Node"

    @pytest.mark.asyncio
    async def test_timeout_then_late_response(self, transport):
        """A late response goes to listeners but not to the timed-out caller."""
        packets = []
        async with Dispatcher(transport) as dispatcher:
            dispatcher.subscribe(ListenerCategory.PACKET, packets.append)
            with pytest.raises(RequestTimeout):
                await dispatcher.send_and_wait(ATCommandRequest(frame_id=5), timeout=0.05)
            assert len(dispatcher.correlator) == 0
            transport.feed(to_wire(ATCommandResponse(frame_id=5)))
            await wait_until(lambda: packets)
        assert packets[0].frame_id == 5

    @pytest.mark.asyncio
    async def test_subscribe_once(self, transport):
        """A one-shot listener fires for its frame ID, once."""
        once = []
        async with Dispatcher(transport) as dispatcher:
            sub = dispatcher.subscribe_once(7, once.append)
            transport.feed(to_wire(ATCommandResponse(frame_id=6)))
            transport.feed(to_wire(ATCommandResponse(frame_id=7)))
            transport.feed(to_wire(ATCommandResponse(frame_id=7)))
            await wait_until(lambda: dispatcher.packets_received == 3)
            await asyncio.sleep(0.02)
            assert not sub.active
        assert [p.frame_id for p in once] == [7]

    @pytest.mark.asyncio
    async def test_send_and_wait_blocking(self, transport):
        """Blocking variant works from a worker thread."""
        answer_at_commands(transport, value=b"X")
        async with Dispatcher(transport) as dispatcher:
            response = await asyncio.to_thread(
                dispatcher.send_and_wait_blocking, ATCommandRequest(frame_id=3), 1.0
            )
            with pytest.raises(RuntimeError, match="block the event loop"):
                dispatcher.send_and_wait_blocking(ATCommandRequest(frame_id=4))
        assert response.value == b"X"

    @pytest.mark.asyncio
    async def test_write_failure(self, transport):
        """Transport write errors propagate to the sender."""
        async with Dispatcher(transport) as dispatcher:
            transport.closed = True
            with pytest.raises(ConnectionError):
                await dispatcher.send(ATCommandRequest())
