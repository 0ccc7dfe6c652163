"""Tests for listener subscriptions and event mapping."""

import ipaddress

import pytest

from xbframes.core.address import Address16, Address64
from xbframes.core.types import ModemStatus
from xbframes.dispatch.listeners import (
    DataMessage,
    ExplicitDataMessage,
    IOSampleMessage,
    IPMessage,
    ListenerCategory,
    ListenerRegistry,
    events_for,
)
from xbframes.packets import (
    ATCommandResponse,
    ExplicitRxIndicator,
    IODataSampleRxIndicator,
    ModemStatusIndicator,
    ReceivePacket,
    RX16Indicator,
    RX16IOIndicator,
    RX64Indicator,
    RXIPv4Indicator,
    TransmitRequest,
)

SAMPLE = bytes.fromhex("01 0004 02 0004 0123")


def noop(event):
    pass


class TestEventsFor:
    """Test packet to category event mapping."""

    def test_receive_packet(self):
        """0x90 is DATA with both source addresses."""
        packet = ReceivePacket(source64=Address64(1), source16=Address16(2), options=0x02, rf_data=b"hi")
        [(category, message)] = events_for(packet)
        assert category is ListenerCategory.DATA
        assert message == DataMessage(Address64(1), Address16(2), b"hi", True)
        assert message.packet is packet

    def test_rx64_is_data_not_io(self):
        """RX 64 gives one DATA event and no IO event."""
        packet = RX64Indicator(source64=Address64(0x0123456789ABCDEF), rssi=0x28, rf_data=b"data")
        events = events_for(packet)
        assert [c for c, _ in events] == [ListenerCategory.DATA]
        message = events[0][1]
        assert message.source64 == Address64(0x0123456789ABCDEF)
        assert message.source16 is None
        assert message.data == b"data"

    def test_rx16(self):
        """RX 16 carries only the 16-bit source."""
        [(_, message)] = events_for(RX16Indicator(source16=Address16(0x1234), rf_data=b"x"))
        assert message.source64 is None
        assert message.source16 == Address16(0x1234)

    def test_empty_rf_data(self):
        """A data packet without RF data gives empty bytes."""
        [(_, message)] = events_for(ReceivePacket())
        assert message.data == b""

    def test_explicit_rx(self):
        """0x91 is EXPLICIT_DATA."""
        packet = ExplicitRxIndicator(cluster_id=0x0006, profile_id=0x0104, rf_data=b"x")
        [(category, message)] = events_for(packet)
        assert category is ListenerCategory.EXPLICIT_DATA
        assert isinstance(message, ExplicitDataMessage)
        assert message.cluster_id == 0x0006
        assert message.profile_id == 0x0104

    def test_io_sample(self):
        """IO frames are IO_SAMPLE events."""
        [(category, message)] = events_for(IODataSampleRxIndicator(sample_data=SAMPLE))
        assert category is ListenerCategory.IO_SAMPLE
        assert isinstance(message, IOSampleMessage)
        assert message.sample.analog_values == {1: 0x0123}

    def test_raw_io_sample_source(self):
        """RX IO 16 has no 64-bit source."""
        [(_, message)] = events_for(RX16IOIndicator(source16=Address16(5), sample_data=bytes.fromhex("01020C000803FF")))
        assert message.source64 is None
        assert message.source16 == Address16(5)

    def test_io_without_sample(self):
        """An IO frame without a usable sample has no event."""
        assert events_for(IODataSampleRxIndicator(sample_data=b"\x01")) == []

    def test_modem_status(self):
        """Modem status events are the status enum."""
        assert events_for(ModemStatusIndicator(status=0x06)) == [
            (ListenerCategory.MODEM_STATUS, ModemStatus.COORDINATOR_STARTED)
        ]

    def test_ip_data(self):
        """0xB0 is IP_DATA."""
        packet = RXIPv4Indicator(source_address="10.0.0.2", source_port=5000, dest_port=6000, data=b"x")
        [(category, message)] = events_for(packet)
        assert category is ListenerCategory.IP_DATA
        assert isinstance(message, IPMessage)
        assert message.source_address == ipaddress.IPv4Address("10.0.0.2")
        assert message.source_port == 5000

    def test_other_packets(self):
        """Requests and responses have no category event."""
        assert events_for(TransmitRequest()) == []
        assert events_for(ATCommandResponse()) == []


class TestListenerRegistry:
    """Test subscription bookkeeping."""

    def test_add_and_remove(self):
        """remove reports whether the subscription was registered."""
        registry = ListenerRegistry()
        sub = registry.add(ListenerCategory.DATA, noop)
        assert registry.count(ListenerCategory.DATA) == 1
        assert sub.active
        assert registry.remove(sub) is True
        assert not sub.active
        assert registry.remove(sub) is False
        assert registry.count() == 0

    def test_category_by_name(self):
        """Categories can be given by value."""
        registry = ListenerRegistry()
        sub = registry.add("modem_status", noop)
        assert sub.category is ListenerCategory.MODEM_STATUS

    def test_unknown_category(self):
        """Unknown category names are rejected."""
        with pytest.raises(ValueError):
            ListenerRegistry().add("bogus", noop)

    def test_not_callable(self):
        """Callbacks must be callable."""
        with pytest.raises(ValueError, match="callable"):
            ListenerRegistry().add(ListenerCategory.PACKET, "not a function")

    def test_scope_only_on_packet(self):
        """Frame ID scope is a PACKET feature."""
        with pytest.raises(ValueError, match="Only PACKET"):
            ListenerRegistry().add(ListenerCategory.DATA, noop, frame_id=1)

    def test_take_matching_unscoped(self):
        """Unscoped PACKET listeners match every packet and stay registered."""
        registry = ListenerRegistry()
        sub = registry.add(ListenerCategory.PACKET, noop)
        assert registry.take_matching(ModemStatusIndicator()) == [sub]
        assert registry.take_matching(ModemStatusIndicator()) == [sub]

    def test_take_matching_once(self):
        """A frame ID scoped listener fires once, for its frame ID only."""
        registry = ListenerRegistry()
        once = registry.add(ListenerCategory.PACKET, noop, frame_id=3)
        assert registry.take_matching(ATCommandResponse(frame_id=2)) == []
        assert registry.take_matching(ModemStatusIndicator()) == []
        assert registry.take_matching(ATCommandResponse(frame_id=3)) == [once]
        assert not once.active
        assert registry.take_matching(ATCommandResponse(frame_id=3)) == []
        assert registry.remove(once) is False

    def test_snapshot_is_copy(self):
        """Changing the registry does not change an earlier snapshot."""
        registry = ListenerRegistry()
        sub = registry.add(ListenerCategory.ERROR, noop)
        snapshot = registry.snapshot(ListenerCategory.ERROR)
        registry.remove(sub)
        assert snapshot == [sub]

    def test_clear(self):
        """clear deactivates everything."""
        registry = ListenerRegistry()
        subs = [registry.add(c, noop) for c in ListenerCategory]
        registry.clear()
        assert registry.count() == 0
        assert not any(s.active for s in subs)
