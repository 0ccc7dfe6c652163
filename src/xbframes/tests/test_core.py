"""Tests for addresses, byte helpers and field enumerations."""

import pytest

from xbframes.core.address import Address16, Address64
from xbframes.core.byteutils import ByteReader, bytes_to_int, hex_to_bytes, int_to_bytes, pretty_hex
from xbframes.core.errors import MalformedPacket, MalformedReason
from xbframes.core.types import (
    ATCommandStatus,
    FrameType,
    HTTPMethod,
    ModemStatus,
    OperatingMode,
    RestfulStatus,
    TransmitStatus,
)


class TestAddress64:
    """Test 64-bit addresses."""

    def test_from_hex(self):
        """Hex strings with and without separators."""
        expected = Address64(0x0013A20040A1B2C3)
        assert Address64.from_hex("0013A20040A1B2C3") == expected
        assert Address64.from_hex("00:13:A2:00:40:A1:B2:C3") == expected
        assert Address64.from_hex("0x0013a20040a1b2c3") == expected

    def test_bytes_round_trip(self):
        """to_bytes is big-endian and from_bytes reverses it."""
        addr = Address64(0x0123456789ABCDEF)
        assert addr.to_bytes() == bytes.fromhex("0123456789ABCDEF")
        assert Address64.from_bytes(bytes(addr)) == addr

    def test_str(self):
        """String form is 16 upper-case hex digits."""
        assert str(Address64(0xFFFF)) == "000000000000FFFF"

    def test_reserved_values(self):
        """Broadcast, coordinator and unknown constants."""
        assert Address64.BROADCAST.is_broadcast
        assert Address64.COORDINATOR.value == 0
        assert Address64.UNKNOWN.value == 0xFFFFFFFFFFFFFFFF
        assert not Address64.UNKNOWN.is_broadcast

    def test_wrong_size(self):
        """from_bytes needs exactly 8 bytes."""
        with pytest.raises(ValueError, match="8 bytes"):
            Address64.from_bytes(b"\x00" * 7)

    def test_out_of_range(self):
        """Values wider than 64 bits are rejected."""
        with pytest.raises(ValueError):
            Address64(1 << 64)

    def test_invalid_hex(self):
        """Non-hex and over-long strings are rejected."""
        with pytest.raises(ValueError, match="Invalid 64-bit address"):
            Address64.from_hex("zz")
        with pytest.raises(ValueError, match="hex digits"):
            Address64.from_hex("00" * 9)

    def test_hashable(self):
        """Addresses can be dictionary keys."""
        table = {Address64(1): "a"}
        assert table[Address64.from_hex("01")] == "a"


class TestAddress16:
    """Test 16-bit addresses."""

    def test_default_is_unknown(self):
        """Default value is FFFE."""
        assert Address16() == Address16.UNKNOWN
        assert Address16().is_unknown

    def test_bytes_round_trip(self):
        """Two big-endian bytes."""
        addr = Address16(0x1234)
        assert bytes(addr) == b"\x12\x34"
        assert Address16.from_bytes(b"\x12\x34") == addr

    def test_broadcast(self):
        """FFFF is broadcast."""
        assert Address16.from_hex("ffff").is_broadcast
        assert str(Address16.BROADCAST) == "FFFF"

    def test_out_of_range(self):
        """Values wider than 16 bits are rejected."""
        with pytest.raises(ValueError, match="0-65535"):
            Address16(0x10000)


class TestByteHelpers:
    """Test integer and hex helpers."""

    def test_int_to_bytes(self):
        """Big-endian fixed width."""
        assert int_to_bytes(0x1234, 2) == b"\x12\x34"
        assert int_to_bytes(5, 1) == b"\x05"

    def test_int_to_bytes_overflow(self):
        """Values that do not fit are rejected."""
        with pytest.raises(ValueError, match="does not fit"):
            int_to_bytes(0x100, 1)
        with pytest.raises(ValueError, match="does not fit"):
            int_to_bytes(-1, 1)

    def test_bytes_to_int(self):
        """Big-endian decode."""
        assert bytes_to_int(b"\x01\x00") == 256
        assert bytes_to_int(b"") == 0

    def test_hex_to_bytes(self):
        """Whitespace, colons and 0x prefix are ignored."""
        assert hex_to_bytes("7E 00 02") == b"\x7e\x00\x02"
        assert hex_to_bytes("0x7e:00:02") == b"\x7e\x00\x02"

    def test_hex_to_bytes_invalid(self):
        """Non-hex input raises ValueError."""
        with pytest.raises(ValueError, match="Invalid hex string"):
            hex_to_bytes("7G")

    def test_pretty_hex(self):
        """Upper case with spaces."""
        assert pretty_hex(b"\x7e\xab") == "7E AB"


class TestByteReader:
    """Test the field cursor."""

    def test_sequential_reads(self):
        """Fields are read left to right."""
        reader = ByteReader(bytes.fromhex("01 0203 040506"))
        assert reader.u8() == 1
        assert reader.u16() == 0x0203
        assert reader.read(2) == b"\x04\x05"
        assert reader.remaining == 1
        assert reader.rest() == b"\x06"
        assert reader.remaining == 0

    def test_offset(self):
        """Reading can start past the beginning."""
        reader = ByteReader(b"\x10\x20\x30", offset=1)
        assert reader.position == 1
        assert reader.u8() == 0x20

    def test_rest_empty(self):
        """Nothing left reads as None."""
        reader = ByteReader(b"\x01")
        reader.u8()
        assert reader.rest() is None

    def test_truncated_field(self):
        """Short reads raise MalformedPacket naming the field."""
        reader = ByteReader(b"\x01", variant="ReceivePacket")
        with pytest.raises(MalformedPacket, match="source64") as exc_info:
            reader.read(8, "source64")
        assert exc_info.value.reason is MalformedReason.TRUNCATED_FIELD
        assert exc_info.value.variant == "ReceivePacket"
        assert str(exc_info.value).startswith("ReceivePacket: ")


class TestTypes:
    """Test field enumerations."""

    def test_lookup_known(self):
        """Known values map to members."""
        assert ModemStatus.lookup(0x06) is ModemStatus.COORDINATOR_STARTED
        assert TransmitStatus.lookup(0x00) is TransmitStatus.SUCCESS
        assert RestfulStatus.lookup(0x0205) is RestfulStatus.CONTENT

    def test_lookup_unknown(self):
        """Unknown values fall back to UNKNOWN."""
        assert ModemStatus.lookup(0x42) is ModemStatus.UNKNOWN
        assert ATCommandStatus.lookup(0x77) is ATCommandStatus.UNKNOWN
        assert HTTPMethod.lookup(0x09) is HTTPMethod.UNKNOWN

    def test_frame_type_values(self):
        """A few well-known tags."""
        assert FrameType.AT_COMMAND == 0x08
        assert FrameType.RECEIVE_PACKET == 0x90
        assert FrameType.RX_IPV4 == 0xB0

    def test_operating_mode(self):
        """Only API mode 2 escapes."""
        assert OperatingMode.API_ESCAPE.escaped
        assert not OperatingMode.API.escaped
