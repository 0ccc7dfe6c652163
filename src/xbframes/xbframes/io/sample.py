"""
IO Sample Parsing

Decodes the IO sample block carried by IO data sample frames (0x82, 0x83
and 0x92). Two layouts exist:

Even-length block:
- Byte 0: number of sample sets (always 1)
- Bytes 1-2: digital channel mask (16 lines, top bit unused)
- Byte 3: analog channel mask (bit 7 = supply voltage, bit 6 unused)
- Bytes 4-5: digital values, present if the digital mask is non-zero
- 2 bytes per enabled analog channel, lowest channel first

Odd-length block (802.15.4 raw IO frames):
- Byte 0: number of sample sets
- Bytes 1-2: combined mask; bit 8 and bits 0-7 are DIO8..DIO0, bits 9-14
  are ADC0..ADC5
- Bytes 3-4: digital values, present if any digital line is enabled
- 2 bytes per enabled ADC channel
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

__all__ = ["IOValue", "IOSample", "MIN_IO_SAMPLE_SIZE"]

MIN_IO_SAMPLE_SIZE: int = 5

# Analog mask bit carrying the supply voltage reading
_SUPPLY_VOLTAGE_BIT = 7


class IOValue(Enum):
    """Level of a digital line."""

    LOW = 0
    HIGH = 1


def _digital_map(mask: int, values: int) -> dict[int, IOValue]:
    levels: dict[int, IOValue] = {}
    for line in range(16):
        if mask & (1 << line):
            levels[line] = IOValue.HIGH if values & (1 << line) else IOValue.LOW
    return levels


@dataclass(frozen=True)
class IOSample:
    """
    Parsed IO sample.

    Attributes:
        payload: The raw sample block.
        digital_mask: Enabled digital lines, bit n = DIOn.
        analog_mask: Enabled analog channels (layout-specific bit positions).
        digital_values: Level per enabled DIO line.
        analog_values: Raw ADC reading per enabled analog line.
        power_supply: Supply voltage reading, if sampled.

    Examples:
        >>> s = IOSample.from_bytes(bytes.fromhex("01 0004 02 0004 0123"))
        >>> s.digital_values
        {2: <IOValue.HIGH: 1>}
        >>> s.analog_values
        {1: 291}
    """

    payload: bytes
    digital_mask: int = 0
    analog_mask: int = 0
    digital_values: dict[int, IOValue] = field(default_factory=dict)
    analog_values: dict[int, int] = field(default_factory=dict)
    power_supply: Optional[int] = None

    @classmethod
    def from_bytes(cls, payload: Union[bytes, bytearray]) -> IOSample:
        """
        Parse an IO sample block.

        Raises:
            ValueError: If the block is shorter than 5 bytes.
        """
        if payload is None:
            raise ValueError("IO sample payload cannot be None")
        payload = bytes(payload)
        if len(payload) < MIN_IO_SAMPLE_SIZE:
            raise ValueError(f"IO sample payload must be at least {MIN_IO_SAMPLE_SIZE} bytes, got {len(payload)}")
        if len(payload) % 2:
            return cls._parse_raw(payload)
        return cls._parse(payload)

    @classmethod
    def _parse(cls, payload: bytes) -> IOSample:
        index = 4
        digital_mask = ((payload[1] & 0x7F) << 8) | payload[2]
        analog_mask = payload[3] & 0xBF

        digital: dict[int, IOValue] = {}
        if digital_mask:
            values = ((payload[4] & 0x7F) << 8) | payload[5]
            digital = _digital_map(digital_mask, values)
            index += 2

        analog: dict[int, int] = {}
        supply: Optional[int] = None
        channel = 0
        while len(payload) - index > 1 and channel < 8:
            if analog_mask & (1 << channel):
                reading = int.from_bytes(payload[index:index + 2], "big")
                if channel == _SUPPLY_VOLTAGE_BIT:
                    supply = reading
                else:
                    analog[channel] = reading
                index += 2
            channel += 1

        return cls(payload, digital_mask, analog_mask, digital, analog, supply)

    @classmethod
    def _parse_raw(cls, payload: bytes) -> IOSample:
        index = 3
        digital_mask = ((payload[1] & 0x01) << 8) | payload[2]
        analog_mask = ((payload[1] << 8) | payload[2]) & 0x7E00

        digital: dict[int, IOValue] = {}
        if digital_mask:
            values = ((payload[3] & 0x7F) << 8) | payload[4]
            digital = _digital_map(digital_mask, values)
            index += 2

        analog: dict[int, int] = {}
        bit = 9
        while len(payload) - index > 1 and bit < 16:
            if analog_mask & (1 << bit):
                analog[bit - 9] = int.from_bytes(payload[index:index + 2], "big")
                index += 2
            bit += 1

        return cls(payload, digital_mask, analog_mask, digital, analog, None)

    @property
    def has_digital_values(self) -> bool:
        return bool(self.digital_values)

    @property
    def has_analog_values(self) -> bool:
        return bool(self.analog_values)

    @property
    def has_power_supply(self) -> bool:
        return self.power_supply is not None

    def __bytes__(self) -> bytes:
        return self.payload
