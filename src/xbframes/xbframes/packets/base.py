"""
API Packet Base Classes

Every packet variant is a dataclass bound to one frame type byte. The
frame data of a packet is laid out as:

    frame type | [frame ID] | variant fields ... | [tail]

Class-level attributes describe the variant:
- frame_type: tag byte selecting the variant.
- needs_frame_id: the wire format reserves a frame ID byte after the tag.
- min_length: shortest valid frame data, tag byte included.

Variants implement ``_encode_fields`` and ``_decode_fields``; the base
class handles the tag, the frame ID and the length/tag checks shared by
all of them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, TypeVar, Union

from xbframes.core.address import Address16, Address64
from xbframes.core.byteutils import ByteReader, pretty_hex
from xbframes.core.constants import NO_FRAME_ID
from xbframes.core.errors import MalformedPacket, MalformedReason
from xbframes.core.tlv import TLV
from xbframes.core.types import FrameType
from xbframes.frames.deframer import RawFrame

__all__ = [
    "APIPacket",
    "FrameIDPacket",
    "GenericPacket",
    "UnknownPacket",
    "check_u8",
    "check_u16",
    "check_optional_bytes",
    "check_command",
]

P = TypeVar("P", bound="APIPacket")


def check_u8(name: str, value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")
    return int(value)


def check_u16(name: str, value: int) -> int:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"{name} must be 0-65535, got {value}")
    return int(value)


def check_optional_bytes(name: str, value: Optional[Union[bytes, bytearray]]) -> Optional[bytes]:
    """Opaque tails: empty bytes and None are the same absent tail on the wire."""
    if value is None:
        return None
    if not isinstance(value, (bytes, bytearray)):
        raise ValueError(f"{name} must be bytes or None, got {type(value).__name__}")
    return bytes(value) or None


def check_command(command: str) -> str:
    """AT commands are exactly two single-byte characters."""
    try:
        encoded = command.encode("latin-1")
    except (AttributeError, UnicodeEncodeError):
        raise ValueError(f"AT command must be a 2-character string, got {command!r}") from None
    if len(encoded) != 2:
        raise ValueError(f"AT command must be 2 characters, got {command!r}")
    return command


def _display(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return pretty_hex(value)
    if isinstance(value, (Address64, Address16)):
        return str(value)
    if isinstance(value, list):
        return [_display(item) for item in value]
    if isinstance(value, TLV):
        return str(value)
    return value


@dataclass
class APIPacket:
    """Base class of all API packets."""

    frame_type: ClassVar[int] = FrameType.GENERIC
    needs_frame_id: ClassVar[bool] = False
    min_length: ClassVar[int] = 1

    def __post_init__(self) -> None:
        """Validate fields."""

    # -- variant hooks ----------------------------------------------------

    def _encode_fields(self) -> bytes:
        """Frame data after the tag and frame ID."""
        return b""

    @classmethod
    def _decode_fields(cls: type[P], reader: ByteReader, **header: int) -> P:
        """Build the packet from a reader positioned after the frame ID."""
        return cls(**header)

    # -- shared codec -------------------------------------------------------

    def to_bytes(self) -> bytes:
        """
        Serialize to frame data.

        Returns:
            Frame type byte followed by the packet fields (no delimiter,
            length or checksum).
        """
        head = bytes([self.frame_type])
        if self.needs_frame_id:
            head += bytes([self.frame_id])  # type: ignore[attr-defined]
        return head + self._encode_fields()

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @classmethod
    def check_frame_data(cls, data: Optional[Union[bytes, bytearray]]) -> None:
        """
        Check the length and tag of frame data.

        Raises:
            MalformedPacket: NULL_INPUT, TOO_SHORT or WRONG_TAG.
        """
        name = cls.__name__
        if data is None:
            raise MalformedPacket(MalformedReason.NULL_INPUT, "frame data cannot be None", name)
        if len(data) < cls.min_length:
            raise MalformedPacket(
                MalformedReason.TOO_SHORT,
                f"incomplete packet: {len(data)} byte(s), minimum is {cls.min_length}",
                name,
            )
        if data[0] != cls.frame_type:
            raise MalformedPacket(
                MalformedReason.WRONG_TAG,
                f"frame type 0x{data[0]:02X} is not 0x{cls.frame_type:02X}",
                name,
            )

    @classmethod
    def from_bytes(cls: type[P], data: Optional[Union[bytes, bytearray]]) -> P:
        """
        Parse frame data (tag byte included).

        Raises:
            MalformedPacket: If the data does not match the variant layout.
        """
        cls.check_frame_data(data)
        reader = ByteReader(data, variant=cls.__name__, offset=1)
        header: dict[str, int] = {}
        if cls.needs_frame_id:
            header["frame_id"] = reader.u8("frame ID")
        try:
            return cls._decode_fields(reader, **header)
        except MalformedPacket:
            raise
        except ValueError as e:
            # Field values rejected by the constructor
            raise MalformedPacket(MalformedReason.INVALID_VALUE, str(e), cls.__name__) from e

    def to_raw(self) -> RawFrame:
        return RawFrame.from_data(self.to_bytes())

    @classmethod
    def from_raw(cls: type[P], frame: RawFrame) -> P:
        return cls.from_bytes(frame.data)

    # -- inspection ---------------------------------------------------------

    @property
    def frame_type_name(self) -> str:
        try:
            return FrameType(self.frame_type).name
        except ValueError:
            return "UNKNOWN"

    def parameters(self) -> dict[str, Any]:
        """Field values in display form (hex for bytes)."""
        params: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            params[f.name] = _display(getattr(self, f.name))
        return params

    def __str__(self) -> str:
        fields = ", ".join(f"{k}={v}" for k, v in self.parameters().items())
        return f"{self.frame_type_name} (0x{self.frame_type:02X}) [{fields}]"


@dataclass
class FrameIDPacket(APIPacket):
    """Packet whose wire format carries a frame ID after the tag.

    Frame ID 0 tells the module not to send a response.
    """

    needs_frame_id: ClassVar[bool] = True
    min_length: ClassVar[int] = 2

    frame_id: int = 1

    def __post_init__(self) -> None:
        super().__post_init__()
        self.frame_id = check_u8("Frame ID", self.frame_id)

    @property
    def expects_response(self) -> bool:
        return self.frame_id != NO_FRAME_ID


@dataclass
class GenericPacket(APIPacket):
    """Frame type 0xFF: opaque frame data."""

    frame_type: ClassVar[int] = FrameType.GENERIC
    min_length: ClassVar[int] = 1

    rf_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.rf_data = check_optional_bytes("RF data", self.rf_data)

    def _encode_fields(self) -> bytes:
        return self.rf_data or b""

    @classmethod
    def _decode_fields(cls, reader: ByteReader, **header: int) -> GenericPacket:
        return cls(rf_data=reader.rest(), **header)


@dataclass
class UnknownPacket(APIPacket):
    """Frame with a type this library has no variant for.

    Keeps the tag and the payload so the frame can be inspected or sent
    back out unchanged.
    """

    frame_type: int = FrameType.GENERIC  # type: ignore[misc]
    payload: Optional[bytes] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.frame_type = check_u8("Frame type", self.frame_type)
        self.payload = check_optional_bytes("Payload", self.payload)

    def _encode_fields(self) -> bytes:
        return self.payload or b""

    @classmethod
    def from_bytes(cls, data: Optional[Union[bytes, bytearray]]) -> UnknownPacket:
        if data is None:
            raise MalformedPacket(MalformedReason.NULL_INPUT, "frame data cannot be None", cls.__name__)
        if not data:
            raise MalformedPacket(MalformedReason.TOO_SHORT, "incomplete packet: 0 byte(s)", cls.__name__)
        return cls(frame_type=data[0], payload=bytes(data[1:]) or None)

    @property
    def frame_type_name(self) -> str:
        return "UNKNOWN"
