"""
Exception Hierarchy

Errors fall in three families:

- FrameError: problems found by the deframer in the byte stream. The
  offending frame is dropped and the stream continues.
- DecodeError: a checksum-valid frame whose content does not match the
  layout of its packet variant. Also a ValueError.
- CorrelationError: outcomes of request/response correlation.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "XBFramesError",
    "FrameError",
    "BadChecksum",
    "IncompleteFrame",
    "DecodeError",
    "UnknownFrameType",
    "MalformedReason",
    "MalformedPacket",
    "CorrelationError",
    "DuplicateCorrelationID",
    "RequestTimeout",
    "RequestCancelled",
    "DispatcherNotRunning",
]


class XBFramesError(Exception):
    """Base class of all library errors."""


class FrameError(XBFramesError):
    """Invalid or interrupted frame in the byte stream."""


class BadChecksum(FrameError):
    """Frame checksum does not match the frame data."""

    def __init__(self, expected: int, received: int, data: bytes = b"") -> None:
        super().__init__(f"Invalid checksum: expected 0x{expected:02X}, got 0x{received:02X}")
        self.expected = expected
        self.received = received
        self.data = data


class IncompleteFrame(FrameError):
    """Frame was abandoned before it was complete."""

    def __init__(self, reason: str, received: int = 0) -> None:
        super().__init__(f"Incomplete frame: {reason}")
        self.reason = reason
        self.received = received


class DecodeError(XBFramesError, ValueError):
    """Frame data cannot be turned into a packet."""


class UnknownFrameType(DecodeError):
    """No packet variant is registered for the frame type."""

    def __init__(self, frame_type: int) -> None:
        super().__init__(f"Unknown frame type: 0x{frame_type:02X}")
        self.frame_type = frame_type


class MalformedReason(Enum):
    """Why a packet parse was rejected."""

    NULL_INPUT = "null_input"
    TOO_SHORT = "too_short"
    WRONG_TAG = "wrong_tag"
    TRUNCATED_FIELD = "truncated_field"
    BAD_OPTIONS = "bad_options"
    INVALID_VALUE = "invalid_value"


class MalformedPacket(DecodeError):
    """Frame data violates the layout of its packet variant."""

    def __init__(self, reason: MalformedReason, message: str, variant: Optional[str] = None) -> None:
        prefix = f"{variant}: " if variant else ""
        super().__init__(f"{prefix}{message}")
        self.reason = reason
        self.variant = variant


class CorrelationError(XBFramesError):
    """Request/response correlation failure."""


class DuplicateCorrelationID(CorrelationError):
    """A request with the same frame ID is already waiting for its response."""

    def __init__(self, frame_id: int) -> None:
        super().__init__(f"Frame ID {frame_id} already has a pending request")
        self.frame_id = frame_id


class RequestTimeout(CorrelationError, TimeoutError):
    """No response arrived before the deadline."""

    def __init__(self, frame_id: int, timeout: float) -> None:
        super().__init__(f"No response for frame ID {frame_id} after {timeout:.3f}s")
        self.frame_id = frame_id
        self.timeout = timeout


class RequestCancelled(CorrelationError):
    """The pending request was cancelled, normally by dispatcher shutdown."""


class DispatcherNotRunning(XBFramesError, RuntimeError):
    """Operation requires a running dispatcher."""
