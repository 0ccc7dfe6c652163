import logging
import sys

from xbframes.core.byteutils import hex_to_bytes, pretty_hex
from xbframes.core.errors import DecodeError, FrameError
from xbframes.core.types import FrameType
from xbframes.frames.deframer import RawFrame, encode_frame, parse_frame
from xbframes.packets import decode, registered_types

helptext = """
Usage: python -m xbframes <command> [args]

Commands:
    decode <hex frame> [api]   Decode a complete frame (escaped unless "api" is given)
    encode <hex frame data>    Add delimiter, length and checksum (escaped)
    types                      List frame types with a packet variant

Examples:
    python -m xbframes decode 7E 00 02 8A 06 6F
    python -m xbframes encode 08 01 4E 49
"""


def decode_frame(*args: str) -> int:
    escaped = True
    if args and args[-1].lower() == "api":
        escaped = False
        args = args[:-1]
    try:
        frame = parse_frame(hex_to_bytes(" ".join(args)), escaped=escaped)
        packet = decode(frame)
    except (FrameError, DecodeError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    print(packet)
    for name, value in packet.parameters().items():
        print(f"    {name}: {value}")
    return 0


def encode_data(*args: str) -> int:
    try:
        frame = RawFrame.from_data(hex_to_bytes(" ".join(args)))
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    print(pretty_hex(encode_frame(frame, escaped=True)))
    return 0


def list_types(*args: str) -> int:
    for tag in registered_types():
        print(f"0x{tag:02X}  {FrameType(tag).name}")
    return 0


_CLI_COMMANDS = {
    "decode": decode_frame,
    "encode": encode_data,
    "types": list_types,
}


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    if len(sys.argv) < 2 or sys.argv[1] not in _CLI_COMMANDS:
        print(helptext)
        sys.exit(1)
    sys.exit(_CLI_COMMANDS[sys.argv[1]](*sys.argv[2:]))


if __name__ == "__main__":
    main()
