"""Wire format of the host to state machine command channel.

Opcodes are single ASCII bytes. Multi-byte integers are little-endian.
These encodings must stay bit-exact with the device firmware.
"""

import struct
from typing import Sequence

MODULE_RELAY = b"J"  # J, module index (0-based), 1|0. No confirmation.
SET_FLEX_IO = b"Q"  # Q, one type byte per Flex channel. Confirmed.
SET_ANALOG_RATE = b"^"  # ^, uint32 cycles per sample. Confirmed.
SET_STATUS_LED = b":"  # :, 0|1. Confirmed.
RESET_SESSION_CLOCK = b"*"  # no payload. Confirmed.

CONFIRM_OK = 1

# payload length following each opcode, for decoders that need to frame
# commands (the emulator); None means it depends on the hardware
PAYLOAD_SIZES = {
    MODULE_RELAY: 2,
    SET_FLEX_IO: None,
    SET_ANALOG_RATE: 4,
    SET_STATUS_LED: 1,
    RESET_SESSION_CLOCK: 0,
}


def encode_relay(module_index: int, enable: bool) -> bytes:
    return bytes([module_index, 1 if enable else 0])


def decode_relay(payload: bytes) -> tuple[int, bool]:
    return payload[0], bool(payload[1])


def encode_flex_io(channel_types: Sequence[int]) -> bytes:
    return bytes(int(t) for t in channel_types)


def decode_flex_io(payload: bytes) -> list[int]:
    return list(payload)


def encode_analog_rate(cycles_per_sample: int) -> bytes:
    return struct.pack("<I", cycles_per_sample)


def decode_analog_rate(payload: bytes) -> int:
    return struct.unpack("<I", payload)[0]
