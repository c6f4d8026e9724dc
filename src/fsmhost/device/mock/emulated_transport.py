from __future__ import annotations

import threading
import time
from typing import Optional

import numpy as np
from loguru import logger

from fsmhost.device.device import Device
from fsmhost.protocol import opcodes
from fsmhost.stream.analog import encode_records
from fsmhost.types import FlexIOType, HardwareDescription


class EmulatedTransport(Device):  # Protocol compliance checked by TransportProtocol
    """In-memory stand-in for the state machine's command channel.

    Written bytes are framed into commands and answered the way the firmware
    answers them, so everything above the transport behaves identically with
    or without a device. The emulated device state (Flex I/O types, sampling
    rate, status LED, active relay) is kept for inspection.
    """

    def __init__(self, hw: HardwareDescription, **config):
        super().__init__(**config)
        self.hw = hw
        self._connected = False
        self._rx = bytearray()
        self._tx = bytearray()
        self._lock = threading.Lock()

        self.commands: list[tuple[bytes, bytes]] = []
        self.flex_io_types = list(hw.flex_io_types)
        self.cycles_per_sample = round(hw.cycle_frequency / hw.flex_io_sampling_rate)
        self.status_led = True
        self.relay_index: Optional[int] = None
        self.clock_resets = 0

    def open(self) -> tuple[bool, str]:
        self._connected = True
        logger.info("Connected to state machine emulator")
        return True, "Connected to state machine emulator"

    def close(self):
        self._connected = False
        logger.info("Disconnected from state machine emulator")

    def is_connected(self) -> bool:
        return self._connected

    # transport

    def write(self, data: bytes) -> int:
        with self._lock:
            self._tx += data
            self._process()
        return len(data)

    def read(self, n: int) -> bytes:
        # a short read stands in for the serial timeout expiring
        with self._lock:
            out = bytes(self._rx[:n])
            del self._rx[:n]
        return out

    def bytes_available(self) -> int:
        with self._lock:
            return len(self._rx)

    def reset_input_buffer(self) -> None:
        with self._lock:
            self._rx.clear()

    # emulated module traffic

    def inject_module_bytes(self, module_index: int, data: bytes) -> bool:
        """Bytes arriving from a UART module.

        They reach the host only while that module is being relayed, as on
        the real device. Returns True if they were forwarded.
        """
        with self._lock:
            if self.relay_index != module_index:
                return False
            self._rx += data
        return True

    # firmware

    def _payload_size(self, opcode: bytes) -> Optional[int]:
        if opcode == opcodes.SET_FLEX_IO:
            return self.hw.n_flex_io
        return opcodes.PAYLOAD_SIZES.get(opcode)

    def _process(self) -> None:
        while self._tx:
            opcode = bytes(self._tx[:1])
            size = self._payload_size(opcode)
            if size is None:
                logger.warning(
                    "Emulator: unknown opcode {!r}, discarding {} bytes",
                    opcode,
                    len(self._tx),
                )
                self._tx.clear()
                return
            if len(self._tx) < 1 + size:
                return  # wait for the rest of the payload
            payload = bytes(self._tx[1 : 1 + size])
            del self._tx[: 1 + size]
            self.commands.append((opcode, payload))
            self._execute(opcode, payload)

    def _execute(self, opcode: bytes, payload: bytes) -> None:
        logger.trace("Emulator: {!r} {}", opcode, payload.hex())
        if opcode == opcodes.MODULE_RELAY:
            index, enable = opcodes.decode_relay(payload)
            if enable:
                self.relay_index = index
            elif self.relay_index == index:
                self.relay_index = None
        elif opcode == opcodes.SET_FLEX_IO:
            types = opcodes.decode_flex_io(payload)
            if all(t in {f.value for f in FlexIOType} for t in types):
                self.flex_io_types = types
                self._confirm(True)
            else:
                self._confirm(False)
        elif opcode == opcodes.SET_ANALOG_RATE:
            cycles = opcodes.decode_analog_rate(payload)
            ok = 10 <= cycles <= self.hw.cycle_frequency
            if ok:
                self.cycles_per_sample = cycles
            self._confirm(ok)
        elif opcode == opcodes.SET_STATUS_LED:
            ok = payload[0] in (0, 1)
            if ok:
                self.status_led = bool(payload[0])
            self._confirm(ok)
        elif opcode == opcodes.RESET_SESSION_CLOCK:
            self.clock_resets += 1
            self._confirm(True)

    def _confirm(self, ok: bool) -> None:
        self._rx.append(opcodes.CONFIRM_OK if ok else 0)


class EmulatedAnalogTransport(Device):
    """In-memory stand-in for the dedicated analog channel.

    Produces sample records for the Flex channels the emulated device has
    typed as analog input, at its current sampling rate. With
    `auto_generate` the samples accrue in real time; otherwise they are only
    added by `push_samples`.
    """

    def __init__(
        self, device: EmulatedTransport, auto_generate: bool = True, **config
    ):
        super().__init__(**config)
        self.device = device
        self.auto_generate = auto_generate
        self._connected = False
        self._rx = bytearray()
        self._lock = threading.Lock()
        self._next_timestamp = 0
        self._t_last: Optional[float] = None

    def open(self) -> tuple[bool, str]:
        self._connected = True
        self._t_last = time.monotonic()
        return True, "Connected to state machine emulator (analog channel)"

    def close(self):
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    def _channels(self) -> list[int]:
        return [
            i
            for i, t in enumerate(self.device.flex_io_types)
            if t == FlexIOType.ANALOG_IN
        ]

    def push_samples(self, n: int) -> None:
        """Append `n` synthetic records (a slow sine per channel)."""
        channels = self._channels()
        if n <= 0 or not channels:
            return
        cps = self.device.cycles_per_sample
        timestamps = self._next_timestamp + np.arange(n) * cps
        t = timestamps / self.device.hw.cycle_frequency
        values = np.stack(
            [2048 + 2047 * np.sin(2 * np.pi * (ch + 1) * t) for ch in channels],
            axis=1,
        ).round()
        with self._lock:
            self._rx += encode_records(timestamps, values)
        self._next_timestamp = int(timestamps[-1]) + cps

    def _generate(self) -> None:
        if not self.auto_generate or self._t_last is None:
            return
        now = time.monotonic()
        rate = self.device.hw.cycle_frequency / self.device.cycles_per_sample
        n = int((now - self._t_last) * rate)
        if n > 0:
            self._t_last += n / rate
            self.push_samples(n)

    def write(self, data: bytes) -> int:
        return len(data)

    def read(self, n: int) -> bytes:
        with self._lock:
            out = bytes(self._rx[:n])
            del self._rx[:n]
        return out

    def bytes_available(self) -> int:
        self._generate()
        with self._lock:
            return len(self._rx)

    def reset_input_buffer(self) -> None:
        with self._lock:
            self._rx.clear()
            if self._t_last is not None:
                self._t_last = time.monotonic()
