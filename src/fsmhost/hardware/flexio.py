"""Flex I/O reconfiguration: channel typing and analog input sampling rate."""

from __future__ import annotations

import numbers
from typing import Callable, Optional, Sequence

from loguru import logger

from fsmhost.hardware.layout import ChannelLayout
from fsmhost.protocol import CommandClient, opcodes
from fsmhost.types import (
    ConfigError,
    ConfigErrorKind,
    FlexIOType,
    HardwareDescription,
    RuntimeStatus,
)

MIN_CYCLES_PER_SAMPLE = 10


class FlexIOManager:
    """Owns the Flex I/O configuration and keeps the channel layout in step.

    All preconditions are checked locally before anything is written to the
    device. The layout is only touched after the device has confirmed the
    new configuration, so a protocol failure leaves it unchanged.

    Parameters
    ----------
    client : CommandClient
        Command channel to the device (real or emulated).
    status : RuntimeStatus
        Shared status; reconfiguration is refused while a trial runs.
    hw : HardwareDescription
        Flex channel count, table positions and cycle frequency.
    layout : ChannelLayout
        Tables rewritten on each successful `set_flex_io`.
    before_transmit : Callable[[], None], optional
        Called after validation, right before a command is written. Used to
        quiesce pollers sharing the command channel.
    """

    def __init__(
        self,
        client: CommandClient,
        status: RuntimeStatus,
        hw: HardwareDescription,
        layout: ChannelLayout,
        before_transmit: Optional[Callable[[], None]] = None,
    ):
        self.client = client
        self.status = status
        self.hw = hw
        self.layout = layout
        self.before_transmit = before_transmit
        self._channel_types = [FlexIOType(t) for t in hw.flex_io_types]
        self._sampling_rate_hz = hw.flex_io_sampling_rate

    @property
    def channel_types(self) -> list[FlexIOType]:
        return list(self._channel_types)

    @property
    def sampling_rate_hz(self) -> float:
        return self._sampling_rate_hz

    def analog_input_channels(self) -> list[int]:
        """0-based Flex channel indices currently typed as analog input."""
        return [
            i for i, t in enumerate(self._channel_types) if t is FlexIOType.ANALOG_IN
        ]

    def _transmit_guard(self) -> None:
        if self.before_transmit is not None:
            self.before_transmit()

    def _validate_channel_types(self, channel_types: Sequence) -> list[FlexIOType]:
        if len(channel_types) != self.hw.n_flex_io:
            msg = (
                "The channel types must specify one type for each of the "
                + f"{self.hw.n_flex_io} Flex I/O channels, got {len(channel_types)}."
            )
            logger.error(msg)
            raise ConfigError(ConfigErrorKind.LENGTH_MISMATCH, msg)
        valid = {t.value for t in FlexIOType}
        for t in channel_types:
            if (
                not isinstance(t, numbers.Integral)
                or isinstance(t, bool)
                or int(t) not in valid
            ):
                msg = (
                    f"Invalid Flex I/O channel type {t!r}. Valid channel types are: "
                    + "0 = DI, 1 = DO, 2 = ADC, 3 = DAC"
                )
                logger.error(msg)
                raise ConfigError(ConfigErrorKind.INVALID_TYPE, msg)
        return [FlexIOType(int(t)) for t in channel_types]

    def set_flex_io(self, channel_types: Sequence[int]) -> None:
        """Set the type of every Flex I/O channel.

        Parameters
        ----------
        channel_types : Sequence[int]
            One code per channel: 0 = digital in, 1 = digital out,
            2 = analog in, 3 = analog out.

        Raises
        ------
        ConfigError
            LENGTH_MISMATCH, INVALID_TYPE or BUSY, before any transmission. BUSY
            means a trial is running, or a session is live and the request
            would change which channels are analog input.
        ProtocolError
            If the device does not confirm; the layout is left unchanged.
        """
        types = self._validate_channel_types(channel_types)
        self.status.require_not_in_state_matrix("Flex I/O reconfiguration")
        analog_in = [i for i, t in enumerate(types) if t is FlexIOType.ANALOG_IN]
        if self.status.live and analog_in != self.analog_input_channels():
            # the analog stream sizes its records when the session starts
            msg = (
                "Flex I/O analog input channels cannot change while a session is "
                + "live; end the session first."
            )
            logger.error(msg)
            raise ConfigError(ConfigErrorKind.BUSY, msg)
        self._transmit_guard()

        self.client.send_and_confirm(opcodes.SET_FLEX_IO, opcodes.encode_flex_io(types))

        self.layout.replace_flex_region(self.hw, types)
        self._channel_types = types
        logger.info("Flex I/O channels set to {}", [t.name for t in types])

    def set_flex_io_analog_sampling_rate(self, hz: float) -> None:
        """Set the Flex I/O analog input sampling rate.

        The device samples every `cycle_frequency / hz` state machine cycles;
        that count must lie in [10, cycle_frequency], i.e. [1, 1000] Hz for a
        10 kHz state machine. It is rounded to the nearest whole cycle.

        Raises
        ------
        ConfigError
            RATE_OUT_OF_RANGE, before any transmission.
        ProtocolError
            If the device does not confirm; the stored rate is unchanged.
        """
        freq = self.hw.cycle_frequency
        if (
            not isinstance(hz, numbers.Real)
            or isinstance(hz, bool)
            or not hz > 0
            or not MIN_CYCLES_PER_SAMPLE <= freq / hz <= freq
        ):
            msg = (
                f"Invalid Flex I/O analog input sampling rate {hz!r}: rate must be "
                + f"in range [1, {freq // MIN_CYCLES_PER_SAMPLE}] Hz"
            )
            logger.error(msg)
            raise ConfigError(ConfigErrorKind.RATE_OUT_OF_RANGE, msg)
        n_cycles = round(freq / hz)
        self._transmit_guard()

        self.client.send_and_confirm(
            opcodes.SET_ANALOG_RATE, opcodes.encode_analog_rate(n_cycles)
        )

        self._sampling_rate_hz = hz
        logger.info(
            "Flex I/O analog sampling rate set to {} Hz ({} cycles/sample)",
            hz,
            n_cycles,
        )
