"""Device identity and hardware description types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from mashumaro import DataClassDictMixin

from fsmhost.util.defaults import ANALOG_PORT_MIN_FIRMWARE, STATUS_LED_MIN_FIRMWARE


class MachineType(IntEnum):
    """State machine hardware revision."""

    HALF_POINT_FIVE = 1  # 0.5
    ZERO_SEVEN = 2  # 0.7 to 1.0
    TWO_X = 3  # 2.0 to 2.x
    TWO_PLUS = 4  # 2+


class FlexIOType(IntEnum):
    """Flex I/O channel type codes, as sent on the wire."""

    DIGITAL_IN = 0
    DIGITAL_OUT = 1
    ANALOG_IN = 2
    ANALOG_OUT = 3


@dataclass(kw_only=True)
class HardwareDescription(DataClassDictMixin):
    """Fixed constants describing a connected state machine.

    Supplied by the rig configuration (or a hardware-profile loader) and
    immutable once the device is opened. Positions are 0-based indices into
    the event, input channel and output channel tables.

    Attributes
    ----------
    machine_type : MachineType
        Hardware revision.
    firmware_version : int
        Firmware major version reported by the device.
    cycle_frequency : int
        State machine cycles per second.
    n_flex_io : int
        Number of Flex I/O channels.
    n_events, n_inputs, n_outputs : int
        Declared lengths of the event, input and output channel tables.
    pos_event_flex, pos_input_flex, pos_output_flex : int
        Start of the Flex I/O region in each table.
    flex_io_types : list[int]
        Channel types at power-up, one per Flex channel.
    flex_io_sampling_rate : int
        Analog input sampling rate at power-up (Hz).
    """

    machine_type: MachineType
    firmware_version: int
    cycle_frequency: int = 10000
    n_flex_io: int = 0
    n_events: int = 0
    n_inputs: int = 0
    n_outputs: int = 0
    pos_event_flex: int = 0
    pos_input_flex: int = 0
    pos_output_flex: int = 0
    flex_io_types: list[int] = field(default_factory=list)
    flex_io_sampling_rate: int = 1000

    def __post_init__(self):
        self.machine_type = MachineType(self.machine_type)
        if not self.flex_io_types:
            self.flex_io_types = [FlexIOType.DIGITAL_IN.value] * self.n_flex_io
        if len(self.flex_io_types) != self.n_flex_io:
            raise ValueError(
                f"flex_io_types has {len(self.flex_io_types)} entries, "
                + f"expected n_flex_io={self.n_flex_io}"
            )
        if self.cycle_frequency <= 0:
            raise ValueError(f"cycle_frequency must be positive: {self.cycle_frequency}")
        regions = (
            ("event", self.pos_event_flex, 2 * self.n_flex_io, self.n_events),
            ("input", self.pos_input_flex, self.n_flex_io, self.n_inputs),
            ("output", self.pos_output_flex, self.n_flex_io, self.n_outputs),
        )
        for name, pos, width, total in regions:
            if pos < 0 or pos + width > total:
                raise ValueError(
                    f"Flex I/O {name} region [{pos}, {pos + width}) does not fit "
                    + f"in {total} {name} slots"
                )

    @property
    def has_analog_port(self) -> bool:
        """True if the device exposes a dedicated analog serial channel."""
        return (
            self.machine_type >= MachineType.TWO_PLUS
            and self.firmware_version >= ANALOG_PORT_MIN_FIRMWARE
        )

    @property
    def supports_status_led(self) -> bool:
        return self.firmware_version >= STATUS_LED_MIN_FIRMWARE
