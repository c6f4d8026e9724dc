"""Event and channel name tables derived from the hardware description."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from mashumaro import DataClassDictMixin

from fsmhost.types import FlexIOType, HardwareDescription

PLACEHOLDER = "---"


def flex_region_names(
    channel_types: Sequence[int],
) -> tuple[list[str], list[str], list[str]]:
    """Names for the Flex I/O region of each table.

    Returns (event_names, input_names, output_names) with 2, 1 and 1 entries
    per channel respectively. Channel numbering in names is 1-based.
    """
    events, inputs, outputs = [], [], []
    for i, t in enumerate(channel_types, start=1):
        t = FlexIOType(t)
        if t is FlexIOType.DIGITAL_IN:
            inputs.append(f"Flex{i}")
            outputs.append(PLACEHOLDER)
            events += [f"Flex{i}High", f"Flex{i}Low"]
        elif t is FlexIOType.DIGITAL_OUT:
            inputs.append(PLACEHOLDER)
            outputs.append(f"Flex{i}DO")
            events += [PLACEHOLDER, PLACEHOLDER]
        elif t is FlexIOType.ANALOG_IN:
            inputs.append(f"Flex{i}")
            outputs.append(PLACEHOLDER)
            events += [f"Flex{i}Trig1", f"Flex{i}Trig2"]
        else:  # ANALOG_OUT
            inputs.append(PLACEHOLDER)
            outputs.append(f"Flex{i}AO")
            events += [PLACEHOLDER, PLACEHOLDER]
    return events, inputs, outputs


@dataclass
class ChannelLayout(DataClassDictMixin):
    """Event, input channel and output channel name tables.

    Each table always has the length declared by the hardware description;
    only the Flex I/O region is ever rewritten.
    """

    event_names: list[str] = field(default_factory=list)
    input_channel_names: list[str] = field(default_factory=list)
    output_channel_names: list[str] = field(default_factory=list)

    @classmethod
    def from_hardware(cls, hw: HardwareDescription) -> ChannelLayout:
        layout = cls(
            event_names=[f"Event{i + 1}" for i in range(hw.n_events)],
            input_channel_names=[f"Input{i + 1}" for i in range(hw.n_inputs)],
            output_channel_names=[f"Output{i + 1}" for i in range(hw.n_outputs)],
        )
        layout.replace_flex_region(hw, hw.flex_io_types)
        return layout

    def replace_flex_region(
        self, hw: HardwareDescription, channel_types: Sequence[int]
    ) -> None:
        """Overwrite the Flex I/O region of all three tables.

        Names are computed before any table is touched, so an invalid type
        leaves the layout unchanged.
        """
        events, inputs, outputs = flex_region_names(channel_types)
        ev, inp, out = hw.pos_event_flex, hw.pos_input_flex, hw.pos_output_flex
        self.event_names[ev : ev + len(events)] = events
        self.input_channel_names[inp : inp + len(inputs)] = inputs
        self.output_channel_names[out : out + len(outputs)] = outputs

    def flex_event_names(self, hw: HardwareDescription) -> list[str]:
        start = hw.pos_event_flex
        return self.event_names[start : start + 2 * hw.n_flex_io]

    def flex_input_names(self, hw: HardwareDescription) -> list[str]:
        start = hw.pos_input_flex
        return self.input_channel_names[start : start + hw.n_flex_io]

    def flex_output_names(self, hw: HardwareDescription) -> list[str]:
        start = hw.pos_output_flex
        return self.output_channel_names[start : start + hw.n_flex_io]
