"""
The emulator must answer exactly as the device does: for each operation,
a client driving the emulator writes the same bytes and gets the same
outcome as one driving a transport scripted with the firmware's replies.
"""

from unittest.mock import MagicMock

import pytest

from fsmhost.device import EmulatedTransport, StateMachineDevice
from fsmhost.types import ConfigError, ProtocolError


def scripted_device(hw, modules):
    transport = MagicMock()
    transport.read.return_value = b"\x01"
    transport.bytes_available.return_value = 0
    transport.open.return_value = (True, "")
    transport.is_connected.return_value = True
    sm = StateMachineDevice(
        hw, module_names=modules, transport=transport, emulator_mode=False
    )
    return sm, transport


def emulated_device(hw, modules):
    sm = StateMachineDevice(hw, port="EMU", module_names=modules)
    return sm, sm.transport


OPERATIONS = [
    ("set_flex_io", ([0, 1, 2, 3],)),
    ("set_flex_io_analog_sampling_rate", (250,)),
    ("set_status_led", (False,)),
    ("reset_session_clock", ()),
    ("start_module_relay", ("HiFi1",)),
]


@pytest.mark.parametrize("name, args", OPERATIONS)
def test_same_bytes_on_the_wire(hw, name, args):
    modules = ["ValveModule1", "HiFi1"]
    real, transport = scripted_device(hw, modules)
    emu, emu_transport = emulated_device(hw, modules)
    assert emu.emulator_mode and not real.emulator_mode

    getattr(real, name)(*args)
    getattr(emu, name)(*args)

    written = b"".join(c.args[0] for c in transport.write.call_args_list)
    emulated = b"".join(op + payload for op, payload in emu_transport.commands)
    assert written == emulated
    assert real.status.to_dict() | {"emulator_mode": True} == emu.status.to_dict()
    assert real.layout == emu.layout
    assert real.modules == emu.modules

    real.stop_module_relay()
    emu.stop_module_relay()


@pytest.mark.parametrize(
    "name, args",
    [
        ("set_flex_io", ([0, 1],)),
        ("set_flex_io", ([0, 0, 0, 7],)),
        ("set_flex_io_analog_sampling_rate", (5000,)),
    ],
)
def test_same_precondition_failures(hw, name, args):
    real, transport = scripted_device(hw, ["ValveModule1"])
    emu, emu_transport = emulated_device(hw, ["ValveModule1"])
    with pytest.raises(ConfigError) as real_error:
        getattr(real, name)(*args)
    with pytest.raises(ConfigError) as emu_error:
        getattr(emu, name)(*args)
    assert real_error.value.kind is emu_error.value.kind
    transport.write.assert_not_called()
    assert emu_transport.commands == []


def test_emulator_unconfirms_invalid_wire_values(hw):
    # bypasses host validation: the emulated firmware rejects the command itself
    emu = EmulatedTransport(hw)
    emu.write(b"Q\x00\x00\x09\x00")
    assert emu.read(1) == b"\x00"
    emu.write(b"^" + (5).to_bytes(4, "little"))
    assert emu.read(1) == b"\x00"
    emu.write(b":\x02")
    assert emu.read(1) == b"\x00"
    assert emu.flex_io_types == [0, 0, 0, 0]


def test_emulator_silence_is_timeout(hw):
    sm, emu = emulated_device(hw, [])
    # a relay command is never confirmed, so awaiting a confirm times out
    with pytest.raises(ProtocolError):
        sm.client.send_and_confirm(b"J", b"\x00\x01")


def test_emulator_frames_split_writes(hw):
    emu = EmulatedTransport(hw)
    emu.write(b"^\x14")
    assert emu.bytes_available() == 0
    emu.write(b"\x00\x00\x00")
    assert emu.read(1) == b"\x01"
    assert emu.cycles_per_sample == 20
