"""
Device facade against the emulator: mode selection, command interplay with
the relay, firmware gating and the session/analog lifecycle.
"""

import time
from unittest.mock import patch

import pytest

from fsmhost.device import (
    EmulatedAnalogTransport,
    EmulatedTransport,
    SerialTransport,
    StateMachineDevice,
)
from fsmhost.types import (
    ConfigError,
    ConfigErrorKind,
    FeatureError,
    FeatureErrorKind,
    FSMError,
    HardwareDescription,
)

MODULES = ["ValveModule1", "HiFi1"]


@pytest.fixture
def sm(hw):
    device = StateMachineDevice(hw, port="EMU", module_names=MODULES, poll_period=0.01)
    ok, msg = device.open()
    assert ok, msg
    yield device
    device.close()


class TestModeSelection:
    def test_emu_port(self, hw):
        sm = StateMachineDevice(hw, port="EMU")
        assert sm.emulator_mode
        assert sm.status.emulator_mode
        assert isinstance(sm.transport, EmulatedTransport)
        assert isinstance(sm.analog_transport, EmulatedAnalogTransport)

    def test_missing_port(self, hw):
        assert StateMachineDevice(hw).emulator_mode

    @patch("fsmhost.util.check_hw.get_hw_ports", return_value={})
    def test_undetected_port(self, mock_ports, hw):
        assert StateMachineDevice(hw, port="COM7").emulator_mode

    @patch(
        "fsmhost.util.check_hw.get_hw_ports",
        return_value={"COM7": ("Teensy", "USB VID:PID=16C0:0483")},
    )
    def test_detected_port(self, mock_ports, hw):
        sm = StateMachineDevice(hw, port="COM7", analog_port="COM8")
        assert not sm.emulator_mode
        assert isinstance(sm.transport, SerialTransport)
        assert sm.analog_transport.port == "COM8"

    @patch(
        "fsmhost.util.check_hw.get_hw_ports",
        return_value={"COM7": ("Teensy", "USB VID:PID=16C0:0483")},
    )
    def test_no_analog_port_configured(self, mock_ports, hw, log_messages):
        sm = StateMachineDevice(hw, port="COM7")
        assert sm.analog is None
        assert any("no analog port" in m for m in log_messages)

    def test_legacy_hardware_has_no_analog_channel(self, hw_legacy):
        sm = StateMachineDevice(hw_legacy, port="EMU")
        assert sm.analog_transport is None
        assert sm.analog is None


class TestCommands:
    def test_open_close(self, hw):
        sm = StateMachineDevice(hw, port="EMU")
        assert not sm.is_connected()
        assert sm.open() == (True, "Connected to state machine emulator")
        assert sm.is_connected()
        assert sm.analog_transport.is_connected()
        sm.close()
        assert not sm.is_connected()
        assert not sm.analog_transport.is_connected()

    def test_reset_session_clock(self, sm):
        sm.reset_session_clock()
        assert sm.transport.clock_resets == 1

    def test_status_led(self, sm):
        sm.set_status_led(False)
        assert sm.transport.status_led is False
        sm.set_status_led(True)
        assert sm.transport.status_led is True

    @pytest.mark.parametrize("value", [2, -1, "on"])
    def test_status_led_invalid_value(self, sm, value):
        with pytest.raises(FeatureError) as e:
            sm.set_status_led(value)
        assert e.value.kind is FeatureErrorKind.INVALID_VALUE
        assert sm.transport.commands == []

    def test_status_led_needs_firmware_23(self, hw_legacy):
        sm = StateMachineDevice(hw_legacy, port="EMU")
        sm.open()
        with pytest.raises(FeatureError) as e:
            sm.set_status_led(True)
        assert e.value.kind is FeatureErrorKind.UNSUPPORTED_FIRMWARE
        assert isinstance(e.value, FSMError)
        assert sm.transport.commands == []

    def test_flex_io_stops_active_relay_first(self, sm):
        sm.start_module_relay("HiFi1")
        sm.transport.inject_module_bytes(1, b"\x42\x43")
        sm.set_flex_io([0, 1, 2, 3])
        assert not sm.relay.is_relaying()
        assert not sm.relay.poller_running()
        ops = [op for op, _ in sm.transport.commands]
        assert ops == [b"J", b"J", b"J", b"Q"]
        assert sm.flex_io_channel_types[2].name == "ANALOG_IN"

    def test_invalid_flex_io_keeps_relay(self, sm):
        sm.start_module_relay("HiFi1")
        with pytest.raises(ConfigError) as e:
            sm.set_flex_io([0, 1])
        assert e.value.kind is ConfigErrorKind.LENGTH_MISMATCH
        assert sm.relay.active_module() == "HiFi1"

    def test_switch_panel(self, sm):
        assert sm.switch_panel(1)
        assert sm.relay.active_module() == "ValveModule1"
        assert not sm.switch_panel(0)
        assert not sm.relay.is_relaying()

    def test_metadata(self, sm):
        meta = sm.unroll_metadata()
        assert meta["emulator_mode"] is True
        assert meta["hardware"]["firmware_version"] == 23
        assert meta["modules"]["modules"][1]["name"] == "HiFi1"
        assert meta["flex_io_types"] == [0, 0, 0, 0]
        assert HardwareDescription.from_dict(meta["hardware"]) == sm.hw


class TestSession:
    @pytest.mark.slow
    def test_analog_samples_stream_while_live(self, sm):
        batches = []
        sm.analog.sink = batches.append
        sm.set_flex_io([2, 0, 2, 0])
        sm.set_flex_io_analog_sampling_rate(1000)
        sm.start_session()
        time.sleep(0.3)
        sm.end_session()
        assert batches
        assert sm.status.n_analog_samples == len(sm.analog.buffer) > 0
        assert all(b.channels == (0, 2) for b in batches)
        assert not sm.analog.is_running()

    def test_session_without_analog_channels(self, sm):
        sm.start_session()
        assert sm.status.live
        assert not sm.analog.is_running()
        sm.end_session()
        assert not sm.status.live

    def test_new_session_resets_sample_count(self, sm):
        sm.status.n_analog_samples = 12
        sm.start_session()
        assert sm.status.n_analog_samples == 0
        assert sm.status.session_start_flag
        sm.end_session()

    def test_close_ends_session(self, hw):
        sm = StateMachineDevice(hw, port="EMU", module_names=MODULES)
        sm.open()
        sm.start_session()
        sm.start_module_relay("ValveModule1")
        sm.close()
        assert not sm.status.live
        assert not sm.relay.is_relaying()

    def test_samples_before_session_are_dropped(self, sm):
        sm.set_flex_io([2, 0, 0, 0])
        sm.analog_transport.push_samples(500)
        sm.start_session()
        sm.end_session()
        # only what accrued in real time between start and end
        assert sm.status.n_analog_samples < 50
        assert len(sm.analog.buffer) == sm.status.n_analog_samples

    @pytest.mark.slow
    def test_idle_time_is_not_backfilled(self, sm):
        sm.set_flex_io([2, 0, 0, 0])
        sm.set_flex_io_analog_sampling_rate(1000)
        time.sleep(0.5)
        sm.start_session()
        time.sleep(0.1)
        sm.end_session()
        assert sm.status.n_analog_samples < 300

    def test_analog_inputs_fixed_while_live(self, sm):
        sm.set_flex_io([2, 0, 0, 0])
        sm.start_session()
        with pytest.raises(ConfigError) as e:
            sm.set_flex_io([2, 2, 0, 0])
        assert e.value.kind is ConfigErrorKind.BUSY
        assert sm.analog.is_running()
        assert sm.analog.error is None

        # other channels can still be retyped
        sm.set_flex_io([2, 1, 0, 3])
        assert sm.flex_io_channel_types[1].name == "DIGITAL_OUT"
        sm.end_session()
        sm.set_flex_io([2, 2, 0, 0])
        assert sm.flexio.analog_input_channels() == [0, 1]
