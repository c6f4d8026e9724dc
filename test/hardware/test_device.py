import time

import pytest

pytestmark = pytest.mark.hardware


def test_reset_session_clock(device):
    device.reset_session_clock()


def test_status_led(device):
    if not device.hw.supports_status_led:
        pytest.skip("Firmware does not support status LED control")
    device.set_status_led(False)
    device.set_status_led(True)


def test_flex_io_roundtrip(device):
    if device.hw.n_flex_io == 0:
        pytest.skip("No Flex I/O channels")
    original = [int(t) for t in device.flex_io_channel_types]
    device.set_flex_io([2] + [0] * (device.hw.n_flex_io - 1))
    assert device.flexio.analog_input_channels() == [0]
    device.set_flex_io(original)


def test_sampling_rate(device):
    if device.hw.n_flex_io == 0:
        pytest.skip("No Flex I/O channels")
    device.set_flex_io_analog_sampling_rate(100)
    device.set_flex_io_analog_sampling_rate(1000)


def test_relay_start_stop(device):
    if len(device.modules) == 0:
        pytest.skip("No modules configured")
    name = device.modules.names[0]
    device.start_module_relay(name)
    time.sleep(0.3)
    device.stop_module_relay()
    # the command channel must be clean again afterwards
    device.reset_session_clock()


@pytest.mark.slow
def test_analog_stream(device):
    if device.analog is None or device.hw.n_flex_io == 0:
        pytest.skip("No analog channel")
    device.set_flex_io([2] + [0] * (device.hw.n_flex_io - 1))
    device.set_flex_io_analog_sampling_rate(1000)
    device.start_session()
    time.sleep(1.0)
    device.end_session()
    assert device.status.n_analog_samples > 0
    assert device.analog.error is None
