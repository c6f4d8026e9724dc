import pytest
from loguru import logger

from fsmhost.types import HardwareDescription, MachineType
from fsmhost.util import TEST_LOGLEVEL


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture(autouse=True)
def log(request):
    # the CLI disables the package logger when not verbose
    logger.enable("fsmhost")
    logger.debug("STARTED Test '{}'", request.node.originalname)
    yield
    logger.debug("COMPLETED Test '{}'", request.node.originalname)


@pytest.fixture
def log_messages():
    """Formatted log records emitted during the test."""
    messages = []
    handler_id = logger.add(
        lambda m: messages.append(str(m)), level=TEST_LOGLEVEL, format="{level} {message}"
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def hw():
    """A 2+ state machine with 4 Flex I/O channels and an analog port."""
    return HardwareDescription(
        machine_type=MachineType.TWO_PLUS,
        firmware_version=23,
        n_flex_io=4,
        n_events=20,
        n_inputs=10,
        n_outputs=16,
        pos_event_flex=10,
        pos_input_flex=5,
        pos_output_flex=10,
    )


@pytest.fixture
def hw_legacy():
    """A 2.x state machine on firmware 22: no analog port, no LED control."""
    return HardwareDescription(
        machine_type=MachineType.TWO_X,
        firmware_version=22,
        n_events=12,
        n_inputs=6,
        n_outputs=8,
    )
