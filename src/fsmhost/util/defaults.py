# -*- coding: utf-8 -*-

DEFAULT_BAUDRATE = 12_000_000  # ignored by USB CDC devices, kept for serial adapters
DEFAULT_TIMEOUT = 5  # seconds, bounds every blocking confirmation read
DEFAULT_POLL_PERIOD = 0.1  # seconds, relay and analog poller period
DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line

EMULATOR_PORT = "EMU"  # port name that always selects the emulator
STATUS_LED_MIN_FIRMWARE = 23
ANALOG_PORT_MIN_FIRMWARE = 23
