# -*- coding: utf-8 -*-
"""
Utility functions and constants for fsmhost.

- Logging configuration and management
- Serial port detection (emulator mode decision)
- Fixed-period background tasks

See Also
--------
fsmhost.util.logging : Logging configuration
fsmhost.util.periodic : Periodic task with stop-and-join
"""

from .check_hw import device_detected, get_hw_ports
from .defaults import (
    ANALOG_PORT_MIN_FIRMWARE,
    DEFAULT_BAUDRATE,
    DEFAULT_LOGLEVEL,
    DEFAULT_POLL_PERIOD,
    DEFAULT_TIMEOUT,
    EMULATOR_PORT,
    SINGLE_LINE_ERR_LOG,
    STATUS_LED_MIN_FIRMWARE,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path,
    shutdown_log,
    start_log,
)
from .periodic import PeriodicTask

__all__ = [
    "ANALOG_PORT_MIN_FIRMWARE",
    "DEFAULT_BAUDRATE",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_POLL_PERIOD",
    "DEFAULT_TIMEOUT",
    "EMULATOR_PORT",
    "SINGLE_LINE_ERR_LOG",
    "STATUS_LED_MIN_FIRMWARE",
    "TEST_LOGLEVEL",
    "PeriodicTask",
    "clear_log",
    "device_detected",
    "format_error_response",
    "get_hw_ports",
    "get_log_filename",
    "log_default_path",
    "shutdown_log",
    "start_log",
]
