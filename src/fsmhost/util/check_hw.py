from typing import Optional

import serial.tools.list_ports
from loguru import logger

from .defaults import EMULATOR_PORT


def get_hw_ports():
    port_dict = dict()
    for p in list(serial.tools.list_ports.comports()):
        # Only include if there's actual hardware info
        if p.hwid != "n/a":
            port_dict[p.device] = tuple(p)[1:]
    return port_dict


def device_detected(port: Optional[str]) -> bool:
    """Check whether a physical controller could be behind `port`.

    Returns False for an empty port, for the emulator port name and for ports
    the host does not currently enumerate. This is the single decision point
    for emulator mode.
    """
    if not port or port.upper() == EMULATOR_PORT:
        return False
    ports = get_hw_ports()
    if port not in ports:
        logger.warning("Port {} not found among host serial ports {}", port, list(ports))
        return False
    return True
