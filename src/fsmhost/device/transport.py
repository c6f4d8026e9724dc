# Serial transport for the state machine's USB serial channels
import serial  # pyserial package
from loguru import logger

from fsmhost.device.device import Device
from fsmhost.util import DEFAULT_BAUDRATE, DEFAULT_TIMEOUT, format_error_response


class SerialTransport(Device):
    """pyserial-backed byte channel.

    Used both for the primary command channel and for the dedicated analog
    channel of newer state machines. `timeout` bounds every blocking read, so
    a silent device surfaces as a short read rather than a hang.
    """

    port: str  # "COM3", "/dev/ttyACM0" etc.
    required_config = {"port": str}

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(port=port)
        self.port = port
        self._baudrate = baudrate
        self._timeout = timeout
        self._ser = None

    def open(self) -> tuple[bool, str]:
        if self.is_connected():
            self._ser.close()
        try:
            self._ser = serial.Serial(
                self.port, baudrate=self._baudrate, timeout=self._timeout
            )
        except serial.SerialException:
            logger.exception("Error opening serial port {}.", self.port)
            self._ser = None
            return (
                False,
                f"Error opening serial port {self.port}: {format_error_response()}",
            )
        logger.info("Opened serial port {}", self.port)
        return True, f"Opened serial port {self.port}"

    def close(self):
        if self.is_connected():
            self._ser.close()
            logger.info("Closed serial port {}", self.port)
        self._ser = None

    def is_connected(self) -> bool:
        return self._ser is not None and self._ser.is_open

    def _port(self) -> serial.Serial:
        if not self.is_connected():
            raise ConnectionError(f"Serial port {self.port} is not open")
        return self._ser

    def write(self, data: bytes) -> int:
        return self._port().write(data)

    def read(self, n: int) -> bytes:
        return self._port().read(n)

    def bytes_available(self) -> int:
        return self._port().in_waiting

    def reset_input_buffer(self) -> None:
        self._port().reset_input_buffer()
