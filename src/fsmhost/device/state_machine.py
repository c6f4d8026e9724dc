"""State machine device facade.

Wires the transports, command client, runtime status, channel layout,
module table, module relay, Flex I/O manager and analog streamer together.
Whether a physical device or the emulator sits underneath is decided once,
here, and nothing above the transport knows the difference.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from loguru import logger

from fsmhost.device.device import Device
from fsmhost.device.mock import EmulatedAnalogTransport, EmulatedTransport
from fsmhost.device.transport import SerialTransport
from fsmhost.hardware import ChannelLayout, FlexIOManager
from fsmhost.protocol import CommandClient, opcodes
from fsmhost.stream import AnalogBatch, AnalogStreamer, ModuleRelay
from fsmhost.stream.relay import RelaySink
from fsmhost.types import (
    FeatureError,
    FeatureErrorKind,
    FlexIOType,
    HardwareDescription,
    ModuleTable,
    RuntimeStatus,
    TransportProtocol,
)
from fsmhost.util import (
    DEFAULT_BAUDRATE,
    DEFAULT_POLL_PERIOD,
    DEFAULT_TIMEOUT,
    STATUS_LED_MIN_FIRMWARE,
    device_detected,
)


class StateMachineDevice(Device):
    """Host-side handle on one FSM controller.

    Parameters
    ----------
    hw : HardwareDescription
        Identity and channel constants of the device.
    port : str, optional
        Command channel serial port. If the port is missing, is "EMU" or is
        not enumerated by the host, the emulator is used.
    analog_port : str, optional
        Dedicated analog channel serial port (2+ hardware, firmware 23+).
    module_names : Sequence[str]
        Name of the module in each UART slot.
    modules_connected : Sequence[bool], optional
        Connection flag per slot, all True by default.
    emulator_mode : bool, optional
        Force the mode instead of detecting it from `port`.
    transport, analog_transport : TransportProtocol, optional
        Use these channels instead of building serial or emulated ones.
    relay_sink : Callable[[str, bytes], None], optional
        Receives relayed module bytes (monitoring surface).
    sample_sink : Callable[[AnalogBatch], None], optional
        Receives analog sample batches (session storage).

    Examples
    --------
    ```python
    hw = HardwareDescription(machine_type=MachineType.TWO_PLUS,
                             firmware_version=23, n_flex_io=4, ...)
    sm = StateMachineDevice(hw, port="EMU", module_names=["ValveModule1"])
    sm.open()
    sm.set_flex_io([0, 1, 2, 3])
    sm.close()
    ```
    """

    def __init__(
        self,
        hw: HardwareDescription,
        port: Optional[str] = None,
        analog_port: Optional[str] = None,
        module_names: Sequence[str] = (),
        modules_connected: Optional[Sequence[bool]] = None,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT,
        emulator_mode: Optional[bool] = None,
        transport: Optional[TransportProtocol] = None,
        analog_transport: Optional[TransportProtocol] = None,
        relay_sink: Optional[RelaySink] = None,
        sample_sink: Optional[Callable[[AnalogBatch], None]] = None,
        poll_period: float = DEFAULT_POLL_PERIOD,
    ):
        super().__init__()
        self._hw = hw
        self.port = port
        self.analog_port = analog_port

        if emulator_mode is None:
            emulator_mode = transport is None and not device_detected(port)
        self._status = RuntimeStatus(emulator_mode=emulator_mode)

        if transport is None:
            if emulator_mode:
                transport = EmulatedTransport(hw)
            else:
                transport = SerialTransport(port, baudrate=baudrate, timeout=timeout)
        if analog_transport is None and hw.has_analog_port:
            if emulator_mode:
                analog_transport = EmulatedAnalogTransport(transport)
            elif analog_port:
                analog_transport = SerialTransport(
                    analog_port, baudrate=baudrate, timeout=timeout
                )
            else:
                logger.warning(
                    "Hardware has an analog serial channel but no analog port is "
                    + "configured; analog streaming disabled."
                )
        self.transport = transport
        self.analog_transport = analog_transport

        self.client = CommandClient(transport)
        self._layout = ChannelLayout.from_hardware(hw)
        self._modules = ModuleTable.from_names(module_names, modules_connected)
        self.relay = ModuleRelay(
            self.client, self._modules, self._status, relay_sink, poll_period
        )
        self.flexio = FlexIOManager(
            self.client,
            self._status,
            hw,
            self._layout,
            before_transmit=self._release_command_channel,
        )
        self.analog: Optional[AnalogStreamer] = None
        if analog_transport is not None:
            self.analog = AnalogStreamer(
                analog_transport,
                self._status,
                self.flexio.analog_input_channels,
                sample_sink,
                poll_period,
            )
        logger.info(
            "State machine {} (firmware {}) in {} mode",
            hw.machine_type.name,
            hw.firmware_version,
            "emulator" if emulator_mode else "device",
        )

    # ------------------------------------------------------------------
    # connection

    @property
    def hw(self) -> HardwareDescription:
        return self._hw

    @property
    def status(self) -> RuntimeStatus:
        return self._status

    @property
    def layout(self) -> ChannelLayout:
        return self._layout

    @property
    def modules(self) -> ModuleTable:
        return self._modules

    @property
    def emulator_mode(self) -> bool:
        return self._status.emulator_mode

    def open(self) -> tuple[bool, str]:
        ok, msg = self.transport.open()
        if not ok:
            return ok, msg
        if self.analog_transport is not None:
            ok_a, msg_a = self.analog_transport.open()
            if not ok_a:
                self.transport.close()
                return ok_a, msg_a
        return True, msg

    def close(self):
        """Stop all pollers and release the serial channels."""
        if self._status.live:
            self.end_session()
        if self.analog is not None:
            self.analog.stop()
        if self.transport.is_connected():
            self.relay.stop()
        if self.analog_transport is not None:
            self.analog_transport.close()
        self.transport.close()

    def is_connected(self) -> bool:
        return self.transport.is_connected()

    def _release_command_channel(self) -> None:
        # a relay poller would consume the confirmation byte
        if self.relay.is_relaying() or self.relay.poller_running():
            logger.info("Stopping module relay to issue a confirmed command")
            self.relay.stop()

    # ------------------------------------------------------------------
    # device commands

    def reset_session_clock(self) -> None:
        self._release_command_channel()
        self.client.send_and_confirm(opcodes.RESET_SESSION_CLOCK)
        logger.info("Session clock reset")

    def set_status_led(self, enabled: bool) -> None:
        """Enable or disable the front panel status LED (firmware 23+)."""
        if not self._hw.supports_status_led:
            msg = (
                f"Status LED enable/disable requires firmware v{STATUS_LED_MIN_FIRMWARE}+"
                + f" (device has v{self._hw.firmware_version})"
            )
            logger.error(msg)
            raise FeatureError(FeatureErrorKind.UNSUPPORTED_FIRMWARE, msg)
        if enabled not in (0, 1):
            msg = f"LED status must be 0 (disabled) or 1 (enabled), got {enabled!r}"
            logger.error(msg)
            raise FeatureError(FeatureErrorKind.INVALID_VALUE, msg)
        self._release_command_channel()
        self.client.send_and_confirm(opcodes.SET_STATUS_LED, bytes([int(enabled)]))
        logger.info("Status LED {}", "enabled" if enabled else "disabled")

    def set_flex_io(self, channel_types: Sequence[int]) -> None:
        self.flexio.set_flex_io(channel_types)

    def set_flex_io_analog_sampling_rate(self, hz: float) -> None:
        self.flexio.set_flex_io_analog_sampling_rate(hz)

    @property
    def flex_io_channel_types(self) -> list[FlexIOType]:
        return self.flexio.channel_types

    @property
    def flex_io_sampling_rate(self) -> float:
        return self.flexio.sampling_rate_hz

    # ------------------------------------------------------------------
    # module relay

    def start_module_relay(self, module_name: str) -> None:
        self.relay.start(module_name)

    def stop_module_relay(self) -> None:
        self.relay.stop()

    def switch_panel(self, panel: int, default_panel: bool = True) -> bool:
        return self.relay.start_panel(panel, default_panel)

    # ------------------------------------------------------------------
    # session

    def start_session(self) -> None:
        """Mark a session live and start analog streaming if available."""
        if self._status.live:
            logger.warning("Session already live")
            return
        self._status.reset_session()
        self._status.live = True
        self._status.session_start_flag = True
        if self.analog is not None:
            # samples sent before the session belong to no session
            self.analog_transport.reset_input_buffer()
            self.analog.buffer.clear()
            self.analog.start()
        logger.info("Session started")

    def end_session(self) -> None:
        self._status.live = False
        if self.analog is not None:
            self.analog.stop()
        logger.info(
            "Session ended ({} analog samples)", self._status.n_analog_samples
        )

    def unroll_metadata(self):
        return {
            "emulator_mode": self.emulator_mode,
            "hardware": self._hw.to_dict(),
            "status": self._status.to_dict(),
            "layout": self._layout.to_dict(),
            "modules": self._modules.to_dict(),
            "flex_io_types": [int(t) for t in self.flexio.channel_types],
            "flex_io_sampling_rate": self.flexio.sampling_rate_hz,
        }
