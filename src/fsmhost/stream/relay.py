"""Module byte-stream relay.

While a relay is active the state machine forwards every byte it receives
from one UART module to the host's command channel. A 100 ms poller drains
those bytes and hands them to a monitoring sink (e.g. a console terminal).
Only one module can be relayed at a time: there is one poller and one
command channel.
"""

from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from fsmhost.protocol import CommandClient, opcodes
from fsmhost.types import ModuleTable, RelayError, RelayErrorKind, RuntimeStatus
from fsmhost.util import DEFAULT_POLL_PERIOD, PeriodicTask

RelaySink = Callable[[str, bytes], None]


class ModuleRelay:
    """Idle / Relaying(index) state machine over the module table.

    Parameters
    ----------
    client : CommandClient
        Command channel; the poller takes its transport lock on every tick.
    modules : ModuleTable
        Slot table; this class is the only writer of `relay_active`.
    status : RuntimeStatus
        Shared status, consulted by `start_panel`.
    sink : RelaySink, optional
        Called as sink(module_name, data) for every non-empty poll.
    period : float
        Poll period in seconds.
    """

    def __init__(
        self,
        client: CommandClient,
        modules: ModuleTable,
        status: RuntimeStatus,
        sink: Optional[RelaySink] = None,
        period: float = DEFAULT_POLL_PERIOD,
    ):
        self.client = client
        self.modules = modules
        self.status = status
        self.sink = sink
        self._poller = PeriodicTask(self._tick, period=period, name="module-relay")

    def is_relaying(self) -> bool:
        return self.modules.any_relay_active()

    def active_module(self) -> Optional[str]:
        index = self.modules.active_index()
        return None if index is None else self.modules[index].name

    def poller_running(self) -> bool:
        return self._poller.is_running()

    def start(self, module_name: str) -> None:
        """Start relaying the byte stream of `module_name`.

        Raises
        ------
        RelayError
            UNKNOWN_MODULE if no slot has that name, ALREADY_ACTIVE if any
            relay is running. Nothing is sent in either case.
        """
        index = self.modules.index_of(module_name)
        if index is None:
            msg = f"No module named {module_name!r}. Modules: {self.modules.names}"
            logger.error(msg)
            raise RelayError(RelayErrorKind.UNKNOWN_MODULE, msg)
        if self.modules.any_relay_active():
            msg = (
                f"Cannot relay {module_name}: the relay for {self.active_module()} "
                + "must be stopped first."
            )
            logger.error(msg)
            raise RelayError(RelayErrorKind.ALREADY_ACTIVE, msg)
        if not self.modules[index].connected:
            logger.warning("Starting relay for {}, which is not connected", module_name)

        self.client.send(opcodes.MODULE_RELAY, opcodes.encode_relay(index, True))
        self.modules[index].relay_active = True
        self._poller.start()
        logger.info("Relaying module {} (slot {})", module_name, index)

    def stop(self) -> None:
        """Stop any relay. Safe to call repeatedly.

        Relay-off is sent to every slot, not only the active one, so that an
        inconsistent earlier state converges. The poller is stopped and joined
        before stale module bytes are discarded, so none leak into the next
        command's confirmation read.
        """
        for index in range(len(self.modules)):
            self.client.send(opcodes.MODULE_RELAY, opcodes.encode_relay(index, False))
        self._poller.stop()
        self.client.drain()
        was = self.active_module()
        self.modules.clear_relay_flags()
        if was is not None:
            logger.info("Stopped relay for module {}", was)

    def start_panel(self, panel: int, default_panel: bool = True) -> bool:
        """Switch the relay to follow a console panel.

        Panel 0 shows the state machine itself; panel n > 0 shows module slot
        n - 1. Any running relay is stopped. A relay is started only for a
        default (built-in) module panel while the device is not in use by a
        protocol.

        Returns
        -------
        bool
            True if a relay was started.
        """
        self.stop()
        if panel < 1 or panel > len(self.modules):
            return False
        if not (default_panel and self.status.can_relay_default_panel()):
            logger.debug("Not relaying panel {} (in use or custom panel)", panel)
            return False
        self.start(self.modules[panel - 1].name)
        return True

    def _tick(self) -> None:
        name = self.active_module()
        if name is None:
            return
        data = self.client.read_available()
        if data:
            logger.trace("Relay {}: {} bytes", name, len(data))
            if self.sink is not None:
                self.sink(name, data)
