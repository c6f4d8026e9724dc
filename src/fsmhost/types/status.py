"""Runtime status registry shared by every component."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from loguru import logger
from mashumaro import DataClassDictMixin

from .errors import ConfigError, ConfigErrorKind


@dataclass(kw_only=True)
class RuntimeStatus(DataClassDictMixin):
    """Operational flags of a connected (or emulated) state machine.

    One instance is created when the device is opened and passed by reference
    to every component. It is never persisted. `emulator_mode` is decided once
    at construction and does not change afterwards.

    The session/trial controller owns `live`, `pause`, `in_state_matrix`,
    `new_state_machine_sent` and `session_start_flag`; the analog streamer
    owns `n_analog_samples`.
    """

    emulator_mode: bool = False
    live: bool = False
    pause: bool = False
    in_state_matrix: bool = False
    being_used: bool = False
    new_state_machine_sent: bool = False
    session_start_flag: bool = False
    n_analog_samples: int = 0

    def __post_init__(self):
        # guards n_analog_samples, written from the analog poller thread
        self._lock = threading.Lock()

    def require_not_in_state_matrix(self, action: str) -> None:
        """Raise ConfigError(BUSY) if a trial is currently running."""
        if self.in_state_matrix:
            msg = f"{action} is not allowed while the state machine is running."
            logger.error(msg)
            raise ConfigError(ConfigErrorKind.BUSY, msg)

    def can_relay_default_panel(self) -> bool:
        """Relays on default console panels are only started when idle."""
        return not self.being_used

    def add_analog_samples(self, n: int) -> int:
        with self._lock:
            self.n_analog_samples += n
            return self.n_analog_samples

    def reset_session(self) -> None:
        self.live = False
        self.pause = False
        self.in_state_matrix = False
        self.new_state_machine_sent = False
        self.session_start_flag = False
        with self._lock:
            self.n_analog_samples = 0
