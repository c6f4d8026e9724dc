"""Fixed-period background task with stop-and-join semantics."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from loguru import logger

from .defaults import DEFAULT_POLL_PERIOD


class PeriodicTask:
    """Run `tick` every `period` seconds on a background thread.

    `stop()` does not return until the thread has finished its current tick
    and exited, so callers may use the shared resource straight afterwards.
    A tick that raises stops the task; the exception is kept in `error`.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        period: float = DEFAULT_POLL_PERIOD,
        name: str = "periodic",
    ):
        self._tick = tick
        self.period = period
        self.name = name
        self.error: Optional[BaseException] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            logger.debug("Task {} already running", self.name)
            return
        self.error = None
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug("Started task {} (period {} s)", self.name, self.period)

    def request_stop(self) -> None:
        """Ask the task to stop after the current tick, without waiting."""
        self._stop_event.set()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        # a tick may stop its own task, it cannot join itself
        if thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.error("Task {} did not stop within {} s", self.name, timeout)
                return
            self._thread = None
        logger.debug("Stopped task {}", self.name)

    def _run(self) -> None:
        next_time = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self._tick()
            except Exception as e:
                logger.exception("Error in task {}, stopping.", self.name)
                self.error = e
                break
            next_time += self.period
            # fixed rate; skip missed ticks rather than bunching them
            delay = next_time - time.monotonic()
            if delay < 0:
                next_time = time.monotonic()
                delay = 0
            if self._stop_event.wait(delay):
                break
