"""Analog sample streaming from the dedicated analog serial channel.

State machines with a second USB serial channel send Flex I/O analog input
samples there, so analog throughput never delays command/confirm traffic on
the primary channel. Each sample record is little-endian:

    uint32 timestamp (state machine cycles)
    uint16 value, one per Flex channel typed as analog input

The streamer drains complete records every 100 ms while a session is live
and hands each batch to session storage.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
from loguru import logger

from fsmhost.types import RuntimeStatus, TransportProtocol
from fsmhost.util import DEFAULT_POLL_PERIOD, PeriodicTask


def record_dtype(n_channels: int) -> np.dtype:
    return np.dtype([("timestamp", "<u4"), ("values", "<u2", (n_channels,))])


def encode_records(timestamps: Sequence[int], values: np.ndarray) -> bytes:
    """Pack samples into the wire record format (used by the emulator)."""
    values = np.asarray(values, dtype="<u2")
    if values.ndim == 1:
        values = values[:, np.newaxis]
    records = np.empty(len(timestamps), dtype=record_dtype(values.shape[1]))
    records["timestamp"] = timestamps
    records["values"] = values
    return records.tobytes()


@dataclass
class AnalogBatch:
    """Samples drained in one poll tick."""

    sample_index: np.ndarray  # int64, session-wide running count
    timestamps: np.ndarray  # uint32, device cycles
    values: np.ndarray  # uint16, shape (n_samples, n_channels)
    channels: tuple[int, ...]  # Flex channel of each values column

    def __len__(self) -> int:
        return len(self.sample_index)


class AnalogSampleBuffer:
    """Append-only, timestamp-ordered store of a session's analog samples."""

    def __init__(self):
        self._batches: list[AnalogBatch] = []
        self._n_samples = 0
        self._last_timestamp: Optional[int] = None

    def __len__(self) -> int:
        return self._n_samples

    def clear(self) -> None:
        self._batches = []
        self._n_samples = 0
        self._last_timestamp = None

    def append(
        self, timestamps: np.ndarray, values: np.ndarray, channels: tuple[int, ...]
    ) -> AnalogBatch:
        timestamps = np.asarray(timestamps)
        if len(timestamps) == 0:
            raise ValueError("Cannot append an empty batch")
        ordered = np.all(np.diff(timestamps.astype(np.int64)) >= 0)
        if not ordered or (
            self._last_timestamp is not None and timestamps[0] < self._last_timestamp
        ):
            raise ValueError(
                "Analog sample timestamps out of order "
                + f"(last {self._last_timestamp}, batch starts {timestamps[0]})"
            )
        index = np.arange(self._n_samples, self._n_samples + len(timestamps))
        batch = AnalogBatch(index, timestamps, values, channels)
        self._batches.append(batch)
        self._n_samples += len(timestamps)
        self._last_timestamp = int(timestamps[-1])
        return batch

    @property
    def timestamps(self) -> np.ndarray:
        if not self._batches:
            return np.empty(0, dtype=np.uint32)
        return np.concatenate([b.timestamps for b in self._batches])

    @property
    def values(self) -> np.ndarray:
        if not self._batches:
            return np.empty((0, 0), dtype=np.uint16)
        return np.concatenate([b.values for b in self._batches])


class AnalogStreamer:
    """Periodic drain of the analog channel while a session is live.

    Parameters
    ----------
    transport : TransportProtocol
        The analog channel. Never the command channel.
    status : RuntimeStatus
        `live` gates streaming; `n_analog_samples` is advanced per batch.
    channels_provider : Callable[[], Sequence[int]]
        Returns the Flex channels typed as analog input; read when streaming
        starts to size the sample records.
    sink : Callable[[AnalogBatch], None], optional
        Session storage, called once per non-empty tick.
    period : float
        Poll period in seconds.
    """

    def __init__(
        self,
        transport: TransportProtocol,
        status: RuntimeStatus,
        channels_provider: Callable[[], Sequence[int]],
        sink: Optional[Callable[[AnalogBatch], None]] = None,
        period: float = DEFAULT_POLL_PERIOD,
    ):
        self.transport = transport
        self.status = status
        self.channels_provider = channels_provider
        self.sink = sink
        self.buffer = AnalogSampleBuffer()
        self._lock = threading.Lock()
        self._channels: tuple[int, ...] = ()
        self._dtype: Optional[np.dtype] = None
        self._poller = PeriodicTask(self._tick, period=period, name="analog-stream")

    def is_running(self) -> bool:
        return self._poller.is_running()

    @property
    def error(self) -> Optional[BaseException]:
        return self._poller.error

    def start(self) -> bool:
        """Start streaming. Returns False if there is nothing to stream."""
        if not self.status.live:
            logger.warning("Not starting analog stream: no live session")
            return False
        channels = tuple(self.channels_provider())
        if not channels:
            logger.info("Not starting analog stream: no Flex channel is analog input")
            return False
        with self._lock:
            self._channels = channels
            self._dtype = record_dtype(len(channels))
        self._poller.start()
        logger.info("Analog stream started for Flex channels {}", list(channels))
        return True

    def stop(self) -> None:
        self._poller.stop()

    def poll(self) -> Optional[AnalogBatch]:
        """Drain complete records now. Returns None if there were none."""
        with self._lock:
            if self._dtype is None:
                return None
            n_records = self.transport.bytes_available() // self._dtype.itemsize
            if n_records == 0:
                return None
            raw = self.transport.read(n_records * self._dtype.itemsize)
            n_records = len(raw) // self._dtype.itemsize
            if n_records == 0:
                return None
            records = np.frombuffer(
                raw[: n_records * self._dtype.itemsize], dtype=self._dtype
            )
            batch = self.buffer.append(
                records["timestamp"].copy(),
                records["values"].reshape(n_records, -1).copy(),
                self._channels,
            )
        total = self.status.add_analog_samples(len(batch))
        logger.trace("Analog stream: {} samples ({} total)", len(batch), total)
        if self.sink is not None:
            self.sink(batch)
        return batch

    def _tick(self) -> None:
        if not self.status.live:
            logger.info("Session no longer live, stopping analog stream")
            self._poller.request_stop()
            return
        self.poll()
