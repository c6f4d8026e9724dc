"""Command/confirm client for the state machine command channel."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from loguru import logger

from fsmhost.protocol.opcodes import CONFIRM_OK
from fsmhost.types import (
    ProtocolError,
    ProtocolErrorKind,
    TransportProtocol,
)


class CommandClient:
    """Strictly synchronous request/confirm discipline over one transport.

    Every stateful operation writes an opcode plus a fixed-size payload and
    then blocks reading exactly the expected number of confirmation bytes.
    A second command is never written before the previous confirmation (or
    timeout) resolves: the transport lock is held from the write until the
    read returns. Pollers sharing the transport take the same lock through
    `exclusive()`.

    Failures are never retried; after a desync a retry could apply the same
    command twice.
    """

    def __init__(self, transport: TransportProtocol):
        self.transport = transport
        self._lock = threading.RLock()

    @contextmanager
    def exclusive(self) -> Iterator[TransportProtocol]:
        """Hold the transport for the duration of the block."""
        with self._lock:
            yield self.transport

    def send(self, opcode: bytes, payload: bytes = b"") -> None:
        """Write a command that has no reply."""
        with self._lock:
            logger.debug("TX {!r} {}", opcode, payload.hex())
            self.transport.write(opcode + payload)

    def send_and_confirm(
        self,
        opcode: bytes,
        payload: bytes = b"",
        n_confirm: int = 1,
        expected: int = CONFIRM_OK,
    ) -> int:
        """Write a command and require the confirmation sentinel.

        Parameters
        ----------
        opcode : bytes
            Single opcode byte.
        payload : bytes
            Parameters following the opcode.
        n_confirm : int
            Number of confirmation bytes to read (little-endian value).
        expected : int
            Required confirmation value.

        Returns
        -------
        int
            The confirmation value read.

        Raises
        ------
        ProtocolError
            TIMEOUT if fewer than `n_confirm` bytes arrived before the
            transport timeout, UNCONFIRMED if the value is not `expected`.
        """
        with self._lock:
            logger.debug("TX {!r} {} (awaiting confirm)", opcode, payload.hex())
            self.transport.write(opcode + payload)
            reply = self.transport.read(n_confirm)
        if len(reply) < n_confirm:
            msg = (
                f"Timed out waiting for confirmation of command {opcode!r}: "
                + f"got {len(reply)} of {n_confirm} bytes."
            )
            logger.error(msg)
            raise ProtocolError(ProtocolErrorKind.TIMEOUT, msg)
        value = int.from_bytes(reply, "little")
        if value != expected:
            msg = (
                f"Command {opcode!r} not confirmed: expected {expected}, got {value}."
            )
            logger.error(msg)
            raise ProtocolError(ProtocolErrorKind.UNCONFIRMED, msg)
        logger.debug("RX confirm {} for {!r}", value, opcode)
        return value

    def read_available(self) -> bytes:
        """Read every byte currently buffered, without blocking."""
        with self._lock:
            n = self.transport.bytes_available()
            if n == 0:
                return b""
            return self.transport.read(n)

    def drain(self) -> int:
        """Discard any unread bytes. Returns how many were dropped."""
        with self._lock:
            n = self.transport.bytes_available()
            self.transport.reset_input_buffer()
        if n:
            logger.debug("Discarded {} stale bytes from receive buffer", n)
        return n
