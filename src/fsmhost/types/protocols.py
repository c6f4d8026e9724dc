"""Transport protocol shared by the real and emulated serial channels.

Everything above the transport (command client, relay poller, analog
streamer) depends only on this protocol, so the serial port and the emulator
are interchangeable. The choice is made once, when the device facade is
constructed.

Example
-------
To add a new transport (e.g. a TCP bridge to a remote rig):

    class TCPTransport(Device):
        def write(self, data: bytes) -> int: ...
        def read(self, n: int) -> bytes: ...
        def bytes_available(self) -> int: ...
        def reset_input_buffer(self) -> None: ...

    assert isinstance(TCPTransport(), TransportProtocol)

See Also
--------
fsmhost.device.transport : pyserial implementation
fsmhost.device.mock : emulator implementations
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class TransportProtocol(Protocol):
    """Methods required of a byte-oriented duplex channel."""

    write: Callable[[bytes], int]
    """Write all bytes, return the number written."""

    read: Callable[[int], bytes]
    """Read up to n bytes, blocking for at most the transport timeout.

    A short result means the timeout expired.
    """

    bytes_available: Callable[[], int]
    """Number of received bytes that can be read without blocking."""

    reset_input_buffer: Callable[[], None]
    """Discard all received, unread bytes."""

    open: Callable[[], tuple[bool, str]]

    close: Callable[[], None]

    is_connected: Callable[[], bool]
