"""
Command protocol for the state machine's primary serial channel.

See Also
--------
fsmhost.protocol.opcodes : Wire format
fsmhost.protocol.client : Request/confirm client
"""

from . import opcodes
from .client import CommandClient

__all__ = ["CommandClient", "opcodes"]
