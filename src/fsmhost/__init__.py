# -*- coding: utf-8 -*-
"""# fsmhost Documentation

`Host runtime for finite-state-machine experiment controllers`

A (python) library for driving an external FSM controller device, as used
in behavioural-neuroscience rigs, over a serial link. It implements the
device communication and runtime state layer:

- The single-byte opcode command/confirm protocol.
- Relaying of an attached UART module's byte stream to a monitoring sink.
- Flex I/O channel reconfiguration and analog sampling rate control.
- Streaming of analog samples from the dedicated analog serial channel.
- A runtime status registry gating which operations are legal.
- An emulator that stands in for the device when none is connected.

## See Also

- `fsmhost.device` : Transports and the state machine device facade
- `fsmhost.system` : Rig configuration files
- `fsmhost.cli` : Command line tools
"""

from ._version import __version__
