# -*- coding: utf-8 -*-
"""
Device implementations for fsmhost.

- Serial transport to the state machine's USB serial channels
- In-memory emulated transports (emulator mode)
- The state machine facade tying commands, relay and streaming together

Each transport implements the common interface defined by the Device base
class and satisfies `fsmhost.types.TransportProtocol`, so the facade runs
identically against a device or the emulator.

Examples
--------
```python
from fsmhost.device import StateMachineDevice
sm = StateMachineDevice(hw, port="COM3", module_names=["ValveModule1"])
sm.open()
sm.start_module_relay("ValveModule1")
```

See Also
--------
fsmhost.system : Rig configuration files
fsmhost.types.protocols : Transport protocol
"""

from .device import Device
from .mock import EmulatedAnalogTransport, EmulatedTransport
from .state_machine import StateMachineDevice
from .transport import SerialTransport

__all__ = [
    "Device",
    "EmulatedAnalogTransport",
    "EmulatedTransport",
    "SerialTransport",
    "StateMachineDevice",
]
