"""
Shared types: hardware description, runtime status, module table, the
transport protocol and the error taxonomy.

Examples
--------
Handling a rejected reconfiguration:
```python
from fsmhost.types import ConfigError, ConfigErrorKind
try:
    device.set_flex_io([0, 1, 2, 3])
except ConfigError as e:
    if e.kind is ConfigErrorKind.BUSY:
        print("wait for the trial to finish")
```

See Also
--------
fsmhost.types.errors : Error taxonomy
fsmhost.types.protocols : Transport protocol
"""

from .errors import (
    ConfigError,
    ConfigErrorKind,
    FeatureError,
    FeatureErrorKind,
    FSMError,
    ProtocolError,
    ProtocolErrorKind,
    RelayError,
    RelayErrorKind,
)
from .hardware import FlexIOType, HardwareDescription, MachineType
from .modules import Module, ModuleTable
from .protocols import TransportProtocol
from .status import RuntimeStatus

__all__ = [
    "ConfigError",
    "ConfigErrorKind",
    "FeatureError",
    "FeatureErrorKind",
    "FSMError",
    "ProtocolError",
    "ProtocolErrorKind",
    "RelayError",
    "RelayErrorKind",
    "FlexIOType",
    "HardwareDescription",
    "MachineType",
    "Module",
    "ModuleTable",
    "TransportProtocol",
    "RuntimeStatus",
]
