"""
Rig configuration: INI files describing each state machine and its modules.

Examples
--------
```python
from fsmhost.system import load_rig_config
rig = load_rig_config("emulator")
sm = rig.create_device()
sm.open()
```

See Also
--------
fsmhost.system.rigconfig : INI loading and validation
"""

from .rigconfig import (
    RigConfig,
    create_default_rigs_file,
    list_available_rigs,
    load_rig_config,
    validate_rig_config,
)

__all__ = [
    "RigConfig",
    "create_default_rigs_file",
    "list_available_rigs",
    "load_rig_config",
    "validate_rig_config",
]
