"""
Command-line interface for fsmhost.

This module provides command-line tools for a state machine rig:

- Serial port discovery and rig configuration listing
- Flex I/O channel typing and analog input sampling rate
- Status LED control
- Module byte-stream relay monitoring

Examples
--------
Configuring the Flex I/O channels of the emulator rig:
```bash
$ fsmhost flexio -n emulator 0 1 2 3
```

Watching a module's serial traffic:
```bash
$ fsmhost relay -n rig1 ValveModule1 --duration 10
```

See Also
--------
fsmhost.system : Rig configuration files
fsmhost.device : State machine device


CLI Tree
--------

```
$ fsmhost --tree
cli
└── flexio
└── info
└── led
└── ports
└── rate
└── relay
└── rigs
```
"""

from .base import cli, tree_option

__all__ = ["cli", "tree_option"]
