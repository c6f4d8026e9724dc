"""
Hardware reconfiguration and the derived channel layout.

See Also
--------
fsmhost.hardware.flexio : Flex I/O channel typing and sampling rate
fsmhost.hardware.layout : Event and channel name tables
"""

from .flexio import FlexIOManager
from .layout import PLACEHOLDER, ChannelLayout, flex_region_names

__all__ = ["ChannelLayout", "FlexIOManager", "PLACEHOLDER", "flex_region_names"]
