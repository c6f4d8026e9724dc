"""
Periodic pollers that stream data off the device.

See Also
--------
fsmhost.stream.relay : Module byte-stream relay (command channel)
fsmhost.stream.analog : Analog sample streaming (analog channel)
"""

from .analog import (
    AnalogBatch,
    AnalogSampleBuffer,
    AnalogStreamer,
    encode_records,
    record_dtype,
)
from .relay import ModuleRelay

__all__ = [
    "AnalogBatch",
    "AnalogSampleBuffer",
    "AnalogStreamer",
    "ModuleRelay",
    "encode_records",
    "record_dtype",
]
