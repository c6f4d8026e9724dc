from .emulated_transport import EmulatedAnalogTransport, EmulatedTransport

__all__ = ["EmulatedAnalogTransport", "EmulatedTransport"]
