"""Exceptions raised by the device communication layer.

Every error carries a `kind` enum so callers can branch on the failure
without string matching. Precondition failures (`ConfigError`, `RelayError`,
`FeatureError`) are raised before anything is written to the device.
`ProtocolError` means the device may be in an unknown state; it is never
retried automatically.
"""

from __future__ import annotations

from enum import Enum


class ProtocolErrorKind(str, Enum):
    UNCONFIRMED = "unconfirmed"
    TIMEOUT = "timeout"


class ConfigErrorKind(str, Enum):
    LENGTH_MISMATCH = "length_mismatch"
    INVALID_TYPE = "invalid_type"
    BUSY = "busy"
    RATE_OUT_OF_RANGE = "rate_out_of_range"


class RelayErrorKind(str, Enum):
    ALREADY_ACTIVE = "already_active"
    UNKNOWN_MODULE = "unknown_module"


class FeatureErrorKind(str, Enum):
    UNSUPPORTED_FIRMWARE = "unsupported_firmware"
    INVALID_VALUE = "invalid_value"


class FSMError(Exception):
    """Base exception for fsmhost errors."""

    kind: Enum

    def __init__(self, kind: Enum, message: str):
        super().__init__(message)
        self.kind = kind

    def __repr__(self):
        return f"{self.__class__.__name__}({self.kind.name}: {self})"


class ProtocolError(FSMError):
    """Confirmation byte wrong or missing; the link may be desynchronised."""

    kind: ProtocolErrorKind


class ConfigError(FSMError):
    """Hardware reconfiguration request rejected before transmission."""

    kind: ConfigErrorKind


class RelayError(FSMError):
    """Module relay request rejected before transmission."""

    kind: RelayErrorKind


class FeatureError(FSMError):
    """Operation not supported by the connected hardware or firmware."""

    kind: FeatureErrorKind
