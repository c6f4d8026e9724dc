"""Device base class.

All transports and the state machine facade inherit from Device, which
provides configuration validation, connection handling hooks and metadata
export.
"""

from __future__ import annotations

from typing import Type

from loguru import logger


class Device:
    """Base class for everything that owns a hardware connection.

    Required Methods
    ----------------
    All device implementations must override these methods:

    - open(): Connect to the hardware, returning (success, message)
    - close(): Disconnect from the hardware
    - is_connected(): Check connection status

    Attributes
    ----------
    required_config : dict[str, Type]
        Required configuration parameters and their types

    Examples
    --------
    ```python
    class MyTransport(Device):
        required_config = {"port": str}

        def open(self) -> tuple[bool, str]:
            self._connected = True
            return True, "Connected successfully"

        def close(self):
            self._connected = False

        def is_connected(self) -> bool:
            return self._connected
    ```
    """

    required_config: dict[str, Type] = {}  # Required configuration keys

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, value in self.required_config.items():
            if not hasattr(self, key):
                logger.error(
                    f"Device {self.__class__.__name__} missing required config key: "
                    + f"{key}"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} missing required config "
                    + f"key: {key}"
                )
            if not isinstance(getattr(self, key), value):
                logger.error(
                    f"Device {self.__class__.__name__} config key {key} "
                    + f"has wrong type: {type(getattr(self, key))} (expected {value})"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} config key {key} has "
                    + f"wrong type: {type(getattr(self, key))} (expected {value})"
                )

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()

    def get_all_attrs(self):
        """
        Function to return all of the managed attributes of the class
        Managed attributes are the ones that start with a underscore
        """
        attrs = {}
        for key, value in self.__dict__.items():
            # single underscore attr are managed
            if key[0] == "_" and not key.startswith(f"_{self.__class__.__name__}"):
                if hasattr(value, "to_dict"):
                    value = value.to_dict()
                attrs[key[1:]] = value
        return attrs

    def unroll_metadata(self):
        return self.get_all_attrs()
