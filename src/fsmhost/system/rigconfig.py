"""Rig configuration handling for fsmhost.

A rig is one state machine on one host: its serial ports, its hardware
description and the modules plugged into its UART slots. Rigs are described
in INI files, one section per rig:

[rig_name]
# Connection
port = COM3
analog_port = COM4
baudrate = 12000000
timeout = 5

# Hardware description
machine_type = TWO_PLUS
firmware_version = 23
cycle_frequency = 10000
n_flex_io = 4
n_events = 20
n_inputs = 10
n_outputs = 16
pos.event_flex = 10
pos.input_flex = 5
pos.output_flex = 10
flex_io_types = 0, 0, 0, 0

# Modules, in slot order
modules = ValveModule1, HiFi1
modules.connected = 1, 0

Search order for a rig name:
1. ~/.fsmhost/rigs.ini
2. package/sysconfig/rigs/<rig_name>.ini

See Also
--------
fsmhost.device.StateMachineDevice : Device built from a rig
fsmhost.types.HardwareDescription : Hardware constants
"""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from fsmhost.types import HardwareDescription, MachineType
from fsmhost.util.defaults import DEFAULT_BAUDRATE, DEFAULT_TIMEOUT, EMULATOR_PORT


class ConfigVersion(str, Enum):
    CURRENT = "v1"


REQUIRED_KEYS = (
    "port",
    "machine_type",
    "firmware_version",
    "n_flex_io",
    "n_events",
    "n_inputs",
    "n_outputs",
)
INT_KEYS = (
    "baudrate",
    "firmware_version",
    "cycle_frequency",
    "flex_io_sampling_rate",
    "n_flex_io",
    "n_events",
    "n_inputs",
    "n_outputs",
    "pos.event_flex",
    "pos.input_flex",
    "pos.output_flex",
)


def user_rigs_file() -> Path:
    return Path.home() / ".fsmhost" / "rigs.ini"


def package_rigs_dir() -> Path:
    import fsmhost

    return Path(fsmhost.__file__).parent / "sysconfig" / "rigs"


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _parse_machine_type(value: str) -> MachineType:
    value = value.strip()
    if value.isdigit():
        return MachineType(int(value))
    return MachineType[value.upper()]


@dataclass
class RigConfig:
    """Rig configuration loaded from an INI section.

    Attributes
    ----------
    rig_name : str
        Section name.
    hw : HardwareDescription
        Hardware constants of the rig's state machine.
    port : str
        Command channel port, or "EMU" for the emulator.
    analog_port : str, optional
        Analog channel port (2+ hardware only).
    module_names : list[str]
        Module name per UART slot.
    modules_connected : list[bool]
        Connection flag per UART slot.
    """

    rig_name: str
    hw: HardwareDescription
    port: str = EMULATOR_PORT
    analog_port: Optional[str] = None
    baudrate: int = DEFAULT_BAUDRATE
    timeout: float = DEFAULT_TIMEOUT
    module_names: list[str] = field(default_factory=list)
    modules_connected: list[bool] = field(default_factory=list)

    def __post_init__(self):
        if not self.modules_connected:
            self.modules_connected = [True] * len(self.module_names)

    def create_device(self, **kwargs):
        """Build the StateMachineDevice for this rig (not yet opened).

        Keyword arguments are forwarded to the device, e.g. sinks or
        `emulator_mode`.
        """
        from fsmhost.device import StateMachineDevice

        return StateMachineDevice(
            self.hw,
            port=self.port,
            analog_port=self.analog_port,
            module_names=self.module_names,
            modules_connected=self.modules_connected,
            baudrate=self.baudrate,
            timeout=self.timeout,
            **kwargs,
        )


def validate_rig_config(config: ConfigParser, section: str) -> tuple[bool, str]:
    """Validate a rig configuration section.

    Parameters
    ----------
    config : ConfigParser
        ConfigParser instance containing the configuration
    section : str
        Name of the section to validate

    Returns
    -------
    tuple[bool, str]
        (is_valid, error_message)
    """
    sec = config[section]
    missing = [k for k in REQUIRED_KEYS if k not in sec]
    if missing:
        return False, f"Missing required fields: {', '.join(missing)}"

    try:
        _parse_machine_type(sec["machine_type"])
    except (KeyError, ValueError):
        return False, f"Invalid machine type: {sec['machine_type']}"

    for key in INT_KEYS:
        if key in sec:
            try:
                int(sec[key])
            except ValueError:
                return False, f"Invalid integer for {key}: {sec[key]}"
    if "timeout" in sec:
        try:
            float(sec["timeout"])
        except ValueError:
            return False, f"Invalid timeout: {sec['timeout']}"
    if "flex_io_sampling_rate" in sec:
        freq = int(sec.get("cycle_frequency", "10000"))
        rate = int(sec["flex_io_sampling_rate"])
        if rate <= 0 or not 10 <= freq / rate <= freq:
            return False, f"Invalid flex_io_sampling_rate: {rate}"

    n_flex = int(sec["n_flex_io"])
    if "flex_io_types" in sec:
        types = _split_list(sec["flex_io_types"])
        if len(types) != n_flex:
            return False, f"flex_io_types has {len(types)} entries, expected {n_flex}"
        if any(t not in ("0", "1", "2", "3") for t in types):
            return False, f"Invalid flex_io_types: {sec['flex_io_types']}"

    modules = _split_list(sec.get("modules", ""))
    if len(set(modules)) != len(modules):
        return False, "Duplicate module names"
    if "modules.connected" in sec:
        connected = _split_list(sec["modules.connected"])
        if len(connected) != len(modules):
            return (
                False,
                f"modules.connected has {len(connected)} entries for "
                + f"{len(modules)} modules",
            )
        if any(c not in ("0", "1") for c in connected):
            return False, f"Invalid modules.connected: {sec['modules.connected']}"

    return True, ""


def _create_rig_config(config: ConfigParser, rig_name: str) -> RigConfig:
    is_valid, error_msg = validate_rig_config(config, rig_name)
    if not is_valid:
        raise ValueError(f"Rig '{rig_name}': {error_msg}")

    sec: SectionProxy = config[rig_name]
    hw_kwargs = dict(
        machine_type=_parse_machine_type(sec["machine_type"]),
        firmware_version=sec.getint("firmware_version"),
        n_flex_io=sec.getint("n_flex_io"),
        n_events=sec.getint("n_events"),
        n_inputs=sec.getint("n_inputs"),
        n_outputs=sec.getint("n_outputs"),
        pos_event_flex=sec.getint("pos.event_flex", fallback=0),
        pos_input_flex=sec.getint("pos.input_flex", fallback=0),
        pos_output_flex=sec.getint("pos.output_flex", fallback=0),
        flex_io_types=[int(t) for t in _split_list(sec.get("flex_io_types", ""))],
    )
    if "cycle_frequency" in sec:
        hw_kwargs["cycle_frequency"] = sec.getint("cycle_frequency")
    if "flex_io_sampling_rate" in sec:
        hw_kwargs["flex_io_sampling_rate"] = sec.getint("flex_io_sampling_rate")
    hw = HardwareDescription(**hw_kwargs)

    module_names = _split_list(sec.get("modules", ""))
    connected = [c == "1" for c in _split_list(sec.get("modules.connected", ""))]

    return RigConfig(
        rig_name=rig_name,
        hw=hw,
        port=sec["port"],
        analog_port=sec.get("analog_port") or None,
        baudrate=sec.getint("baudrate", fallback=DEFAULT_BAUDRATE),
        timeout=sec.getfloat("timeout", fallback=DEFAULT_TIMEOUT),
        module_names=module_names,
        modules_connected=connected,
    )


def load_rig_config(rig_name: str) -> RigConfig:
    """Load a rig configuration by (case-insensitive) name.

    User rigs (~/.fsmhost/rigs.ini) take precedence over package defaults.

    Raises
    ------
    ValueError
        If the rig is not found or its section is invalid.
    """
    user_file = user_rigs_file()
    package_file = package_rigs_dir() / f"{rig_name.lower()}.ini"

    for path in (user_file, package_file):
        if not path.exists():
            continue
        config = ConfigParser()
        config.read(path)
        for section in config.sections():
            if section.lower() == rig_name.lower():
                logger.debug("Loading rig {} from {}", section, path)
                return _create_rig_config(config, section)

    raise ValueError(
        f"Rig '{rig_name}' not found in:\n"
        f"- User config: {user_file}\n"
        f"- Package config: {package_file}"
    )


def list_available_rigs() -> dict[str, str]:
    """Map each available rig name to its source ('user' or 'package').

    User rigs override package rigs of the same name. Sections are not
    validated.
    """
    rigs = {}
    package_dir = package_rigs_dir()
    if package_dir.exists():
        for file in sorted(package_dir.glob("*.ini")):
            config = ConfigParser()
            config.read(file)
            for section in config.sections():
                rigs[section] = "package"

    user_file = user_rigs_file()
    if user_file.exists():
        config = ConfigParser()
        config.read(user_file)
        for section in config.sections():
            rigs[section] = "user"
    return rigs


def create_default_rigs_file(file_path: Path) -> None:
    """Create (or extend) a rigs.ini with an example emulator rig.

    Existing sections and keys in `file_path` are preserved.
    """
    logger.debug(f"Creating default rigs file at {file_path}")

    config = ConfigParser()
    config["DEFAULT"] = {"version": ConfigVersion.CURRENT.value}
    config["Emulator"] = {
        "port": EMULATOR_PORT,
        "machine_type": "TWO_PLUS",
        "firmware_version": "23",
        "cycle_frequency": "10000",
        "n_flex_io": "4",
        "n_events": "20",
        "n_inputs": "10",
        "n_outputs": "16",
        "pos.event_flex": "10",
        "pos.input_flex": "5",
        "pos.output_flex": "10",
        "flex_io_types": "0, 0, 0, 0",
        "flex_io_sampling_rate": "1000",
        "modules": "ValveModule1, HiFi1",
        "modules.connected": "1, 0",
    }

    if file_path.exists():
        existing = ConfigParser()
        existing.read(file_path)
        defaults = existing.defaults()
        for section in existing.sections():
            if section not in config.sections():
                logger.debug(f"Preserving existing section: {section}")
                config[section] = {}
            # existing values win over the example rig
            for key, value in existing[section].items():
                if key in defaults and defaults[key] == value:
                    continue
                config[section][key] = value
        for key, value in defaults.items():
            config["DEFAULT"].setdefault(key, value)

    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w") as f:
        config.write(f)
