"""UART module slot table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from mashumaro import DataClassDictMixin


@dataclass
class Module(DataClassDictMixin):
    name: str
    connected: bool = False
    relay_active: bool = False


@dataclass
class ModuleTable(DataClassDictMixin):
    """One entry per UART module slot, in slot order.

    At most one module has `relay_active` set at any time; the relay
    controller is the only writer of that flag.
    """

    modules: list[Module] = field(default_factory=list)

    @classmethod
    def from_names(
        cls, names: Sequence[str], connected: Optional[Sequence[bool]] = None
    ) -> ModuleTable:
        if connected is None:
            connected = [True] * len(names)
        if len(connected) != len(names):
            raise ValueError(
                f"Got {len(connected)} connected flags for {len(names)} modules"
            )
        return cls([Module(n, bool(c)) for n, c in zip(names, connected)])

    def __len__(self) -> int:
        return len(self.modules)

    def __getitem__(self, index: int) -> Module:
        return self.modules[index]

    @property
    def names(self) -> list[str]:
        return [m.name for m in self.modules]

    def index_of(self, name: str) -> Optional[int]:
        """0-based slot of the module called `name`, or None."""
        for i, module in enumerate(self.modules):
            if module.name == name:
                return i
        return None

    def active_index(self) -> Optional[int]:
        for i, module in enumerate(self.modules):
            if module.relay_active:
                return i
        return None

    def any_relay_active(self) -> bool:
        return self.active_index() is not None

    def clear_relay_flags(self) -> None:
        for module in self.modules:
            module.relay_active = False
