from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from ..config.model import GlobalConfig
from ..types import Command


@dataclass(frozen=True)
class Catalog:
    """
    Result of parsing one Markdown document: at most one config payload
    and the commands in document order.
    """
    config: Optional[GlobalConfig] = None
    commands: Tuple[Command, ...] = ()
    path: str = ""


@dataclass(frozen=True)
class CommandIndex:
    """Name → command lookup; the first command with a given name wins."""
    by_name: Dict[str, Command] = field(default_factory=dict)

    @staticmethod
    def build(commands: Iterable[Command]) -> CommandIndex:
        by_name: Dict[str, Command] = {}
        for cmd in commands:
            by_name.setdefault(cmd.name, cmd)
        return CommandIndex(by_name)

    def get(self, name: str) -> Optional[Command]:
        return self.by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.by_name

    def __len__(self) -> int:
        return len(self.by_name)


__all__ = ["Catalog", "CommandIndex"]
