from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple, Union

from .language import Language


# ---- Placeholders ----

class PlaceholderKind(enum.Enum):
    STDIN = "stdin"      # <{name}
    ARG = "arg"          # ${name}
    ENV_VAR = "env"      # ALIAS={name}


@dataclass(frozen=True)
class Lines:
    """Default format: one value per output line."""


@dataclass(frozen=True)
class Fields:
    """Whitespace separated fields (1-based) of each line."""
    fields: Tuple[int, ...]


@dataclass(frozen=True)
class Columns:
    """Column table, optionally with a header row."""
    has_header: bool = False
    fields: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Json:
    """Output is a JSON document."""


PlaceholderFormat = Union[Lines, Fields, Columns, Json]
LINES = Lines()


@dataclass(frozen=True)
class Placeholder:
    """
    A substitution site inside a command.

    `name` is the lookup name of the referenced command. `env_name` is only
    set for ENV_VAR placeholders and holds the variable name to export.
    """
    kind: PlaceholderKind
    name: str
    format: PlaceholderFormat = LINES
    filter: Optional[str] = None
    multiple: bool = False
    as_list: bool = False
    env_name: Optional[str] = None


# ---- Commands ----

@dataclass(frozen=True)
class SourceLocation:
    """Where a command is defined; used to jump to its definition."""
    path: str
    start_line: int
    end_line: int
    level: int


@dataclass(frozen=True)
class Command:
    name: str
    language: Language = Language.NONE
    source: str = ""
    placeholders: Tuple[Placeholder, ...] = ()
    project_types: FrozenSet[str] = field(default_factory=frozenset)
    description: Optional[str] = None
    hidden: bool = False
    location: Optional[SourceLocation] = None
    is_bg: bool = False

    def show(self) -> str:
        """Source text as printed by `--select`."""
        return self.source.rstrip("\n")


# ---- Resolution output ----

@dataclass(frozen=True)
class ResolvedEnv:
    """
    Everything a command needs from its placeholders:
    standard input lines, positional arguments and environment variables.
    """
    stdin: Tuple[str, ...] = ()
    args: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict)

    def stdin_text(self) -> Optional[str]:
        if not self.stdin:
            return None
        return "\n".join(self.stdin) + "\n"


__all__ = [
    "PlaceholderKind",
    "Lines",
    "Fields",
    "Columns",
    "Json",
    "PlaceholderFormat",
    "LINES",
    "Placeholder",
    "SourceLocation",
    "Command",
    "ResolvedEnv",
]
