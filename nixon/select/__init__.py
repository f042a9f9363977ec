"""
Selection capability: interactive pickers (fzf, rofi) behind one call shape.

    selector(options, candidates) -> Selection
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Tuple


@dataclass(frozen=True)
class Candidate:
    """Selectable entry: `title` is displayed, `value` is returned."""
    title: str
    value: str

    @staticmethod
    def identity(text: str) -> Candidate:
        return Candidate(text, text)


@dataclass(frozen=True)
class SelectorOptions:
    exact: Optional[bool] = None
    ignore_case: Optional[bool] = None
    multiple: bool = False
    query: Optional[str] = None
    prompt: Optional[str] = None
    header: Optional[str] = None


class SelectionKind(enum.Enum):
    DEFAULT = "default"
    EMPTY = "empty"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Selection:
    kind: SelectionKind
    values: Tuple[str, ...] = ()

    @staticmethod
    def default(values: Iterable[str]) -> Selection:
        return Selection(SelectionKind.DEFAULT, tuple(values))

    @staticmethod
    def empty() -> Selection:
        return Selection(SelectionKind.EMPTY)

    @staticmethod
    def cancelled() -> Selection:
        return Selection(SelectionKind.CANCELLED)


class Selector(Protocol):
    def __call__(self, options: SelectorOptions, candidates: Iterable[Candidate]) -> Selection:
        ...


def get_selector(backend: Optional[str], stdin_is_tty: bool) -> Selector:
    """Backend by name; fzf in a terminal, rofi otherwise."""
    from .fzf import fzf
    from .rofi import rofi

    name = backend or ("fzf" if stdin_is_tty else "rofi")
    if name == "fzf":
        return fzf
    if name == "rofi":
        return rofi
    raise ValueError(f"Unknown selector backend '{name}'. Expected 'fzf' or 'rofi'")


__all__ = [
    "Candidate",
    "SelectorOptions",
    "SelectionKind",
    "Selection",
    "Selector",
    "get_selector",
]
