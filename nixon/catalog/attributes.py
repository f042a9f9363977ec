"""
Heading attribute blocks.

    ## `git-log` {.command .bg type="git"}

Everything before the attribute block is the heading name. Flags start with
a dot, key/value pairs use `key=value` or `key="value"`. A heading without a
well-formed block keeps its full text as name and has no attributes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

_IDENT = re.compile(r"[A-Za-z_-]+")
_LETTERS = re.compile(r"[A-Za-z]+")
_QUOTED = re.compile(r'"([^"]*)"')
_SPACES = re.compile(r"\s*")

# a brace preceded by one of these opens a placeholder, not an attribute block
_PLACEHOLDER_PREFIX = "$<="


@dataclass(frozen=True)
class HeaderAttrs:
    name: str
    args: Tuple[str, ...] = ()
    kwargs: Tuple[Tuple[str, str], ...] = ()

    def has_arg(self, key: str) -> bool:
        return key in self.args

    def get_kwargs(self, key: str) -> List[str]:
        return [v for k, v in self.kwargs if k == key]

    def with_flags(self, *flags: str) -> HeaderAttrs:
        """Prepend flags that are not already present."""
        extra = tuple(f for f in flags if f not in self.args)
        return replace(self, args=extra + self.args) if extra else self


class _AttrSyntaxError(Exception):
    pass


def _find_block(text: str) -> Optional[int]:
    for i, ch in enumerate(text):
        if ch == "{" and (i == 0 or text[i - 1] not in _PLACEHOLDER_PREFIX):
            return i
    return None


def _parse_attr_list(text: str, position: int) -> Tuple[List[str], List[Tuple[str, str]], int]:
    args: List[str] = []
    kwargs: List[Tuple[str, str]] = []
    position = _SPACES.match(text, position).end()
    while not text.startswith("}", position):
        if text.startswith(".", position):
            m = _IDENT.match(text, position + 1)
            if not m:
                raise _AttrSyntaxError(position)
            args.append(m.group(0))
            position = m.end()
        else:
            m = _IDENT.match(text, position)
            if not m or not text.startswith("=", m.end()):
                raise _AttrSyntaxError(position)
            key = m.group(0)
            position = m.end() + 1
            v = _QUOTED.match(text, position) or _LETTERS.match(text, position)
            if not v:
                raise _AttrSyntaxError(position)
            value = v.group(1) if v.re is _QUOTED else v.group(0)
            kwargs.append((key, value))
            position = v.end()
        position = _SPACES.match(text, position).end()
        if position >= len(text):
            raise _AttrSyntaxError(position)
    return args, kwargs, position + 1


def parse_header_args(text: str) -> HeaderAttrs:
    """Split heading text into name, flags and key/value attributes."""
    start = _find_block(text)
    if start is None:
        return HeaderAttrs(text)
    try:
        args, kwargs, _ = _parse_attr_list(text, start + 1)
    except _AttrSyntaxError:
        return HeaderAttrs(text)
    return HeaderAttrs(text[:start].strip(), tuple(args), tuple(kwargs))


__all__ = ["HeaderAttrs", "parse_header_args"]
