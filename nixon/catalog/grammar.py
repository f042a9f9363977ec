"""
Placeholder grammar.

A placeholder is written `<prefix>{<name>[<modifiers>]}`:

    <{name}         standard input
    ${name}         positional argument(s)
    VAR={name}      environment variable VAR
    ={name}         environment variable named after the placeholder

Modifiers come in two interchangeable notations:

    shorthand   ${name:1,3m}
    pipeline    ${name | fields 1,3 | multi}

Pipeline modifiers:
    cols[+h] [n,n...]   column table, `+h` marks a header row
    fields n,n...       whitespace separated fields
    json                output is JSON
    filter "word"       seed the selector query
    list                use every value, no selection
    multi | multiple    allow selecting several values

Only one shaping directive (cols/fields/json) may be given per placeholder,
whatever the notation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import PlaceholderSyntaxError
from ..types import (
    LINES,
    Columns,
    Fields,
    Json,
    Placeholder,
    PlaceholderFormat,
    PlaceholderKind,
)

_ENV_PREFIX = re.compile(r"([A-Za-z0-9_]*)=\{")
_NAME = re.compile(r"[^ :|}]+")
_FIELD_LIST = re.compile(r"\d+(?:,\d+)*")
_FILTER_WORD = re.compile(r'"([A-Za-z0-9]*)"')
_SPACES = re.compile(r"[ \t]*")
_WORD = re.compile(r"\S+")


@dataclass
class _PlaceholderBuilder:
    """Mutable while one placeholder is being parsed; frozen by build()."""
    kind: PlaceholderKind
    name: str
    env_name: Optional[str] = None
    format: PlaceholderFormat = LINES
    filter: Optional[str] = None
    multiple: bool = False
    as_list: bool = False

    def set_format(self, fmt: PlaceholderFormat, position: int) -> None:
        if self.format != LINES:
            raise PlaceholderSyntaxError("Placeholder format already set", position)
        self.format = fmt

    def build(self) -> Placeholder:
        return Placeholder(
            kind=self.kind,
            name=self.name,
            format=self.format,
            filter=self.filter,
            multiple=self.multiple,
            as_list=self.as_list,
            env_name=self.env_name,
        )


class PlaceholderParser:
    """
    Recognizes one placeholder at a given offset of a text.

    `parse_at` returns None when no placeholder starts at the offset.
    Once the `<prefix>{` opener has matched, any further problem is a
    PlaceholderSyntaxError.
    """

    def __init__(self, text: str):
        self.text = text
        self._position = 0

    def parse_at(self, position: int) -> Optional[Tuple[Placeholder, int]]:
        opener = self._match_opener(position)
        if opener is None:
            return None
        kind, alias, self._position = opener

        name = self._consume_re(_NAME, "Expected placeholder name")
        env_name = None
        if kind is PlaceholderKind.ENV_VAR:
            env_name = (alias or name).replace("-", "_")

        builder = _PlaceholderBuilder(kind=kind, name=name, env_name=env_name)
        if self._match(":"):
            self._parse_shorthand(builder)
        self._parse_pipeline(builder)

        self._skip_spaces()
        if not self._match("}"):
            raise PlaceholderSyntaxError("Expected '}' to close placeholder", self._position)
        return builder.build(), self._position

    # Openers

    def _match_opener(self, position: int) -> Optional[Tuple[PlaceholderKind, Optional[str], int]]:
        if self.text.startswith("<{", position):
            return PlaceholderKind.STDIN, None, position + 2
        if self.text.startswith("${", position):
            return PlaceholderKind.ARG, None, position + 2
        m = _ENV_PREFIX.match(self.text, position)
        if m:
            return PlaceholderKind.ENV_VAR, m.group(1), m.end()
        return None

    # Shorthand: `:1,3`, `:m`, `:1,3m`, `:m1,3`

    def _parse_shorthand(self, builder: _PlaceholderBuilder) -> None:
        if self._peek_digit():
            self._parse_fields(builder, self._position)
            if self._match("m"):
                builder.multiple = True
        elif self._match("m"):
            builder.multiple = True
            if self._peek_digit():
                self._parse_fields(builder, self._position)
        else:
            raise PlaceholderSyntaxError("Expected field numbers or 'm' after ':'", self._position)

    # Pipeline: `| modifier | modifier ...`

    def _parse_pipeline(self, builder: _PlaceholderBuilder) -> None:
        while True:
            save = self._position
            self._skip_spaces()
            if not self._match("|"):
                self._position = save
                return
            self._skip_spaces()
            self._parse_modifier(builder)

    def _parse_modifier(self, builder: _PlaceholderBuilder) -> None:
        at = self._position
        if self._match_word("cols"):
            has_header = self._match("+h")
            self._skip_spaces()
            fields = self._field_list() if self._peek_digit() else ()
            builder.set_format(Columns(has_header=has_header, fields=fields), at)
        elif self._match_word("fields"):
            self._skip_spaces()
            if not self._peek_digit():
                raise PlaceholderSyntaxError("Expected field numbers after 'fields'", self._position)
            self._parse_fields(builder, at)
        elif self._match_word("json"):
            builder.set_format(Json(), at)
        elif self._match_word("filter"):
            self._skip_spaces()
            m = _FILTER_WORD.match(self.text, self._position)
            if not m:
                raise PlaceholderSyntaxError("Expected quoted word after 'filter'", self._position)
            builder.filter = m.group(1)
            self._position = m.end()
        elif self._match_word("list"):
            builder.as_list = True
        elif self._match_word("multiple") or self._match_word("multi"):
            builder.multiple = True
        else:
            word = _WORD.match(self.text, at)
            found = word.group(0) if word else ""
            raise PlaceholderSyntaxError(f"Unknown placeholder modifier '{found}'", at)

    def _parse_fields(self, builder: _PlaceholderBuilder, at: int) -> None:
        fields = self._field_list()
        builder.set_format(Fields(fields=fields), at)

    def _field_list(self) -> Tuple[int, ...]:
        m = _FIELD_LIST.match(self.text, self._position)
        if not m:
            raise PlaceholderSyntaxError("Expected field numbers", self._position)
        self._position = m.end()
        return tuple(int(x) for x in m.group(0).split(","))

    # Cursor helpers

    def _peek_digit(self) -> bool:
        return self._position < len(self.text) and self.text[self._position].isdigit()

    def _match(self, literal: str) -> bool:
        if self.text.startswith(literal, self._position):
            self._position += len(literal)
            return True
        return False

    def _match_word(self, word: str) -> bool:
        """Keyword followed by something that is not a letter."""
        end = self._position + len(word)
        if not self.text.startswith(word, self._position):
            return False
        if end < len(self.text) and self.text[end].isalpha():
            return False
        self._position = end
        return True

    def _skip_spaces(self) -> None:
        self._position = _SPACES.match(self.text, self._position).end()

    def _consume_re(self, pattern: re.Pattern[str], error_message: str) -> str:
        m = pattern.match(self.text, self._position)
        if not m:
            raise PlaceholderSyntaxError(error_message, self._position)
        self._position = m.end()
        return m.group(0)


def scan_placeholders(text: str) -> List[Placeholder]:
    """All placeholders in `text`, in order; other characters are skipped."""
    parser = PlaceholderParser(text)
    out: List[Placeholder] = []
    position = 0
    while position < len(text):
        found = parser.parse_at(position)
        if found is None:
            position += 1
            continue
        placeholder, position = found
        out.append(placeholder)
    return out


def parse_placeholder(text: str) -> Placeholder:
    """Parse a string that holds exactly one placeholder (e.g. a CLI argument)."""
    stripped = text.strip()
    found = PlaceholderParser(stripped).parse_at(0)
    if found is None:
        raise PlaceholderSyntaxError("Expected '${', '<{' or 'NAME={'", 0)
    placeholder, end = found
    if end != len(stripped):
        raise PlaceholderSyntaxError("Unexpected text after placeholder", end)
    return placeholder


def parse_command_name(text: str) -> Tuple[str, List[Placeholder]]:
    """
    Split heading text into the command name (its first word) and the
    placeholders found in the rest of the text.
    """
    stripped = text.lstrip()
    m = _WORD.match(stripped)
    if not m:
        return "", []
    return m.group(0), scan_placeholders(stripped[m.end():])


__all__ = [
    "PlaceholderParser",
    "scan_placeholders",
    "parse_placeholder",
    "parse_command_name",
]
