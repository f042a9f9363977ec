"""
Markdown → command catalog.

Two steps:
  1. flatten(): depth-first walk of the document tree into a flat event list
     (headings, code blocks, paragraphs and trailing End markers);
  2. extract(): left fold over the events with a heading-level stack that
     scopes project types, producing the optional config payload and the
     commands in document order.

Commands are accumulated without a location; each one receives its
SourceLocation once the next boundary (heading or End) is seen.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import FrozenSet, List, Optional, Tuple, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..config.model import GlobalConfig
from ..errors import CatalogParseError, ConfigError, PlaceholderSyntaxError
from ..language import Language, parse_language
from ..markdown import MdNode, NodeKind, Position, node_text, parse_markdown
from ..types import Command, SourceLocation
from .attributes import HeaderAttrs, parse_header_args
from .grammar import parse_command_name, scan_placeholders
from .model import Catalog

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")


# ---- Events ----

@dataclass(frozen=True)
class HeadEvent:
    pos: Optional[Position]
    level: int
    text: str
    attrs: HeaderAttrs


@dataclass(frozen=True)
class SourceEvent:
    pos: Optional[Position]
    language: Language
    attrs: Tuple[str, ...]
    text: str


@dataclass(frozen=True)
class ParagraphEvent:
    pos: Optional[Position]
    text: str


@dataclass(frozen=True)
class EndEvent:
    # one line past the end of the subtree
    pos: Optional[Position]


Event = Union[HeadEvent, SourceEvent, ParagraphEvent, EndEvent]


def _heading_attrs(node: MdNode) -> HeaderAttrs:
    attrs = parse_header_args(node_text(node.children))
    code = next((c for c in node.children if c.kind is NodeKind.CODE), None)
    if code is None:
        return attrs
    # a code span in the heading marks a command, a trailing `&` a background one
    flags = ["command"]
    if code.text.strip().endswith("&"):
        flags.insert(0, "bg")
    return attrs.with_flags(*flags)


def flatten(node: MdNode) -> List[Event]:
    """Depth-first event list of a document tree."""
    if node.kind is NodeKind.HEADING:
        attrs = _heading_attrs(node)
        return [HeadEvent(node.pos, node.level, attrs.name, attrs)]
    if node.kind is NodeKind.CODE_BLOCK:
        words = node.info.split()
        lang = parse_language(words[0]) if words else Language.NONE
        return [SourceEvent(node.pos, lang, tuple(words[1:]), node.text)]
    if node.kind is NodeKind.PARAGRAPH:
        return [ParagraphEvent(node.pos, node_text(node.children))]
    if node.kind is NodeKind.DOCUMENT or node.children:
        out: List[Event] = []
        for child in node.children:
            out.extend(flatten(child))
        end = Position(node.pos.end_line + 1, node.pos.end_line + 1) if node.pos else None
        out.append(EndEvent(end))
        return out
    return []


# ---- Fold ----

@dataclass(frozen=True)
class _PosInfo:
    path: str
    pos: Optional[Position]
    level: int


@dataclass(frozen=True)
class ParseState:
    last_pos: _PosInfo
    header_level: int = 0
    # (heading level, project types declared by that heading)
    tag_stack: Tuple[Tuple[int, FrozenSet[str]], ...] = ()

    def enter(self, level: int, own: FrozenSet[str]) -> Tuple[ParseState, FrozenSet[str]]:
        """
        Enter a heading: drop entries of the same or deeper level (siblings and
        their children) and push this heading. Returns the new state and the
        effective project types of the heading.
        """
        lineage = tuple(e for e in self.tag_stack if e[0] < level)
        inherited: FrozenSet[str] = frozenset().union(*(tags for _, tags in lineage))
        state = replace(self, header_level=level, tag_stack=lineage + ((level, own),))
        return state, own | inherited


def _with_position(info: _PosInfo, message: str) -> str:
    line = f":{info.pos.start_line}" if info.pos else ""
    return f"{info.path}{line} {message}"


def _add_location(commands: List[Command], start: _PosInfo, nxt: _PosInfo) -> None:
    """Give the latest command its location if it does not have one yet."""
    if not commands or commands[-1].location is not None:
        return
    loc = SourceLocation(
        path=start.path,
        start_line=start.pos.start_line if start.pos else -1,
        end_line=(nxt.pos.start_line if nxt.pos else 0) - 1,
        level=start.level,
    )
    commands[-1] = replace(commands[-1], location=loc)


def _parse_config(events: List[Event], i: int, here: _PosInfo) -> Tuple[GlobalConfig, int]:
    ev = events[i] if i < len(events) else None
    if not isinstance(ev, SourceEvent):
        raise CatalogParseError(_with_position(here, "Expecting config source after header"))
    at = replace(here, pos=ev.pos or here.pos)

    if ev.language in (Language.JSON, Language.NONE):
        try:
            data = json.loads(ev.text) if ev.text.strip() else {}
        except json.JSONDecodeError as e:
            raise ConfigError(_with_position(at, f"Invalid JSON config: {e}")) from e
    elif ev.language is Language.YAML:
        try:
            data = _yaml.load(ev.text) or {}
        except YAMLError as e:
            raise ConfigError(_with_position(at, f"Invalid YAML config: {e}")) from e
    else:
        raise CatalogParseError(_with_position(at, f"Invalid config language: {ev.language.value}"))

    if not isinstance(data, dict):
        raise ConfigError(_with_position(at, "Config block must be a mapping"))
    try:
        return GlobalConfig.model_validate(data), i + 1
    except ValidationError as e:
        raise ConfigError(_with_position(at, f"Invalid config: {e}")) from e


def _parse_command(
    here: _PosInfo,
    name_text: str,
    project_types: FrozenSet[str],
    events: List[Event],
    i: int,
) -> Tuple[Command, int]:
    description: Optional[str] = None
    while i < len(events) and isinstance(events[i], ParagraphEvent):
        if description is None:
            description = events[i].text.strip()
        i += 1

    ev = events[i] if i < len(events) else None
    if not isinstance(ev, SourceEvent):
        raise CatalogParseError(_with_position(here, f"Expecting source block for `{name_text}`"))

    try:
        name, header_placeholders = parse_command_name(name_text)
        source_placeholders = scan_placeholders(" ".join(ev.attrs))
    except PlaceholderSyntaxError as e:
        raise PlaceholderSyntaxError(_with_position(here, f"`{name_text}`: {e.message}"), e.position) from e

    if header_placeholders and source_placeholders:
        raise CatalogParseError(
            _with_position(here, f"{name} uses placeholders in both command header and source code block")
        )

    cmd = Command(
        name=name,
        language=ev.language,
        source=ev.text,
        placeholders=tuple(header_placeholders or source_placeholders),
        project_types=project_types,
        description=description,
        hidden=name.startswith("_"),
    )
    return cmd, i + 1


def extract(events: List[Event], path: str) -> Catalog:
    """Fold the event list into a catalog. The first error aborts the parse."""
    state = ParseState(last_pos=_PosInfo(path, None, 0))
    config: Optional[GlobalConfig] = None
    commands: List[Command] = []

    def single(cfg: GlobalConfig, where: _PosInfo) -> GlobalConfig:
        if config is not None:
            raise CatalogParseError(_with_position(where, "Found multiple configuration blocks"))
        return cfg

    i = 0
    while i < len(events):
        ev = events[i]
        if isinstance(ev, EndEvent):
            _add_location(commands, state.last_pos, _PosInfo(path, ev.pos, state.header_level))
            i += 1
        elif isinstance(ev, HeadEvent):
            here = _PosInfo(path, ev.pos, ev.level)
            own = frozenset(ev.attrs.get_kwargs("type"))
            if ev.attrs.has_arg("config"):
                _add_location(commands, state.last_pos, here)
                cfg, i = _parse_config(events, i + 1, here)
                config = single(cfg, here)
            elif ev.attrs.has_arg("command"):
                state, tags = state.enter(ev.level, own)
                cmd, i = _parse_command(here, ev.attrs.name, tags, events, i + 1)
                _add_location(commands, state.last_pos, here)
                commands.append(replace(cmd, is_bg=ev.attrs.has_arg("bg")))
                state = replace(state, last_pos=here)
            else:
                state, _ = state.enter(ev.level, own)
                _add_location(commands, state.last_pos, here)
                i += 1
        elif isinstance(ev, SourceEvent) and "config" in ev.attrs:
            here = _PosInfo(path, ev.pos, state.header_level)
            cfg, i = _parse_config(events, i, here)
            config = single(cfg, here)
        else:
            i += 1

    return Catalog(config=config, commands=tuple(commands), path=path)


def parse_catalog(path: str, text: str) -> Catalog:
    """Parse a Markdown command catalog."""
    catalog = extract(flatten(parse_markdown(text)), path)
    logger.debug(
        "Parsed %d command(s) from %s (config block: %s)",
        len(catalog.commands), path, "yes" if catalog.config else "no",
    )
    return catalog


__all__ = [
    "HeadEvent",
    "SourceEvent",
    "ParagraphEvent",
    "EndEvent",
    "Event",
    "ParseState",
    "flatten",
    "extract",
    "parse_catalog",
]
