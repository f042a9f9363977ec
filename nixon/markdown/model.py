from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, List, Optional


class NodeKind(enum.Enum):
    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code_block"
    # lists, block quotes, HTML blocks, thematic breaks: content is not interpreted
    BLOCK = "block"
    # inline
    TEXT = "text"
    CODE = "code"


@dataclass(frozen=True)
class Position:
    start_line: int     # 1-based
    end_line: int       # 1-based, inclusive


@dataclass
class MdNode:
    kind: NodeKind
    pos: Optional[Position] = None
    children: List[MdNode] = field(default_factory=list)
    level: int = 0      # HEADING
    info: str = ""      # CODE_BLOCK info string (language + attributes)
    text: str = ""      # CODE_BLOCK body, TEXT/CODE/BLOCK content


def node_text(nodes: Iterable[MdNode]) -> str:
    """
    Plain text of inline content: text and code spans joined by single spaces,
    code span backticks removed.
    """
    parts: List[str] = []
    for n in nodes:
        if n.text.strip():
            parts.append(n.text.strip())
        if n.children:
            sub = node_text(n.children)
            if sub:
                parts.append(sub)
    return " ".join(parts)


__all__ = ["NodeKind", "Position", "MdNode", "node_text"]
