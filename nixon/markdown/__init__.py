"""
Minimal Markdown block parser producing the node tree the catalog extractor walks.
"""

from __future__ import annotations

from .model import MdNode, NodeKind, Position, node_text
from .parser import parse_markdown

__all__ = ["MdNode", "NodeKind", "Position", "node_text", "parse_markdown"]
