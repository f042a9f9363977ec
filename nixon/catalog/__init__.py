"""
Command catalog: Markdown documents → commands + optional global config.
"""

from __future__ import annotations

from .attributes import HeaderAttrs, parse_header_args
from .extractor import parse_catalog
from .grammar import parse_command_name, parse_placeholder, scan_placeholders
from .model import Catalog, CommandIndex

__all__ = [
    "Catalog",
    "CommandIndex",
    "HeaderAttrs",
    "parse_catalog",
    "parse_command_name",
    "parse_header_args",
    "parse_placeholder",
    "scan_placeholders",
]
