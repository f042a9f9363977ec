"""
Source language tags of command code blocks.

The tag only routes a command to its interpreter; the source itself is
never inspected.
"""

from __future__ import annotations

import enum
from typing import Dict, List, Optional


class Language(enum.Enum):
    BASH = "bash"
    HASKELL = "haskell"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JSON = "json"
    YAML = "yaml"
    NONE = "none"
    UNKNOWN = "unknown"


_ALIASES: Dict[str, Language] = {
    "bash": Language.BASH,
    "sh": Language.BASH,
    "shell": Language.BASH,
    "haskell": Language.HASKELL,
    "hs": Language.HASKELL,
    "javascript": Language.JAVASCRIPT,
    "js": Language.JAVASCRIPT,
    "node": Language.JAVASCRIPT,
    "python": Language.PYTHON,
    "python3": Language.PYTHON,
    "py": Language.PYTHON,
    "json": Language.JSON,
    "yaml": Language.YAML,
    "yml": Language.YAML,
}

# Interpreter command line; the script path follows it
_INTERPRETERS: Dict[Language, List[str]] = {
    Language.BASH: ["bash"],
    Language.NONE: ["bash"],
    Language.HASKELL: ["runghc"],
    Language.JAVASCRIPT: ["node"],
    Language.PYTHON: ["python3"],
}

_EXTENSIONS: Dict[Language, str] = {
    Language.BASH: ".sh",
    Language.NONE: ".sh",
    Language.HASKELL: ".hs",
    Language.JAVASCRIPT: ".js",
    Language.PYTHON: ".py",
}


def parse_language(tag: Optional[str]) -> Language:
    """Language for a code block tag; an empty tag means NONE."""
    if not tag or not tag.strip():
        return Language.NONE
    return _ALIASES.get(tag.strip().lower(), Language.UNKNOWN)


def interpreter(lang: Language) -> Optional[List[str]]:
    """Interpreter argv prefix, or None when the language cannot be executed."""
    cmd = _INTERPRETERS.get(lang)
    return list(cmd) if cmd else None


def script_suffix(lang: Language) -> str:
    return _EXTENSIONS.get(lang, "")


__all__ = ["Language", "parse_language", "interpreter", "script_suffix"]
