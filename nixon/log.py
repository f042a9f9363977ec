from __future__ import annotations

import logging
import os
from typing import Optional

_LOG = logging.getLogger("nixon")

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: Optional[str]) -> int:
    """Map a level name from config or CLI to a logging level (WARNING by default)."""
    if not name:
        return logging.WARNING
    try:
        return LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level '{name}'. Expected one of: {', '.join(LEVELS)}")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the `nixon` logger: one stderr handler, `[LEVEL] message` lines.

    NIXON_DEBUG in the environment forces DEBUG regardless of `level`.
    """
    lvl = logging.DEBUG if os.environ.get("NIXON_DEBUG") else parse_level(level)
    _LOG.setLevel(lvl)
    if not _LOG.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        _LOG.addHandler(h)


__all__ = ["LEVELS", "parse_level", "setup_logging"]
