"""
Configuration model for nixon.

Loading and merging live in `nixon.config.load`.
"""

from __future__ import annotations

from .model import (
    BackendName,
    CommandCfg,
    Config,
    GlobalConfig,
    LogLevelName,
    ProjectTypeCfg,
)

__all__ = [
    "BackendName",
    "CommandCfg",
    "Config",
    "GlobalConfig",
    "LogLevelName",
    "ProjectTypeCfg",
]
