from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..project import ProjectType
from ..types import Command

BackendName = Literal["fzf", "rofi"]
LogLevelName = Literal["debug", "info", "warning", "warn", "error"]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


class ProjectTypeCfg(_ConfigModel):
    """Project type: a name plus the marker files/dirs that identify it."""
    name: str
    test: List[str] = Field(default_factory=list)
    desc: str = ""


class CommandCfg(_ConfigModel):
    """Command declared directly in the config block."""
    name: str
    source: str
    lang: str = "bash"
    project_types: List[str] = Field(default_factory=list, alias="projectTypes")
    description: Optional[str] = None


class GlobalConfig(_ConfigModel):
    """
    Payload of the (single) config block of a command catalog.

    Keys use camelCase in documents; snake_case is accepted as well.
    """
    backend: Optional[BackendName] = None
    exact_match: Optional[bool] = Field(default=None, alias="exactMatch")
    ignore_case: Optional[bool] = Field(default=None, alias="ignoreCase")
    force_tty: Optional[bool] = Field(default=None, alias="forceTty")
    project_dirs: List[str] = Field(default_factory=list, alias="projectDirs")
    project_types: List[ProjectTypeCfg] = Field(default_factory=list, alias="projectTypes")
    commands: List[CommandCfg] = Field(default_factory=list)
    use_direnv: Optional[bool] = Field(default=None, alias="useDirenv")
    use_nix: Optional[bool] = Field(default=None, alias="useNix")
    terminal: Optional[str] = None
    log_level: Optional[LogLevelName] = Field(default=None, alias="logLevel")


@dataclass(frozen=True)
class Config:
    """
    Effective settings after merging defaults, config files and CLI flags.
    """
    backend: Optional[BackendName] = None
    exact_match: Optional[bool] = None
    ignore_case: Optional[bool] = None
    force_tty: Optional[bool] = None
    project_dirs: Tuple[str, ...] = ()
    project_types: Tuple[ProjectType, ...] = ()
    commands: Tuple[Command, ...] = ()
    use_direnv: Optional[bool] = None
    use_nix: Optional[bool] = None
    terminal: Optional[str] = None
    log_level: Optional[LogLevelName] = None
    sources: Tuple[str, ...] = field(default=())   # files the config was read from


__all__ = [
    "BackendName",
    "LogLevelName",
    "ProjectTypeCfg",
    "CommandCfg",
    "GlobalConfig",
    "Config",
]
