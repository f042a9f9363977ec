"""
Config discovery and merging.

Layers, lowest precedence first:

    built-in defaults < user config < project-local config < CLI flags

Scalar settings: the last non-None value wins. Lists (project dirs, project
types, commands) are concatenated with entries of later layers first, so a
local command shadows a user command of the same name.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..catalog.extractor import parse_catalog
from ..catalog.grammar import parse_command_name
from ..catalog.model import Catalog
from ..errors import ConfigError, PlaceholderSyntaxError
from ..language import parse_language
from ..project import DEFAULT_PROJECT_TYPES, ProjectType, find_dominating_file
from ..types import Command
from .model import CommandCfg, Config, GlobalConfig

logger = logging.getLogger(__name__)

USER_CONFIG_NAME = "nixon.md"
LOCAL_CONFIG_NAME = ".nixon.md"

_SCALARS = (
    "backend",
    "exact_match",
    "ignore_case",
    "force_tty",
    "use_direnv",
    "use_nix",
    "terminal",
    "log_level",
)


def default_path() -> Path:
    """User config: $XDG_CONFIG_HOME/nixon.md, ~/.config/nixon.md by default."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return Path(base) / USER_CONFIG_NAME


def find_local_config(path: Path) -> Optional[Path]:
    return find_dominating_file(path, LOCAL_CONFIG_NAME)


def read_config(path: Path) -> Optional[Catalog]:
    """Parse a catalog file; missing and empty files yield None."""
    if not path.is_file():
        logger.debug("Config %s not found", path)
        return None
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return None
    return parse_catalog(str(path), text)


def command_from_cfg(cfg: CommandCfg, origin: str = "") -> Command:
    """Command declared in a config block rather than under a heading."""
    try:
        name, placeholders = parse_command_name(cfg.name)
    except PlaceholderSyntaxError as e:
        raise ConfigError(f"{origin}: command `{cfg.name}`: {e}") from e
    if not name:
        raise ConfigError(f"{origin}: command without a name")
    source = cfg.source if cfg.source.endswith("\n") else cfg.source + "\n"
    return Command(
        name=name,
        language=parse_language(cfg.lang),
        source=source,
        placeholders=tuple(placeholders),
        project_types=frozenset(cfg.project_types),
        description=cfg.description,
        hidden=name.startswith("_"),
    )


def _catalog_commands(catalog: Catalog) -> List[Command]:
    out = list(catalog.commands)
    if catalog.config is not None:
        out.extend(command_from_cfg(c, catalog.path) for c in catalog.config.commands)
    return out


def build_config(catalogs: Sequence[Catalog], overrides: Optional[GlobalConfig] = None) -> Config:
    """Merge catalogs (lowest precedence first) and CLI overrides into one Config."""
    layers: List[GlobalConfig] = [c.config for c in catalogs if c.config is not None]
    if overrides is not None:
        layers.append(overrides)

    scalars = {}
    for key in _SCALARS:
        for layer in layers:
            value = getattr(layer, key)
            if value is not None:
                scalars[key] = value

    project_dirs: List[str] = []
    project_types: List[ProjectType] = []
    for layer in reversed(layers):
        project_dirs.extend(layer.project_dirs)
        project_types.extend(
            ProjectType(t.name, tuple(t.test), t.desc) for t in layer.project_types
        )

    commands: List[Command] = []
    for catalog in reversed(catalogs):
        commands.extend(_catalog_commands(catalog))

    return Config(
        project_dirs=tuple(project_dirs),
        project_types=tuple(project_types) or DEFAULT_PROJECT_TYPES,
        commands=tuple(commands),
        sources=tuple(c.path for c in catalogs),
        **scalars,
    )


def load_config(
    cwd: Path,
    config_path: Optional[Path] = None,
    overrides: Optional[GlobalConfig] = None,
) -> Config:
    """
    Read the user config (or `config_path`) and the nearest local `.nixon.md`
    above `cwd`, then merge them with `overrides`.
    """
    user_path = config_path or default_path()
    if config_path is not None and not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    catalogs: List[Catalog] = []
    user = read_config(user_path)
    if user is not None:
        catalogs.append(user)

    local_path = find_local_config(cwd)
    if local_path is not None and local_path.resolve() != user_path.resolve():
        local = read_config(local_path)
        if local is not None:
            catalogs.append(local)

    config = build_config(catalogs, overrides)
    logger.debug(
        "Loaded %d command(s) from %s",
        len(config.commands), ", ".join(config.sources) or "no config files",
    )
    return config


__all__ = [
    "USER_CONFIG_NAME",
    "LOCAL_CONFIG_NAME",
    "default_path",
    "find_local_config",
    "read_config",
    "command_from_cfg",
    "build_config",
    "load_config",
]
