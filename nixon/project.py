"""
Projects: directories recognized by marker files.

A project type is a name plus markers (file/dir names or glob patterns).
A directory is a project when at least one marker of at least one type
exists directly inside it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .types import Command

logger = logging.getLogger(__name__)

_GLOB_CHARS = set("*?[")


@dataclass(frozen=True)
class ProjectType:
    name: str
    markers: Tuple[str, ...]
    description: str = ""

    def matches(self, path: Path) -> bool:
        for marker in self.markers:
            if _GLOB_CHARS & set(marker):
                if next(path.glob(marker), None) is not None:
                    return True
            elif (path / marker).exists():
                return True
        return False


@dataclass(frozen=True)
class Project:
    name: str
    path: Path
    types: Tuple[ProjectType, ...] = ()

    @property
    def type_names(self) -> FrozenSet[str]:
        return frozenset(t.name for t in self.types)

    @staticmethod
    def from_path(path: Path, types: Sequence[ProjectType] = ()) -> Project:
        return Project(path.name, path, tuple(types))


DEFAULT_PROJECT_TYPES: Tuple[ProjectType, ...] = (
    ProjectType("git", (".git",), "Git repository"),
    ProjectType("hg", (".hg",), "Mercurial repository"),
    ProjectType("nix", ("shell.nix", "default.nix"), "Nix project"),
    ProjectType("npm", ("package.json",), "NPM project"),
    ProjectType("yarn", ("yarn.lock",), "Yarn project"),
    ProjectType("cabal", ("cabal.project",), "Cabal new-style project"),
    ProjectType("direnv", (".envrc",), "Direnv project"),
    ProjectType("project", (".project",), "Generic project"),
)


def expand_path(raw: str) -> Path:
    """`~` and `$VARS` expanded."""
    return Path(os.path.expandvars(os.path.expanduser(raw)))


def project_types_of(path: Path, types: Iterable[ProjectType]) -> Tuple[ProjectType, ...]:
    return tuple(t for t in types if t.matches(path))


def find_projects(dirs: Iterable[str], types: Sequence[ProjectType]) -> List[Project]:
    """Immediate sub-directories of `dirs` that match at least one project type, sorted by name."""
    found: List[Project] = []
    for raw in dirs:
        base = expand_path(raw)
        if not base.is_dir():
            logger.debug("Project dir %s does not exist, skipping", base)
            continue
        for child in base.iterdir():
            if not child.is_dir():
                continue
            matched = project_types_of(child, types)
            if matched:
                found.append(Project.from_path(child, matched))
    found.sort(key=lambda p: (p.name, str(p.path)))
    return found


def find_in_project(types: Sequence[ProjectType], path: Path) -> Optional[Project]:
    """Nearest ancestor of `path` (inclusive) that is a project."""
    path = path.resolve()
    for candidate in (path, *path.parents):
        matched = project_types_of(candidate, types)
        if matched:
            return Project.from_path(candidate, matched)
    return None


def find_in_project_or_default(types: Sequence[ProjectType], path: Path) -> Project:
    """The enclosing project, or `path` itself as an untyped project."""
    project = find_in_project(types, path)
    if project is None:
        path = path.resolve()
        return Project.from_path(path)
    return project


def find_dominating_file(path: Path, name: str) -> Optional[Path]:
    """First `name` found in `path` or one of its ancestors."""
    path = path.resolve()
    for candidate in (path, *path.parents):
        target = candidate / name
        if target.exists():
            return target
    return None


def commands_for(project: Project, commands: Iterable[Command]) -> List[Command]:
    """Visible commands that apply to the project: untagged ones and those sharing a type."""
    names = project.type_names
    return [
        cmd for cmd in commands
        if not cmd.hidden and (not cmd.project_types or cmd.project_types & names)
    ]


def lookup_commands(project: Project, commands: Iterable[Command]) -> List[Command]:
    """Commands that can be referenced from the project, hidden ones included."""
    names = project.type_names
    return [cmd for cmd in commands if not cmd.project_types or cmd.project_types & names]


__all__ = [
    "ProjectType",
    "Project",
    "DEFAULT_PROJECT_TYPES",
    "expand_path",
    "project_types_of",
    "find_projects",
    "find_in_project",
    "find_in_project_or_default",
    "find_dominating_file",
    "commands_for",
    "lookup_commands",
]
