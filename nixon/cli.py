from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .catalog.grammar import parse_placeholder
from .catalog.model import CommandIndex
from .config.load import load_config
from .config.model import Config, GlobalConfig
from .errors import EmptySelectionError, NixonUserError, SelectionCancelledError
from .language import parse_language
from .log import LEVELS, setup_logging
from .process import ExecOptions, edit_location, make_evaluator, run_command
from .project import (
    Project,
    commands_for,
    find_in_project,
    find_in_project_or_default,
    find_projects,
    lookup_commands,
)
from .resolve.engine import ResolveContext, resolve
from .select import Candidate, SelectionKind, Selector, SelectorOptions, get_selector
from .types import Command
from .version import tool_version

logger = logging.getLogger(__name__)

SUBCOMMANDS = ("run", "project", "eval")

# Global options that take a value
_VALUE_FLAGS = {"-C", "--config", "-b", "--backend", "-p", "--path", "-t", "--terminal", "-L", "--loglevel"}
_BARE_FLAGS = {
    "-h", "--help", "-v", "--version",
    "-e", "--exact", "--no-exact",
    "-i", "--ignore-case", "--no-ignore-case",
    "-T", "--force-tty",
    "-d", "--direnv", "--no-direnv",
    "-n", "--nix", "--no-nix",
}


def _add_toggle(p: argparse.ArgumentParser, short: str, name: str, dest: str, help_text: str) -> None:
    p.add_argument(short, f"--{name}", dest=dest, action="store_const", const=True, help=help_text)
    p.add_argument(f"--no-{name}", dest=dest, action="store_const", const=False, help=argparse.SUPPRESS)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nixon",
        description="Project-aware command launcher driven by Markdown catalogs",
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-C", "--config", type=Path, help="path to the user command catalog")
    p.add_argument("-b", "--backend", choices=["fzf", "rofi"], help="selection backend")
    _add_toggle(p, "-e", "exact", "exact", "exact matching in the selector")
    _add_toggle(p, "-i", "ignore-case", "ignore_case", "case-insensitive matching")
    p.add_argument("-T", "--force-tty", action="store_const", const=True, help="never open a terminal window")
    p.add_argument("-p", "--path", action="append", metavar="DIR", help="project directory (repeatable)")
    _add_toggle(p, "-d", "direnv", "direnv", "run commands through direnv")
    _add_toggle(p, "-n", "nix", "nix", "run commands in nix-shell")
    p.add_argument("-t", "--terminal", help="terminal used for commands started outside of one")
    p.add_argument("-L", "--loglevel", choices=sorted(LEVELS), help="log level")

    sub = p.add_subparsers(dest="cmd")

    sp_run = sub.add_parser("run", help="run a command in the current project (default)")
    sp_run.add_argument("command", nargs="?", help="command name or selector query")
    sp_run.add_argument("args", nargs="*", help="extra arguments appended to the command")
    sp_run.add_argument("-l", "--list", action="store_true", help="list commands")
    sp_run.add_argument("-s", "--select", action="store_true", help="print the selected command")
    sp_run.add_argument("-E", "--edit", action="store_true", help="edit the selected command")

    sp_project = sub.add_parser("project", help="pick a project and run a command in it")
    sp_project.add_argument("project", nargs="?", help="project name or selector query ('.' for current)")
    sp_project.add_argument("command", nargs="?", help="command name or selector query")
    sp_project.add_argument("args", nargs="*", help="extra arguments appended to the command")
    sp_project.add_argument("-l", "--list", action="store_true", help="list projects")
    sp_project.add_argument("-s", "--select", action="store_true", help="print the selected project path")

    sp_eval = sub.add_parser("eval", help="evaluate a source snippet with placeholders")
    sp_eval.add_argument("source", help="source to evaluate")
    sp_eval.add_argument("placeholders", nargs="*", help="placeholders, e.g. '${name}' or 'VAR={name}'")
    sp_eval.add_argument("--language", default="bash", help="language of the source")

    return p


def _with_default_command(argv: List[str]) -> List[str]:
    """Insert `run` where the first non-global token starts, unless a sub-command is given."""
    i = 0
    while i < len(argv):
        token = argv[i]
        if token in SUBCOMMANDS:
            return argv
        flag = token.split("=", 1)[0] if token.startswith("--") else token
        if flag in _VALUE_FLAGS:
            i += 1 if "=" in token else 2
            continue
        if flag in _BARE_FLAGS:
            if flag in ("-h", "--help", "-v", "--version"):
                return argv
            i += 1
            continue
        break
    return argv[:i] + ["run"] + argv[i:]


def _overrides(ns: argparse.Namespace) -> GlobalConfig:
    return GlobalConfig(
        backend=ns.backend,
        exact_match=ns.exact,
        ignore_case=ns.ignore_case,
        force_tty=ns.force_tty,
        project_dirs=ns.path or [],
        use_direnv=ns.direnv,
        use_nix=ns.nix,
        terminal=ns.terminal,
        log_level=ns.loglevel,
    )


class _Session:
    """Settings shared by the sub-commands of one invocation."""

    def __init__(self, config: Config, selector: Selector, cwd: Path, stdin_is_tty: bool):
        self.config = config
        self.selector = selector
        self.cwd = cwd
        self.stdin_is_tty = stdin_is_tty
        self.options = SelectorOptions(exact=config.exact_match, ignore_case=config.ignore_case)
        self.exec_options = ExecOptions(
            use_direnv=bool(config.use_direnv),
            use_nix=bool(config.use_nix),
            terminal=config.terminal,
            force_tty=bool(config.force_tty),
        )

    def select_one(self, candidates: List[Candidate], query: Optional[str], prompt: str) -> str:
        opts = SelectorOptions(
            exact=self.options.exact,
            ignore_case=self.options.ignore_case,
            query=query,
            prompt=prompt,
        )
        selection = self.selector(opts, candidates)
        if selection.kind is SelectionKind.CANCELLED:
            raise SelectionCancelledError(f"No {prompt} selected.")
        if selection.kind is SelectionKind.EMPTY or not selection.values:
            raise EmptySelectionError(f"No {prompt} selected.")
        return selection.values[0]

    def context(self, project: Project) -> ResolveContext:
        index = CommandIndex.build(lookup_commands(project, self.config.commands))
        return ResolveContext(
            commands=index,
            selector=self.selector,
            evaluate=make_evaluator(project.path, self.exec_options),
            options=self.options,
        )

    def pick_command(self, project: Project, query: Optional[str]) -> Command:
        offered = commands_for(project, self.config.commands)
        if query:
            exact = CommandIndex.build(lookup_commands(project, self.config.commands)).get(query)
            if exact is not None:
                return exact
        if not offered:
            raise EmptySelectionError(f"No commands available for {project.path}.")
        index = CommandIndex.build(offered)
        candidates = [
            Candidate(f"{c.name} - {c.description}" if c.description else c.name, c.name)
            for c in index.by_name.values()
        ]
        name = self.select_one(candidates, query, "command")
        return index.by_name[name]

    def run_in_project(self, project: Project, ns: argparse.Namespace) -> int:
        if getattr(ns, "list", False) and ns.cmd == "run":
            for cmd in commands_for(project, self.config.commands):
                line = f"{cmd.name}\t{cmd.description}" if cmd.description else cmd.name
                sys.stdout.write(line + "\n")
            return 0

        command = self.pick_command(project, ns.command)
        if getattr(ns, "select", False):
            sys.stdout.write(command.show() + "\n")
            return 0
        if getattr(ns, "edit", False):
            if command.location is None:
                raise NixonUserError(f"No source location for `{command.name}`")
            return edit_location(command.location)

        env = resolve(command, self.context(project))
        return run_command(command, env, project.path, self.exec_options, ns.args, self.stdin_is_tty)


def _cmd_run(session: _Session, ns: argparse.Namespace) -> int:
    project = find_in_project_or_default(session.config.project_types, session.cwd)
    logger.debug("Project: %s", project.path)
    return session.run_in_project(project, ns)


def _cmd_project(session: _Session, ns: argparse.Namespace) -> int:
    config = session.config
    projects = find_projects(config.project_dirs, config.project_types)

    if ns.list:
        query = (ns.project or "").lower()
        for proj in projects:
            if query in str(proj.path).lower():
                sys.stdout.write(f"{proj.path}\n")
        return 0

    project: Optional[Project] = None
    if ns.project == ".":
        project = find_in_project(config.project_types, session.cwd)
    if project is None and ns.project:
        project = next((p for p in projects if p.name == ns.project), None)
    if project is None:
        if not projects:
            raise EmptySelectionError("No projects.")
        by_path = {str(p.path): p for p in projects}
        query = None if ns.project == "." else ns.project
        chosen = session.select_one([Candidate.identity(path) for path in by_path], query, "project")
        project = by_path[chosen]

    if ns.select:
        sys.stdout.write(f"{project.path}\n")
        return 0
    return session.run_in_project(project, ns)


def _cmd_eval(session: _Session, ns: argparse.Namespace) -> int:
    project = find_in_project_or_default(session.config.project_types, session.cwd)
    source = ns.source if ns.source.endswith("\n") else ns.source + "\n"
    command = Command(
        name="",  # stays out of the way of catalog command names
        language=parse_language(ns.language),
        source=source,
        placeholders=tuple(parse_placeholder(p) for p in ns.placeholders),
    )
    env = resolve(command, session.context(project))
    return run_command(command, env, project.path, session.exec_options, (), session.stdin_is_tty)


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    ns = _build_parser().parse_args(_with_default_command(args))

    try:
        setup_logging(ns.loglevel)
        cwd = Path(os.getcwd())
        config = load_config(cwd, ns.config, _overrides(ns))
        setup_logging(config.log_level)

        stdin_is_tty = sys.stdin.isatty()
        session = _Session(config, get_selector(config.backend, stdin_is_tty), cwd, stdin_is_tty)

        if ns.cmd == "project":
            return _cmd_project(session, ns)
        if ns.cmd == "eval":
            return _cmd_eval(session, ns)
        return _cmd_run(session, ns)

    except (EmptySelectionError, SelectionCancelledError) as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 1
    except NixonUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
