"""
Running commands.

A command's source is written to a temporary script and handed to the
interpreter of its language, in the project directory, with the resolved
arguments, environment and standard input. Two modes:

    evaluate()     capture stdout (placeholder candidates); failure raises
    run_command()  interactive run, background commands are detached
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import CommandFailedError, NixonUserError
from .language import Language, interpreter, script_suffix
from .project import find_dominating_file
from .resolve.engine import Evaluator
from .types import Command, ResolvedEnv, SourceLocation

logger = logging.getLogger(__name__)

NIX_FILES = ("shell.nix", "default.nix")

# Removes the script once a detached command is done with it; $0 is the script path
_BG_CLEANUP = '"$@"; rc=$?; rm -f "$0"; exit $rc'


@dataclass(frozen=True)
class ExecOptions:
    use_direnv: bool = False
    use_nix: bool = False
    terminal: Optional[str] = None
    force_tty: bool = False


@contextmanager
def _script(command: Command, keep: bool = False) -> Iterator[Path]:
    fd, name = tempfile.mkstemp(prefix=f"nixon-{command.name}-", suffix=script_suffix(command.language))
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(command.source)
        path.chmod(0o700)
        yield path
    finally:
        if not keep:
            path.unlink(missing_ok=True)


def script_argv(command: Command, script: Path) -> List[str]:
    prefix = interpreter(command.language)
    if prefix is None:
        tag = command.language.value if command.language is not Language.UNKNOWN else "unknown"
        raise NixonUserError(f"Cannot execute `{command.name}`: unsupported language ({tag})")
    return prefix + [str(script)]


def wrap_env(argv: List[str], cwd: Path, opts: ExecOptions) -> List[str]:
    """Run through direnv or nix-shell when enabled and the project supports it."""
    if opts.use_direnv and find_dominating_file(cwd, ".envrc") is not None:
        return ["direnv", "exec", str(cwd)] + argv
    if opts.use_nix:
        for name in NIX_FILES:
            nix_file = find_dominating_file(cwd, name)
            if nix_file is not None:
                return ["nix-shell", str(nix_file), "--run", shlex.join(argv)]
    return argv


def wrap_terminal(argv: List[str], command: Command, opts: ExecOptions, stdin_is_tty: bool) -> List[str]:
    """Open a terminal for foreground commands started outside of one."""
    if not opts.terminal or command.is_bg or stdin_is_tty or opts.force_tty:
        return argv
    return shlex.split(opts.terminal) + ["-e"] + argv


def _environ(env: ResolvedEnv) -> Dict[str, str]:
    merged = dict(os.environ)
    merged.update(env.env)
    return merged


def evaluate(command: Command, env: ResolvedEnv, cwd: Path, opts: ExecOptions = ExecOptions()) -> str:
    """Run `command` and return its standard output."""
    with _script(command) as script:
        argv = wrap_env(script_argv(command, script) + list(env.args), cwd, opts)
        logger.debug("Evaluating %s: %s", command.name, shlex.join(argv))
        try:
            proc = subprocess.run(
                argv,
                cwd=str(cwd),
                env=_environ(env),
                input=env.stdin_text() or "",
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
        except FileNotFoundError as e:
            raise NixonUserError(f"Executable not found: {argv[0]}") from e
    if proc.returncode != 0:
        raise CommandFailedError(command.name, proc.returncode, proc.stderr)
    return proc.stdout


def make_evaluator(cwd: Path, opts: ExecOptions = ExecOptions()) -> Evaluator:
    def _evaluate(command: Command, env: ResolvedEnv) -> str:
        return evaluate(command, env, cwd, opts)
    return _evaluate


def run_command(
    command: Command,
    env: ResolvedEnv,
    cwd: Path,
    opts: ExecOptions = ExecOptions(),
    extra_args: Sequence[str] = (),
    stdin_is_tty: bool = True,
) -> int:
    """Run `command` interactively; returns its exit code (0 for detached ones)."""
    with _script(command, keep=command.is_bg) as script:
        argv = script_argv(command, script) + list(env.args) + list(extra_args)
        argv = wrap_terminal(wrap_env(argv, cwd, opts), command, opts, stdin_is_tty)
        stdin_text = env.stdin_text()
        logger.info("Running command '%s'", command.name)
        logger.debug("argv: %s", shlex.join(argv))
        try:
            if command.is_bg:
                proc = subprocess.Popen(
                    ["sh", "-c", _BG_CLEANUP, str(script)] + argv,
                    cwd=str(cwd),
                    env=_environ(env),
                    stdin=subprocess.PIPE if stdin_text else subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                    text=True,
                )
                if stdin_text:
                    proc.stdin.write(stdin_text)
                    proc.stdin.close()
                return 0
            proc = subprocess.run(argv, cwd=str(cwd), env=_environ(env), input=stdin_text, text=True)
        except FileNotFoundError as e:
            raise NixonUserError(f"Executable not found: {argv[0]}") from e
    return proc.returncode


def edit_location(location: SourceLocation) -> int:
    """Open $EDITOR at the first line of a command definition."""
    editor = shlex.split(os.environ.get("EDITOR") or "vi")
    argv = editor + [f"+{location.start_line}", location.path]
    try:
        return subprocess.run(argv).returncode
    except FileNotFoundError as e:
        raise NixonUserError(f"Editor not found: {editor[0]}") from e


__all__ = [
    "ExecOptions",
    "NIX_FILES",
    "script_argv",
    "wrap_env",
    "wrap_terminal",
    "evaluate",
    "make_evaluator",
    "run_command",
    "edit_location",
]
