import shutil
from pathlib import Path

import pytest

from nixon.errors import CommandFailedError, NixonUserError
from nixon.language import Language
from nixon.process import ExecOptions, evaluate, script_argv, wrap_env, wrap_terminal
from nixon.types import Command, ResolvedEnv

from tests.infrastructure import write

needs_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")


def test_script_argv_uses_interpreter():
    assert script_argv(Command("x", Language.PYTHON), Path("/tmp/s.py")) == ["python3", "/tmp/s.py"]
    assert script_argv(Command("x", Language.NONE), Path("/tmp/s.sh")) == ["bash", "/tmp/s.sh"]


def test_script_argv_rejects_unknown_language():
    with pytest.raises(NixonUserError, match="unsupported language"):
        script_argv(Command("x", Language.UNKNOWN), Path("/tmp/s"))


def test_wrap_env_direnv(tmp_path):
    write(tmp_path / ".envrc", "")
    argv = wrap_env(["bash", "s.sh"], tmp_path, ExecOptions(use_direnv=True))
    assert argv == ["direnv", "exec", str(tmp_path), "bash", "s.sh"]


def test_wrap_env_nix(tmp_path):
    nix = write(tmp_path / "shell.nix", "")
    sub = tmp_path / "sub"
    sub.mkdir()
    argv = wrap_env(["bash", "s.sh", "a b"], sub, ExecOptions(use_nix=True))
    assert argv == ["nix-shell", str(nix.resolve()), "--run", "bash s.sh 'a b'"]


def test_wrap_env_disabled(tmp_path):
    write(tmp_path / ".envrc", "")
    assert wrap_env(["bash"], tmp_path, ExecOptions()) == ["bash"]


def test_wrap_terminal():
    opts = ExecOptions(terminal="xterm -fa Mono")
    fg = Command("fg")
    bg = Command("bg", is_bg=True)
    assert wrap_terminal(["bash"], fg, opts, stdin_is_tty=False) == ["xterm", "-fa", "Mono", "-e", "bash"]
    assert wrap_terminal(["bash"], fg, opts, stdin_is_tty=True) == ["bash"]
    assert wrap_terminal(["bash"], bg, opts, stdin_is_tty=False) == ["bash"]
    forced = ExecOptions(terminal="xterm", force_tty=True)
    assert wrap_terminal(["bash"], fg, forced, stdin_is_tty=False) == ["bash"]


@needs_bash
def test_evaluate_passes_args_env_and_stdin(tmp_path):
    command = Command("show", Language.BASH, 'echo "$1 $NIXON_TEST_VAR $(pwd)"\ncat\n')
    env = ResolvedEnv(stdin=("in1", "in2"), args=("first",), env={"NIXON_TEST_VAR": "v"})
    out = evaluate(command, env, tmp_path)
    lines = out.splitlines()
    assert lines[0] == f"first v {tmp_path.resolve()}"
    assert lines[1:] == ["in1", "in2"]


@needs_bash
def test_evaluate_failure(tmp_path):
    command = Command("broken", Language.BASH, "echo oops >&2\nexit 3\n")
    with pytest.raises(CommandFailedError, match="exit code 3: oops") as exc:
        evaluate(command, ResolvedEnv(), tmp_path)
    assert exc.value.returncode == 3
