from pathlib import Path

import pytest

from nixon.catalog import CommandIndex, parse_catalog
from nixon.config.load import (
    build_config,
    default_path,
    find_local_config,
    load_config,
    read_config,
)
from nixon.config.model import GlobalConfig
from nixon.errors import ConfigError
from nixon.language import Language
from nixon.project import DEFAULT_PROJECT_TYPES, ProjectType

from tests.infrastructure import write, write_catalog

USER = """
# Config {.config}

```json
{"backend": "fzf", "exactMatch": true, "projectDirs": ["~/a"]}
```

# `hello`

```bash
echo user
```

# `only-user`

```bash
echo only
```
"""

LOCAL = """
# Config {.config}

```yaml
backend: rofi
projectDirs: [~/b]
```

# `hello`

```bash
echo local
```
"""


def test_default_path_uses_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_path() == tmp_path / "nixon.md"


def test_default_path_falls_back_to_home(monkeypatch, tmp_path):
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_path() == tmp_path / ".config" / "nixon.md"


def test_read_missing_and_empty(tmp_path):
    assert read_config(tmp_path / "nope.md") is None
    assert read_config(write(tmp_path / "empty.md", "  \n")) is None


def test_find_local_config_walks_up(tmp_path):
    local = write(tmp_path / "proj" / ".nixon.md", "")
    sub = tmp_path / "proj" / "a" / "b"
    sub.mkdir(parents=True)
    assert find_local_config(sub) == local.resolve()


def test_merge_precedence():
    user = parse_catalog("user.md", USER)
    local = parse_catalog("local.md", LOCAL)
    config = build_config([user, local])

    assert config.backend == "rofi"
    assert config.exact_match is True
    assert config.project_dirs == ("~/b", "~/a")
    assert config.sources == ("user.md", "local.md")

    index = CommandIndex.build(config.commands)
    assert index.get("hello").source == "echo local\n"
    assert index.get("only-user") is not None


def test_cli_overrides_win():
    user = parse_catalog("user.md", USER)
    config = build_config([user], GlobalConfig(backend="rofi", exact_match=False, project_dirs=["/x"]))
    assert config.backend == "rofi"
    assert config.exact_match is False
    assert config.project_dirs == ("/x", "~/a")


def test_default_project_types():
    assert build_config([]).project_types == DEFAULT_PROJECT_TYPES


def test_declared_project_types_replace_defaults():
    cat = parse_catalog("c.md", """
# Config {.config}

```json
{"projectTypes": [{"name": "rust", "test": ["Cargo.toml"], "desc": "Rust crate"}]}
```
""")
    config = build_config([cat])
    assert config.project_types == (ProjectType("rust", ("Cargo.toml",), "Rust crate"),)


def test_config_block_commands():
    cat = parse_catalog("c.md", """
# `first`

```bash
echo first
```

# Config {.config}

```yaml
commands:
  - name: greet ${who}
    source: echo hi
    lang: python
    projectTypes: [git]
    description: Say hi
```
""")
    config = build_config([cat])
    assert [c.name for c in config.commands] == ["first", "greet"]
    greet = config.commands[1]
    assert greet.source == "echo hi\n"
    assert greet.language is Language.PYTHON
    assert greet.project_types == {"git"}
    assert greet.description == "Say hi"
    assert [p.name for p in greet.placeholders] == ["who"]


def test_load_config_reads_user_and_local(tmp_path):
    user = write_catalog(tmp_path / "user.md", USER)
    write_catalog(tmp_path / "proj" / ".nixon.md", LOCAL)
    cwd = tmp_path / "proj" / "sub"
    cwd.mkdir(parents=True)

    config = load_config(cwd, user)
    assert config.backend == "rofi"
    assert CommandIndex.build(config.commands).get("hello").source == "echo local\n"
    assert len(config.sources) == 2


def test_load_config_without_files(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    cwd = tmp_path / "empty"
    cwd.mkdir()
    config = load_config(cwd)
    assert config.commands == ()
    assert config.project_types == DEFAULT_PROJECT_TYPES


def test_explicit_config_must_exist(tmp_path):
    with pytest.raises(ConfigError, match="Config file not found"):
        load_config(tmp_path, Path(tmp_path / "missing.md"))
