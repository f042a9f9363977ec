import pytest

from nixon.catalog.grammar import parse_placeholder
from nixon.catalog.model import CommandIndex
from nixon.errors import (
    CyclicPlaceholderError,
    EmptySelectionError,
    InvalidArgumentError,
    InvalidOutputError,
    SelectionCancelledError,
)
from nixon.resolve import ResolveContext, resolve
from nixon.select import Candidate, Selection, SelectorOptions
from nixon.types import Command

from tests.infrastructure import RecordingEvaluator, StubSelector


def cmd(name: str, *placeholders: str, source: str = "echo\n") -> Command:
    return Command(
        name=name,
        source=source,
        placeholders=tuple(parse_placeholder(p) for p in placeholders),
    )


def context(commands, outputs, selector=None, options=None):
    return ResolveContext(
        commands=CommandIndex.build(commands),
        selector=selector or StubSelector(),
        evaluate=RecordingEvaluator(outputs),
        options=options or SelectorOptions(),
    )


def test_args_are_flattened_in_order():
    top = cmd("top", "${a}", "${b}", "${c}")
    ctx = context([top, cmd("a"), cmd("b"), cmd("c")], {"a": "a\n", "b": "b\nc\n", "c": ""})
    env = resolve(top, ctx)
    assert env.args == ("a", "b", "c")
    assert env.stdin == ()
    assert env.env == {}


def test_unknown_reference_fails_before_selection():
    top = cmd("top", "${a}", "${missing}")
    selector = StubSelector()
    ctx = context([top, cmd("a")], {"a": "x"}, selector)
    with pytest.raises(InvalidArgumentError, match="invalid argument: `missing`"):
        resolve(top, ctx)
    assert selector.calls == []
    assert ctx.evaluate.calls == []


def test_cancelled_selection_aborts():
    top = cmd("top", "${a}", "${b}")
    ctx = context([top, cmd("a"), cmd("b")], {"a": "x"}, StubSelector(Selection.cancelled()))
    with pytest.raises(SelectionCancelledError):
        resolve(top, ctx)
    # aborted at the first placeholder
    assert [name for name, _ in ctx.evaluate.calls] == ["a"]


def test_empty_selection_aborts():
    top = cmd("top", "${a}")
    ctx = context([top, cmd("a")], {"a": "x"}, StubSelector(Selection.empty()))
    with pytest.raises(EmptySelectionError):
        resolve(top, ctx)


def test_env_values_are_space_joined():
    top = cmd("top", "FILES={a}", "={my-b}")
    ctx = context([top, cmd("a"), cmd("my-b")], {"a": "x\ny\n", "my-b": "z"})
    env = resolve(top, ctx)
    assert env.env == {"FILES": "x y", "my_b": "z"}
    assert env.args == ()


def test_stdin_is_concatenated():
    top = cmd("top", "<{a}", "${b}", "<{c}")
    ctx = context([top, cmd("a"), cmd("b"), cmd("c")], {"a": "l1\nl2", "b": "arg", "c": "l3"})
    env = resolve(top, ctx)
    assert env.stdin == ("l1", "l2", "l3")
    assert env.stdin_text() == "l1\nl2\nl3\n"
    assert env.args == ("arg",)


def test_nested_resolution_feeds_evaluation():
    top = cmd("top", "${mid}")
    mid = cmd("mid", "${leaf}")
    leaf = cmd("leaf")
    ctx = context([top, mid, leaf], {"leaf": "leafval", "mid": "midval"})
    env = resolve(top, ctx)
    assert env.args == ("midval",)
    calls = ctx.evaluate.calls
    assert [name for name, _ in calls] == ["leaf", "mid"]
    assert calls[1][1].args == ("leafval",)


def test_cycle_is_detected():
    a = cmd("a", "${b}")
    b = cmd("b", "${a}")
    ctx = context([a, b], {})
    with pytest.raises(CyclicPlaceholderError) as exc:
        resolve(a, ctx)
    assert exc.value.chain == ("a", "b", "a")


def test_self_reference_is_a_cycle():
    a = cmd("a", "${a}")
    with pytest.raises(CyclicPlaceholderError):
        resolve(a, context([a], {}))


def test_selector_options_follow_placeholder():
    top = cmd("top", '${a | multi | filter "foo"}')
    selector = StubSelector()
    ctx = context([top, cmd("a")], {"a": "x"}, selector, SelectorOptions(exact=True))
    resolve(top, ctx)
    (options, candidates), = selector.calls
    assert options.multiple is True
    assert options.query == "foo"
    assert options.prompt == "a"
    assert options.exact is True
    assert candidates == [Candidate("x", "x")]


def test_list_skips_selector():
    top = cmd("top", "${a | list}")
    selector = StubSelector()
    ctx = context([top, cmd("a")], {"a": "one\ntwo\n"}, selector)
    env = resolve(top, ctx)
    assert env.args == ("one", "two")
    assert selector.calls == []


def test_fields_value_is_returned_not_title():
    top = cmd("top", "${log:1}")
    selector = StubSelector(first_only=True)
    ctx = context([top, cmd("log")], {"log": "abc123 fix bug\ndef456 add thing\n"}, selector)
    env = resolve(top, ctx)
    assert env.args == ("abc123",)
    _, candidates = selector.calls[0]
    assert candidates[0] == Candidate("abc123 fix bug", "abc123")


def test_columns_header_goes_to_selector():
    top = cmd("top", "${ps | cols+h 1}")
    selector = StubSelector(first_only=True)
    ctx = context([top, cmd("ps")], {"ps": "PID   NAME\n12    bash\n"}, selector)
    env = resolve(top, ctx)
    assert env.args == ("12",)
    options, _ = selector.calls[0]
    assert options.header == "PID   NAME"


def test_invalid_json_output():
    top = cmd("top", "${a | json}")
    ctx = context([top, cmd("a")], {"a": "not json"})
    with pytest.raises(InvalidOutputError, match="`a` did not produce valid JSON"):
        resolve(top, ctx)


def test_command_without_placeholders():
    top = cmd("top")
    env = resolve(top, context([top], {}))
    assert (env.stdin, env.args, env.env) == ((), (), {})
    assert env.stdin_text() is None


def test_nested_unknown_reference_fails_before_selection():
    top = cmd("top", "${a}", "${b}")
    b = cmd("b", "${missing}")
    selector = StubSelector()
    ctx = context([top, cmd("a"), b], {"a": "x"}, selector)
    with pytest.raises(InvalidArgumentError, match="invalid argument: `missing`"):
        resolve(top, ctx)
    assert selector.calls == []
    assert ctx.evaluate.calls == []


def test_nested_cycle_fails_before_selection():
    top = cmd("top", "${a}", "${b}")
    b = cmd("b", "${c}")
    c = cmd("c", "${b}")
    selector = StubSelector()
    ctx = context([top, cmd("a"), b, c], {"a": "x"}, selector)
    with pytest.raises(CyclicPlaceholderError) as exc:
        resolve(top, ctx)
    assert exc.value.chain == ("top", "b", "c", "b")
    assert selector.calls == []


def test_shared_reference_is_not_a_cycle():
    top = cmd("top", "${a}", "${b}")
    a = cmd("a", "${leaf}")
    b = cmd("b", "${leaf}")
    ctx = context([top, a, b, cmd("leaf")], {"a": "1", "b": "2", "leaf": "x"})
    assert resolve(top, ctx).args == ("1", "2")
