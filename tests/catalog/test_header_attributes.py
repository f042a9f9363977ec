from nixon.catalog.attributes import HeaderAttrs, parse_header_args


def test_flags_and_kwargs():
    attrs = parse_header_args('hello {.command .bg type="git" lang=bash}')
    assert attrs.name == "hello"
    assert attrs.args == ("command", "bg")
    assert attrs.kwargs == (("type", "git"), ("lang", "bash"))
    assert attrs.has_arg("command")
    assert attrs.get_kwargs("type") == ["git"]


def test_repeated_kwargs():
    attrs = parse_header_args('Tools {type="git" type="npm"}')
    assert attrs.get_kwargs("type") == ["git", "npm"]


def test_quoted_value_with_spaces():
    attrs = parse_header_args('x {desc="my project"}')
    assert attrs.kwargs == (("desc", "my project"),)


def test_no_block_keeps_text():
    assert parse_header_args("Just a heading") == HeaderAttrs("Just a heading")


def test_malformed_block_degrades_to_plain_heading():
    for text in ("x {.command type=}", "x {.command", "x {!}", "x {.}"):
        attrs = parse_header_args(text)
        assert attrs == HeaderAttrs(text)
        assert not attrs.has_arg("command")


def test_placeholder_braces_are_not_attribute_blocks():
    attrs = parse_header_args("git show ${rev} <{x} A={y} {.command}")
    assert attrs.name == "git show ${rev} <{x} A={y}"
    assert attrs.args == ("command",)


def test_empty_block():
    attrs = parse_header_args("name { }")
    assert attrs == HeaderAttrs("name")


def test_with_flags_prepends_missing_only():
    attrs = HeaderAttrs("x", ("command",))
    assert attrs.with_flags("bg", "command").args == ("bg", "command")
    assert attrs.with_flags("command") is attrs
