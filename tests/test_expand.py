"""Tests for variable and command expansion."""

from __future__ import annotations

import pytest

from envlex.errors import ErrorKind, FormatError, FormatErrorContext
from envlex.expand import find_commands, resolve_commands, resolve_variables
from envlex.host import HostEnvironment

from conftest import FakeRunner


def _fail(kind, reason=None):
    return FormatError(kind, FormatErrorContext("", ".env", 1, 0), reason)


NO_HOST = HostEnvironment(getenv=lambda name: None)


def test_resolve_variables_without_dollar_is_unchanged():
    """No ``$`` means no backslash processing either."""
    assert resolve_variables("plain \\ text", {}, NO_HOST, _fail) == "plain \\ text"


def test_resolve_variables_braced_and_bare():
    values = {"A": "1", "B": "2"}
    assert resolve_variables("$A-${B}-$Ax", values, NO_HOST, _fail) == "1-2-"


def test_resolve_variables_stray_closing_brace_is_kept():
    assert resolve_variables("$A}", {"A": "x"}, NO_HOST, _fail) == "x}"


def test_resolve_variables_unclosed_brace():
    with pytest.raises(FormatError) as exc:
        resolve_variables("${A", {"A": "x"}, NO_HOST, _fail)
    assert exc.value.kind is ErrorKind.UNCLOSED_BRACE


def test_resolve_variables_escape():
    assert resolve_variables("\\$A and $A", {"A": "x"}, NO_HOST, _fail) == "$A and x"


def test_resolve_variables_leaves_escaped_command_for_command_pass():
    assert resolve_variables("\\$(cmd) $A", {"A": "x"}, NO_HOST, _fail) == "\\$(cmd) x"


def test_resolve_variables_host_precedence():
    host = HostEnvironment(
        session={"A": "session", "HTTP_B": "header"},
        generic={"A": "generic", "HTTP_B": "generic-b", "C": "generic-c"},
        getenv=lambda name: "os-" + name,
    )
    result = resolve_variables("$A $HTTP_B $C $D", {}, host, _fail)
    assert result == "session generic-b generic-c os-D"


def test_find_commands():
    value = "a $(x (y)) \\$(z) $(unbalanced"
    spans = list(find_commands(value))
    assert [(value[s:e], escaped) for s, e, escaped in spans] == [
        ("$(x (y))", False),
        ("\\$(z)", True),
    ]


def test_find_commands_ignores_empty():
    assert list(find_commands("$() $")) == []


def test_resolve_commands():
    runner = FakeRunner({"$(a)": "A", "$(b (c))": "B"})
    assert resolve_commands("<$(a)|$(b (c))|\\$(d)>", {"K": "v"}, runner, _fail) == "<A|B|$(d)>"
    assert [call[0] for call in runner.calls] == ["$(a)", "$(b (c))"]
    assert runner.calls[0][1] == {"K": "v"}


def test_resolve_commands_unescapes_unbalanced_literal():
    runner = FakeRunner()
    assert resolve_commands("\\$(oops", {}, runner, _fail) == "$(oops"
    assert runner.calls == []


def test_resolve_commands_failure():
    with pytest.raises(FormatError) as exc:
        resolve_commands("$(nope)", {}, FakeRunner(), _fail)
    assert exc.value.kind is ErrorKind.COMMAND_EXPANSION_FAILED
    assert exc.value.reason == "Issue expanding a command (unexpected command $(nope)\n)"


def test_find_commands_ignores_empty_nested_parens():
    assert list(find_commands("$(()) $(a()) $((b))")) == [(13, 19, False)]
