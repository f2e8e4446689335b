# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Variable (``$NAME``, ``${NAME}``) and command (``$(...)``) expansion of value segments."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping

from envlex.errors import CommandError, ErrorKind, FormatError
from envlex.host import CommandRunner, EnvironmentLookup

VARNAME_PATTERN: str = r"[A-Za-z_][A-Za-z0-9_]*"

_VARIABLE_RE = re.compile(
    rf"""
    (\\)?                   # escaped with a backslash?
    \$
    (?!\()                  # not a command
    (\{{)?                  # optional brace
    ({VARNAME_PATTERN})     # variable name
    (\}})?                  # optional closing brace
    """,
    re.VERBOSE,
)

# ``\$(`` is left for the command pass, which unescapes it without running it.
_ESCAPED_DOLLAR_RE = re.compile(r"\\\$(?!\()")

Fail = Callable[..., FormatError]


def resolve_variables(
    value: str,
    values: Mapping[str, str],
    host: EnvironmentLookup,
    fail: Fail,
) -> str:
    """Replace ``$NAME`` and ``${NAME}`` references, then unescape ``\\$``.

    Names resolve against *values* (declared earlier in the same buffer) before
    *host*; unknown names expand to an empty string.  ``$NAME}`` keeps the stray
    brace, while an unclosed ``${NAME`` is an error raised through *fail*.
    """
    if "$" not in value:
        return value

    def _replace(m: re.Match[str]) -> str:
        if m.group(1):
            return m.group(0)[1:]
        if m.group(2) and not m.group(4):
            raise fail(ErrorKind.UNCLOSED_BRACE)

        name = m.group(3)
        resolved = values.get(name)
        if resolved is None:
            resolved = host.get(name) or ""
        if not m.group(2) and m.group(4):
            resolved += "}"
        return resolved

    value = _VARIABLE_RE.sub(_replace, value)
    return _ESCAPED_DOLLAR_RE.sub("$", value)


def _closing_paren(value: str, start: int) -> int | None:
    """Return the index just past the ``)`` balancing the ``(`` at *start*.

    Every pair, nested ones included, must enclose at least one character.
    """
    depth = 0
    for i in range(start, len(value)):
        ch = value[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            if value[i - 1] == "(":
                return None
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def find_commands(value: str) -> Iterator[tuple[int, int, bool]]:
    """Yield ``(start, end, escaped)`` spans of balanced ``$(...)`` substitutions.

    An escaped span starts at its backslash.
    """
    pos = 0
    while True:
        pos = value.find("$(", pos)
        if pos < 0:
            return
        end = _closing_paren(value, pos + 1)
        if end is None:
            pos += 1
            continue
        escaped = pos > 0 and value[pos - 1] == "\\"
        yield (pos - 1 if escaped else pos), end, escaped
        pos = end


def _unescape_literal(text: str) -> str:
    return text.replace("\\$(", "$(")


def resolve_commands(
    value: str,
    values: Mapping[str, str],
    runner: CommandRunner,
    fail: Fail,
) -> str:
    """Replace each ``$(...)`` with the output of *runner*; ``\\$(...)`` stays literal."""
    if "$" not in value:
        return value

    parts: list[str] = []
    last = 0
    for start, end, escaped in find_commands(value):
        parts.append(_unescape_literal(value[last:start]))
        if escaped:
            parts.append(value[start + 1:end])
        else:
            try:
                parts.append(runner.run(value[start:end], values))
            except CommandError as e:
                raise fail(ErrorKind.COMMAND_EXPANSION_FAILED, e.stderr) from e
        last = end
    parts.append(_unescape_literal(value[last:]))
    return "".join(parts)
