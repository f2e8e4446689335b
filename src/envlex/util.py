# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Shared utilities for writing parsed values back out."""

from __future__ import annotations

import re
from collections.abc import Mapping

_DOTENV_ESCAPES = {
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
}

# Characters a single-quoted segment cannot hold.
_NOT_SINGLE_QUOTABLE_RE = re.compile(r"['\n\r]+")


def _double_quoted(text: str) -> str:
    return '"' + "".join(_DOTENV_ESCAPES.get(c, c) for c in text) + '"'


def quote_value(value: str) -> str:
    """Return *value* as a quoted .env value that parses back unchanged.

    Values without ``$`` or backslashes are double-quoted.  Otherwise the
    value is written as single-quoted (literal) segments, with quotes and
    line terminators in double-quoted segments concatenated between them,
    so nothing is unescaped or expanded on re-read.
    """
    if "$" not in value and "\\" not in value:
        return _double_quoted(value)

    parts: list[str] = []
    pos = 0
    for m in _NOT_SINGLE_QUOTABLE_RE.finditer(value):
        if m.start() > pos:
            parts.append(f"'{value[pos:m.start()]}'")
        parts.append(_double_quoted(m.group(0)))
        pos = m.end()
    if pos < len(value):
        parts.append(f"'{value[pos:]}'")
    return "".join(parts)


def shell_escape(value: str) -> str:
    """Escape for Unix sh: single-quote wrapped, internal ' -> '\\''."""
    if not value or any(c in value for c in " \t\n'\"\\$`!#&|;(){}<>*?"):
        return "'" + value.replace("'", "'\\''") + "'"
    return value


def powershell_escape(value: str) -> str:
    """Escape for PowerShell single-quoted string: ' -> ''."""
    return value.replace("'", "''")


def format_lines(pairs: Mapping[str, str], fmt: str) -> list[str]:
    """Render *pairs* in declaration order as ``dotenv``, ``unix`` or ``win`` lines."""
    lines: list[str] = []
    for key, value in pairs.items():
        if fmt == "unix":
            lines.append(f"export {key}={shell_escape(value)}")
        elif fmt == "win":
            lines.append(f"$env:{key} = '{powershell_escape(value)}'")
        else:
            lines.append(f"{key}={quote_value(value)}")
    return lines


def dumps(pairs: Mapping[str, str]) -> str:
    """Serialize *pairs* as .env text that :func:`envlex.parse` reads back identically."""
    lines = format_lines(pairs, "dotenv")
    return "\n".join(lines) + "\n" if lines else ""
