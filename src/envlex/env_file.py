# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Parse .env data into an ordered dict of variable name to value.

Handles:
  - blank lines, ``#`` comments and trailing comments after whitespace
  - ``export KEY=VALUE`` prefix
  - single-quoted (literal), double-quoted (escapes) and unquoted values
  - concatenated segments such as ``'bar'"$FOO"``
  - ``$NAME`` / ``${NAME}`` expansion and ``$(...)`` command substitution

Parsing is all-or-nothing: the first syntax error raises
:class:`~envlex.errors.FormatError` and no partial result is returned.
"""

from __future__ import annotations

import enum
import logging
import re
from pathlib import Path

from envlex.errors import ErrorKind, FormatError, FormatErrorContext, PathError
from envlex.expand import VARNAME_PATTERN, resolve_commands, resolve_variables
from envlex.host import CommandRunner, EnvironmentLookup, HostEnvironment, default_runner

logger = logging.getLogger(__name__)

_VARNAME_RE = re.compile(rf"(export[ \t]+)?({VARNAME_PATTERN})")
_EMPTY_VALUE_RE = re.compile(r"[ \t]*(?:#.*)?$", re.MULTILINE)
_EMPTY_LINES_RE = re.compile(r"(?:\s+|#[^\n]*)*", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+", re.ASCII)
_ESCAPE_RE = re.compile(r'\\([\\"rn])')
_ESCAPES = {"\\": "\\", '"': '"', "r": "\r", "n": "\n"}

_BLANKS = (" ", "\t")
_QUOTES = ('"', "'")


class LexState(enum.Enum):
    AWAITING_NAME = 0
    AWAITING_VALUE = 1


class _Scanner:
    """Cursor over one normalized buffer plus the values parsed so far."""

    def __init__(
        self,
        data: str,
        path: str,
        host: EnvironmentLookup,
        runner: CommandRunner,
    ) -> None:
        self.data = data.replace("\r\n", "\n").replace("\r", "\n")
        self.path = path
        self.host = host
        self.runner = runner
        self.cursor = 0
        self.lineno = 1
        self.end = len(self.data)
        self.values: dict[str, str] = {}

    def peek(self, offset: int = 0) -> str:
        pos = self.cursor + offset
        return self.data[pos] if 0 <= pos < self.end else ""

    def move_cursor(self, text: str) -> None:
        self.cursor += len(text)
        self.lineno += text.count("\n")

    def error(self, kind: ErrorKind, reason: str | None = None) -> FormatError:
        context = FormatErrorContext(self.data, self.path, self.lineno, self.cursor)
        return FormatError(kind, context, reason)

    def skip_empty_lines(self) -> None:
        m = _EMPTY_LINES_RE.match(self.data, self.cursor)
        if m:
            self.move_cursor(m.group(0))

    # -- declarations --------------------------------------------------

    def lex_varname(self) -> str:
        m = _VARNAME_RE.match(self.data, self.cursor)
        if m is None:
            raise self.error(ErrorKind.INVALID_NAME)
        self.move_cursor(m.group(0))

        ch = self.peek()
        if ch in ("", "\n", "#"):
            if m.group(1):
                raise self.error(ErrorKind.UNSET_UNSUPPORTED)
            raise self.error(ErrorKind.MISSING_EQUALS)
        if ch in _BLANKS:
            raise self.error(ErrorKind.WHITESPACE_AFTER_NAME)
        if ch != "=":
            raise self.error(ErrorKind.MISSING_EQUALS)
        self.cursor += 1

        return m.group(2)

    # -- values --------------------------------------------------------

    def lex_value(self) -> str:
        m = _EMPTY_VALUE_RE.match(self.data, self.cursor)
        if m:
            self.move_cursor(m.group(0))
            self.skip_empty_lines()
            return ""

        if self.peek() in _BLANKS:
            raise self.error(ErrorKind.LEADING_WHITESPACE)

        value = ""
        while True:
            ch = self.peek()
            if ch == "'":
                value += self._lex_single_quoted()
            elif ch == '"':
                value += self._lex_double_quoted()
            else:
                value += self._lex_unquoted()
                if self.peek() == "#":
                    break
            if self.cursor >= self.end or self.peek() == "\n":
                break

        self.skip_empty_lines()
        return value

    def _lex_single_quoted(self) -> str:
        self.cursor += 1
        start = self.cursor
        while True:
            ch = self.peek()
            if ch in ("", "\n"):
                raise self.error(ErrorKind.UNTERMINATED_QUOTE)
            if ch == "'":
                break
            self.cursor += 1
        segment = self.data[start:self.cursor]
        self.cursor += 1
        return segment

    def _is_escaped(self) -> bool:
        """Whether the character under the cursor follows an odd run of backslashes."""
        count = 0
        while self.peek(-count - 1) == "\\":
            count += 1
        return count % 2 == 1

    def _lex_double_quoted(self) -> str:
        self.cursor += 1
        start = self.cursor
        while True:
            ch = self.peek()
            if ch in ("", "\n"):
                raise self.error(ErrorKind.UNTERMINATED_QUOTE)
            if ch == '"' and not self._is_escaped():
                break
            self.cursor += 1
        segment = self.data[start:self.cursor]
        self.cursor += 1

        segment = _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(1)], segment)
        return self._resolve(segment)

    def _lex_unquoted(self) -> str:
        chars: list[str] = []
        prev = self.peek(-1)
        while self.cursor < self.end:
            ch = self.peek()
            if ch == "\n" or ch in _QUOTES or (prev in _BLANKS and ch == "#"):
                break
            if ch == "\\" and self.peek(1) in _QUOTES:
                self.cursor += 1
                ch = self.peek()
            chars.append(ch)
            prev = ch
            if ch == "$" and self.peek(1) == "(":
                self.cursor += 1
                chars.append("(" + self.lex_nested_expression() + ")")
            self.cursor += 1

        segment = "".join(chars).rstrip(" \t\n\r\0\x0b")
        resolved = self._resolve(segment)
        if resolved == segment and _WHITESPACE_RE.search(segment):
            raise self.error(ErrorKind.UNQUOTED_SPACE_NOT_ALLOWED)
        return resolved

    def lex_nested_expression(self) -> str:
        """Capture the text after ``(`` up to its matching ``)``, which is left under the cursor."""
        self.cursor += 1
        chars: list[str] = []
        while True:
            ch = self.peek()
            if ch in ("", "\n"):
                raise self.error(ErrorKind.UNTERMINATED_PAREN)
            if ch == ")":
                break
            chars.append(ch)
            if ch == "(":
                chars.append(self.lex_nested_expression() + ")")
            self.cursor += 1
        return "".join(chars)

    def _resolve(self, segment: str) -> str:
        segment = resolve_variables(segment, self.values, self.host, self.error)
        return resolve_commands(segment, self.values, self.runner, self.error)

    # -- driver --------------------------------------------------------

    def parse(self) -> dict[str, str]:
        state = LexState.AWAITING_NAME
        name = ""

        self.skip_empty_lines()

        while self.cursor < self.end:
            if state is LexState.AWAITING_NAME:
                name = self.lex_varname()
                state = LexState.AWAITING_VALUE
            else:
                self.values[name] = self.lex_value()
                state = LexState.AWAITING_NAME

        if state is LexState.AWAITING_VALUE:
            self.values[name] = ""

        return self.values


def parse(
    data: str,
    path: str = ".env",
    *,
    host: EnvironmentLookup | None = None,
    runner: CommandRunner | None = None,
) -> dict[str, str]:
    """Parse the contents of a .env file.

    *path* only labels error messages.  Variables not declared earlier in
    *data* are looked up in *host* (default: the process environment);
    ``$(...)`` substitutions go to *runner* (default: ``/bin/sh``, or a
    failing stub on Windows).
    """
    scanner = _Scanner(
        data,
        path,
        host if host is not None else HostEnvironment(),
        runner if runner is not None else default_runner(),
    )
    return scanner.parse()


def read_env_file(path: str | Path) -> str:
    """Return the text of a .env file, or raise PathError if it cannot be read."""
    p = Path(path)
    if not p.is_file():
        raise PathError(str(path))
    try:
        return p.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise PathError(str(path)) from e


def parse_env_file(
    path: str | Path,
    *,
    host: EnvironmentLookup | None = None,
    runner: CommandRunner | None = None,
) -> dict[str, str]:
    """Read a .env file and return an ordered dict of key-value pairs."""
    logger.debug("Parsing %s", path)
    return parse(read_env_file(path), str(path), host=host, runner=runner)
