# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exceptions raised while reading .env data.

Every syntax problem is a :class:`FormatError` tagged with an :class:`ErrorKind`
and a frozen :class:`FormatErrorContext` snapshot of where the lexer stopped.
The rendered message points at the offending character::

    A value containing spaces must be surrounded by quotes in ".env" at line 1.
    ...FOO=BAR BAZ...
                 ^ line 1 offset 11
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Characters of source shown on each side of the cursor in a diagnostic.
CONTEXT_WIDTH: int = 20


class ErrorKind(str, Enum):
    """Categories of .env syntax errors."""

    INVALID_NAME = "invalid_name"
    UNSET_UNSUPPORTED = "unset_unsupported"
    MISSING_EQUALS = "missing_equals"
    WHITESPACE_AFTER_NAME = "whitespace_after_name"
    LEADING_WHITESPACE = "leading_whitespace"
    UNTERMINATED_QUOTE = "unterminated_quote"
    UNTERMINATED_PAREN = "unterminated_paren"
    UNCLOSED_BRACE = "unclosed_brace"
    UNQUOTED_SPACE_NOT_ALLOWED = "unquoted_space_not_allowed"
    COMMAND_EXPANSION_FAILED = "command_expansion_failed"


MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_NAME: "Invalid character in variable name",
    ErrorKind.UNSET_UNSUPPORTED: "Unable to unset an environment variable",
    ErrorKind.MISSING_EQUALS: "Missing = in the environment variable declaration",
    ErrorKind.WHITESPACE_AFTER_NAME: "Whitespace are not supported after the variable name",
    ErrorKind.LEADING_WHITESPACE: "Whitespace are not supported before the value",
    ErrorKind.UNTERMINATED_QUOTE: "Missing quote to end the value",
    ErrorKind.UNTERMINATED_PAREN: "Missing closing parenthesis.",
    ErrorKind.UNCLOSED_BRACE: "Unclosed braces on variable expansion",
    ErrorKind.UNQUOTED_SPACE_NOT_ALLOWED: "A value containing spaces must be surrounded by quotes",
    ErrorKind.COMMAND_EXPANSION_FAILED: "Issue expanding a command",
}


class EnvlexError(Exception):
    """Base class for all envlex errors."""


@dataclass(frozen=True)
class FormatErrorContext:
    """Where a parse stopped: the whole buffer, its label, line and offset."""

    data: str
    path: str
    lineno: int
    cursor: int

    def details(self) -> str:
        """Return the two-line snippet with a caret under the cursor."""
        start = max(0, self.cursor - CONTEXT_WIDTH)
        before = self.data[start:self.cursor].replace("\n", "\\n")
        after = self.data[self.cursor:self.cursor + CONTEXT_WIDTH].replace("\n", "\\n")
        caret = " " * (len(before) + 2)
        return f"...{before}{after}...\n{caret}^ line {self.lineno} offset {self.cursor}"


class FormatError(EnvlexError, ValueError):
    """A .env buffer could not be parsed."""

    def __init__(self, kind: ErrorKind, context: FormatErrorContext, reason: str | None = None) -> None:
        self.kind = kind
        self.context = context
        message = MESSAGES[kind]
        if reason is not None:
            message = f"{message} ({reason})"
        self.reason = message
        super().__init__(
            f'{message} in "{context.path}" at line {context.lineno}.\n{context.details()}'
        )

    @property
    def path(self) -> str:
        return self.context.path

    @property
    def lineno(self) -> int:
        return self.context.lineno

    @property
    def cursor(self) -> int:
        return self.context.cursor


class PathError(EnvlexError, OSError):
    """A .env path is missing, unreadable, or a directory."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f'Unable to read the "{path}" environment file.')


class CommandError(EnvlexError):
    """A ``$(...)`` substitution could not be run.

    Raised by :class:`envlex.host.CommandRunner` implementations; the lexer turns
    it into a :class:`FormatError` of kind ``COMMAND_EXPANSION_FAILED``.
    """

    def __init__(self, stderr: str, returncode: int | None = None) -> None:
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(stderr)
