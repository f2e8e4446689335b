# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Host collaborators used by the parser: environment lookups and command execution.

The parser never reads ``os.environ`` or spawns processes directly; it asks an
:class:`EnvironmentLookup` for variables it has not declared itself and hands
``$(...)`` substitutions to a :class:`CommandRunner`.  Both are replaceable so
embedders (a WSGI app, a test, a platform without a shell) can supply their own.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping
from typing import Protocol

from envlex.errors import CommandError

logger = logging.getLogger(__name__)

# Session keys with this prefix are request metadata (e.g. WSGI ``HTTP_*``
# headers) and are never used to expand variables.
RESERVED_PREFIX: str = "HTTP_"

DEFAULT_SHELL: str = "/bin/sh"


class EnvironmentLookup(Protocol):
    """Read-only source of variables for ``$NAME`` expansion."""

    def get(self, name: str) -> str | None: ...


class CommandRunner(Protocol):
    """Runs one ``$(...)`` substitution and returns its output.

    *env* is the mapping parsed so far; implementations raise
    :class:`~envlex.errors.CommandError` on failure.
    """

    def run(self, command: str, env: Mapping[str, str]) -> str: ...


class HostEnvironment:
    """Fallback variable lookup, in order: session, generic mapping, ``getenv``.

    *session* holds process/session variables that may be mixed with request
    metadata; keys starting with :data:`RESERVED_PREFIX` are skipped there.
    *generic* is any other mapping (e.g. values loaded from an earlier file).
    """

    def __init__(
        self,
        session: Mapping[str, str] | None = None,
        generic: Mapping[str, str] | None = None,
        getenv: Callable[[str], str | None] = os.getenv,
    ) -> None:
        self.session = session if session is not None else {}
        self.generic = generic if generic is not None else {}
        self._getenv = getenv

    def get(self, name: str) -> str | None:
        if not name.startswith(RESERVED_PREFIX) and name in self.session:
            return self.session[name]
        if name in self.generic:
            return self.generic[name]
        return self._getenv(name)


class ShellCommandRunner:
    """Expand a substitution by running ``echo $(...)`` through a POSIX shell.

    The child inherits the current process environment overlaid with the
    variables parsed so far.  Trailing line terminators are stripped from the
    output.
    """

    def __init__(self, shell: str = DEFAULT_SHELL) -> None:
        self.shell = shell

    def run(self, command: str, env: Mapping[str, str]) -> str:
        child_env = {**os.environ, **env}
        logger.debug("Expanding command %s", command)
        try:
            result = subprocess.run(
                [self.shell, "-c", f"echo {command}"],
                env=child_env,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise CommandError(e.stderr or "", e.returncode) from e
        except OSError as e:
            raise CommandError(str(e)) from e
        return result.stdout.rstrip("\r\n")


class UnsupportedCommandRunner:
    """Runner for hosts without a shell: every substitution fails."""

    def __init__(self, reason: str = "Resolving commands is not supported on this platform.") -> None:
        self.reason = reason

    def run(self, command: str, env: Mapping[str, str]) -> str:
        raise CommandError(self.reason)


def default_runner(enabled: bool = True, shell: str = DEFAULT_SHELL) -> CommandRunner:
    """Return the shell runner, or the unsupported stub on Windows or when disabled."""
    if not enabled:
        return UnsupportedCommandRunner("Resolving commands is disabled.")
    if os.name == "nt":
        return UnsupportedCommandRunner("Resolving commands is not supported on Windows.")
    return ShellCommandRunner(shell)
