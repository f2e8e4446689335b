# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

""".envlex.toml configuration loading.

Searches upward from cwd for ``.envlex.toml`` and merges with CLI flags.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from envlex.host import DEFAULT_SHELL, CommandRunner, default_runner

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import-not-found]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

CONFIG_FILENAME: str = ".envlex.toml"


@dataclass
class CommandsConfig:
    """``[envlex.commands]``: how ``$(...)`` substitutions run."""

    enabled: bool = True
    shell: str = DEFAULT_SHELL


@dataclass
class EnvlexConfig:
    """Resolved configuration for the current invocation."""

    env_file: str = ".env"
    app_env_var: str = "APP_ENV"
    default_env: str = "dev"
    test_envs: list[str] = field(default_factory=lambda: ["test"])
    tracking_var: str = "DOTENV_VARS"
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    config_path: Path | None = None

    def resolve_env_file(self, path: str | None = None) -> str:
        """Explicit path, then ``ENVLEX_ENV_FILE``, then the configured file."""
        return path or os.environ.get("ENVLEX_ENV_FILE") or self.env_file

    def resolve_app_env_var(self, var_name: str | None = None) -> str:
        """Explicit name, then ``ENVLEX_APP_ENV_VAR``, then the configured name."""
        return var_name or os.environ.get("ENVLEX_APP_ENV_VAR") or self.app_env_var

    def make_runner(self) -> CommandRunner:
        return default_runner(enabled=self.commands.enabled, shell=self.commands.shell)


def find_config_file(start: Path | None = None) -> Path | None:
    """Walk upward from *start* (default cwd) looking for ``.envlex.toml``."""
    cur = (start or Path.cwd()).resolve()
    while True:
        candidate = cur / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if cur.parent == cur:
            return None
        cur = cur.parent


def load_config(path: Path | None = None) -> EnvlexConfig:
    """Load and return config.  Returns defaults if no file found."""
    if path is None:
        path = find_config_file()
    if path is None:
        return EnvlexConfig()

    raw: dict[str, Any] = tomllib.loads(path.read_text())
    section = raw.get("envlex", {})
    commands = section.get("commands", {})

    return EnvlexConfig(
        env_file=section.get("env_file", ".env"),
        app_env_var=section.get("app_env_var", "APP_ENV"),
        default_env=section.get("default_env", "dev"),
        test_envs=list(section.get("test_envs", ["test"])),
        tracking_var=section.get("tracking_var", "DOTENV_VARS"),
        commands=CommandsConfig(
            enabled=commands.get("enabled", True),
            shell=commands.get("shell", DEFAULT_SHELL),
        ),
        config_path=path,
    )
