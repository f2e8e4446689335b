# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Envlex -- parse shell-style .env files with quoting, expansion and command substitution."""

from envlex.env_file import parse, parse_env_file
from envlex.errors import CommandError, EnvlexError, ErrorKind, FormatError, PathError
from envlex.sdk import dotenv_values, load_dotenv, load_env, overload, populate
from envlex.util import dumps

__all__ = [
    "__version__",
    "parse",
    "parse_env_file",
    "dumps",
    "load_dotenv",
    "load_env",
    "overload",
    "populate",
    "dotenv_values",
    "EnvlexError",
    "ErrorKind",
    "FormatError",
    "PathError",
    "CommandError",
]
__version__ = "0.1.0"
