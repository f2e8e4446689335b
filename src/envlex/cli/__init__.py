# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Envlex CLI -- parse, validate and cascade .env files.

The CLI is split into per-command modules under this package.  The ``cli``
click group and shared helpers (``console``, ``env_files_argument``,
``_read_values``, etc.) live here so every command module can import them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from envlex import __version__
from envlex.config import load_config
from envlex.env_file import parse_env_file
from envlex.errors import EnvlexError
from envlex.host import HostEnvironment, UnsupportedCommandRunner
from envlex.util import format_lines

try:
    import yaml
    HAS_YAML = True
except ImportError:
    HAS_YAML = False

console = Console(stderr=True)

OUTPUT_FORMATS = ("dotenv", "unix", "win", "json", "yaml")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _enable_debug_logging() -> None:
    logger = logging.getLogger("envlex")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_time=False, show_path=False))
    logger.setLevel(logging.DEBUG)


def _resolve_files(ctx: click.Context, files: tuple[str, ...]) -> list[str]:
    """Files given on the command line, else the configured env file."""
    if files:
        return list(files)
    return [ctx.obj["config"].resolve_env_file()]


def _read_values(ctx: click.Context, files: list[str]) -> dict[str, str]:
    """Parse *files* in order; later files see (and override) earlier values."""
    merged: dict[str, str] = {}
    for file in files:
        try:
            values = parse_env_file(
                file,
                host=HostEnvironment(generic=merged),
                runner=ctx.obj["runner"],
            )
        except EnvlexError as e:
            raise click.ClickException(str(e))
        merged.update(values)
    return merged


def _write_values(pairs: Mapping[str, str], fmt: str, output: str | None) -> None:
    """Render *pairs* in *fmt* to *output* (a file path) or stdout."""
    if fmt == "json":
        text = json.dumps(dict(pairs), indent=2) + "\n"
    elif fmt == "yaml":
        if not HAS_YAML:
            raise click.ClickException("PyYAML is not installed. Install with: pip install pyyaml")
        text = yaml.safe_dump(dict(pairs), default_flow_style=False, sort_keys=False)
    else:
        lines = format_lines(pairs, fmt)
        text = "".join(line + "\n" for line in lines)

    if output:
        Path(output).write_text(text)
        console.print(f"[green]Wrote {len(pairs)} variable(s) to {output}[/green]")
    else:
        click.echo(text, nl=False)


def format_option(f: object) -> object:
    """Add --format and --output to a command."""
    f = click.option(
        "--output", "-o",
        type=click.Path(dir_okay=False),
        default=None,
        help="Output file path (default: stdout).",
    )(f)
    return click.option(
        "--format", "fmt",
        type=click.Choice(OUTPUT_FORMATS),
        default="dotenv",
        help="Output format: dotenv (default, re-parseable KEY=\"value\"), unix (export KEY=value), win (PowerShell), json, yaml.",
    )(f)


def echo_error(message: str) -> None:
    console.print(message, markup=False, highlight=False, style="red", soft_wrap=True)


# ---------------------------------------------------------------------------
# Top-level click group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log what is loaded and expanded.")
@click.option(
    "--no-commands", is_flag=True,
    help="Reject $(...) command substitution instead of running it through the shell.",
)
@click.version_option(__version__, prog_name="envlex")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, no_commands: bool) -> None:
    """Parse shell-style .env files with quoting, expansion and command substitution."""
    if verbose:
        _enable_debug_logging()
    cfg = load_config()
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose
    ctx.obj["runner"] = (
        UnsupportedCommandRunner("Resolving commands is disabled.")
        if no_commands
        else cfg.make_runner()
    )


# ---------------------------------------------------------------------------
# Register all command modules (import triggers @cli.command registration)
# ---------------------------------------------------------------------------

from envlex.cli import (  # noqa: E402, F401
    parse_cmd,
    check_cmd,
    cascade_cmd,
)
