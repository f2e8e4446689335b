# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""``envlex parse`` -- print the variables defined by one or more .env files."""

from __future__ import annotations

import click

from envlex.cli import (
    _read_values,
    _resolve_files,
    _write_values,
    cli,
    format_option,
)


@cli.command("parse")
@click.argument("files", nargs=-1, type=click.Path(exists=False))
@format_option
@click.pass_context
def parse_files(ctx: click.Context, files: tuple[str, ...], fmt: str, output: str | None) -> None:
    """Parse .env FILES and print the resulting variables.

    Files are read in order and later files may reference (and override)
    variables from earlier ones. Default format is dotenv with every value
    double-quoted so the output parses back to the same variables. Use
    --format unix for shell sourcing: eval "$(envlex parse --format unix)".
    """
    pairs = _read_values(ctx, _resolve_files(ctx, files))
    _write_values(pairs, fmt, output)
