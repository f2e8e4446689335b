# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""``envlex check`` -- validate .env files."""

from __future__ import annotations

import click

from envlex.cli import _resolve_files, cli, console, echo_error
from envlex.env_file import parse_env_file
from envlex.errors import EnvlexError


@cli.command("check")
@click.argument("files", nargs=-1, type=click.Path(exists=False))
@click.pass_context
def check(ctx: click.Context, files: tuple[str, ...]) -> None:
    """Report whether each .env FILE parses. Exits 1 if any does not."""
    failed = 0
    for file in _resolve_files(ctx, files):
        try:
            values = parse_env_file(file, runner=ctx.obj["runner"])
        except EnvlexError as e:
            failed += 1
            console.print(f"[red]FAIL[/red] {file}")
            echo_error(str(e))
            continue
        console.print(f"[green]OK[/green] {file} ({len(values)} variable(s))")

    if failed:
        ctx.exit(1)
