# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""``envlex cascade`` -- show what the .env / .env.local / .env.<env> cascade sets."""

from __future__ import annotations

import os

import click

from envlex.cli import _write_values, cli, console, format_option
from envlex.errors import EnvlexError
from envlex.sdk import load_env


@cli.command("cascade")
@click.argument("path", required=False, type=click.Path(exists=False))
@click.option("--app-env-var", default=None, help="Variable naming the app environment (default: APP_ENV).")
@click.option("--default-env", default=None, help="App environment when the variable is unset (default: dev).")
@format_option
@click.pass_context
def cascade(
    ctx: click.Context,
    path: str | None,
    app_env_var: str | None,
    default_env: str | None,
    fmt: str,
    output: str | None,
) -> None:
    """Print the variables the PATH cascade would set in the current environment.

    Loads PATH (or PATH.dist), PATH.local (except for test environments),
    PATH.<env> and PATH.<env>.local against a copy of the environment; the
    real environment is not modified. Variables already set are kept, as
    load_env would keep them.
    """
    cfg = ctx.obj["config"]
    environ = dict(os.environ)
    before = dict(environ)
    try:
        app_env = load_env(
            path,
            var_name=app_env_var,
            default_env=default_env,
            environ=environ,
            runner=ctx.obj["runner"],
        )
    except EnvlexError as e:
        raise click.ClickException(str(e))

    changed = {
        k: v for k, v in environ.items()
        if before.get(k) != v and k != cfg.tracking_var
    }
    console.print(f"[cyan]App environment: {app_env}[/cyan]")
    _write_values(changed, fmt, output)
