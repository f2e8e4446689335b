# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SDK for loading .env files into the environment (python-dotenv style)."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path

from envlex.config import load_config
from envlex.env_file import parse_env_file
from envlex.host import RESERVED_PREFIX, CommandRunner, HostEnvironment

logger = logging.getLogger(__name__)


def _resolve_runner(runner: CommandRunner | None) -> CommandRunner:
    if runner is not None:
        return runner
    return load_config().make_runner()


def dotenv_values(
    path: str | Path | None = None,
    runner: CommandRunner | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the variables of one .env file without modifying os.environ.

    References to variables not declared in the file resolve against *environ*
    (default: the process environment).  Raises
    :class:`~envlex.errors.PathError` if the file cannot be read and
    :class:`~envlex.errors.FormatError` on a syntax error.
    """
    if path is None:
        path = load_config().resolve_env_file()
    host = HostEnvironment(generic=environ) if environ is not None else HostEnvironment()
    return parse_env_file(path, host=host, runner=_resolve_runner(runner))


def populate(
    values: Mapping[str, str],
    override: bool = False,
    environ: MutableMapping[str, str] | None = None,
    session: MutableMapping[str, str] | None = None,
    tracking_var: str | None = None,
) -> int:
    """Set *values* as environment variables and return how many were written.

    An existing variable is kept unless *override* is true or it was set by an
    earlier populate: the names of loaded variables are kept, comma-separated,
    in *tracking_var* (default from config, ``DOTENV_VARS``).

    *session* is an optional second mapping (e.g. a WSGI environ) updated
    alongside *environ*; names starting with ``HTTP_`` are never written to it.
    """
    if environ is None:
        environ = os.environ
    if tracking_var is None:
        tracking_var = load_config().tracking_var

    tracked = environ.get(tracking_var)
    if tracked is None and session is not None:
        tracked = session.get(tracking_var)
    loaded = dict.fromkeys(name for name in (tracked or "").split(",") if name)
    update_loaded = False
    count = 0

    for name, value in values.items():
        not_reserved = not name.startswith(RESERVED_PREFIX)
        exists = name in environ or (
            session is not None and not_reserved and name in session
        )
        if name not in loaded and not override and exists:
            logger.debug("Keeping existing %s", name)
            continue

        environ[name] = value
        if session is not None and not_reserved:
            session[name] = value
        count += 1

        if name not in loaded:
            loaded[name] = None
            update_loaded = True

    if update_loaded:
        tracked = ",".join(loaded)
        environ[tracking_var] = tracked
        if session is not None:
            session[tracking_var] = tracked

    return count


def load_dotenv(
    *paths: str | Path,
    override: bool = False,
    environ: MutableMapping[str, str] | None = None,
    runner: CommandRunner | None = None,
) -> bool:
    """Load one or several .env files into os.environ.

    Files are loaded in order; each is parsed then populated, so a later file
    can reference variables set by an earlier one.

    Parameters
    ----------
    *paths : str or Path
        Files to load. Defaults to the configured env file (``.env``).
    override : bool, default False
        If True, overwrite existing variables. If False, only set variables that
        are not already set or that an earlier load set.
    environ : MutableMapping, optional
        Target mapping instead of ``os.environ``.
    runner : CommandRunner, optional
        Executes ``$(...)`` substitutions. Defaults from config.

    Returns
    -------
    bool
        True if at least one variable was set, False otherwise.

    Raises
    ------
    PathError
        When a file does not exist, is a directory, or cannot be read.
    FormatError
        When a file has a syntax error.

    Examples
    --------
    >>> from envlex import load_dotenv
    >>> load_dotenv()  # .env in the current directory
    True
    >>> load_dotenv(".env", ".env.local", override=True)
    True
    """
    if environ is None:
        environ = os.environ
    cfg = load_config()
    if not paths:
        paths = (cfg.resolve_env_file(),)
    runner = runner if runner is not None else cfg.make_runner()

    count = 0
    for path in paths:
        logger.debug("Loading %s", path)
        values = parse_env_file(path, host=HostEnvironment(generic=environ), runner=runner)
        count += populate(values, override=override, environ=environ, tracking_var=cfg.tracking_var)
    return count > 0


def overload(
    *paths: str | Path,
    environ: MutableMapping[str, str] | None = None,
    runner: CommandRunner | None = None,
) -> bool:
    """Load .env files, overriding existing variables."""
    return load_dotenv(*paths, override=True, environ=environ, runner=runner)


def load_env(
    path: str | Path | None = None,
    var_name: str | None = None,
    default_env: str | None = None,
    test_envs: Iterable[str] | None = None,
    environ: MutableMapping[str, str] | None = None,
    runner: CommandRunner | None = None,
) -> str:
    """Load a .env file and its per-environment siblings.

    Loads, in order and when they exist: ``path`` (or ``path.dist`` when
    ``path`` is missing), ``path.local``, ``path.<env>`` and
    ``path.<env>.local``.  ``path.local`` is skipped for test environments so
    tests produce the same results for everyone.

    Parameters
    ----------
    path : str or Path, optional
        Base file. Defaults from ENVLEX_ENV_FILE or config, else ``.env``.
    var_name : str, optional
        Variable holding the app environment name. Defaults from
        ENVLEX_APP_ENV_VAR or config, else ``APP_ENV``.
    default_env : str, optional
        App environment used (and populated) when *var_name* is unset.
        Defaults from config, else ``dev``.
    test_envs : iterable of str, optional
        App environments for which ``path.local`` is ignored. Defaults from
        config, else ``("test",)``.
    environ : MutableMapping, optional
        Target mapping instead of ``os.environ``.
    runner : CommandRunner, optional
        Executes ``$(...)`` substitutions. Defaults from config.

    Returns
    -------
    str
        The resolved app environment name.
    """
    if environ is None:
        environ = os.environ
    cfg = load_config()
    base = str(cfg.resolve_env_file(str(path) if path is not None else None))
    var_name = cfg.resolve_app_env_var(var_name)
    default_env = default_env or cfg.default_env
    test_envs = list(cfg.test_envs if test_envs is None else test_envs)
    runner = runner if runner is not None else cfg.make_runner()

    def _load(p: str) -> None:
        load_dotenv(p, environ=environ, runner=runner)

    dist = f"{base}.dist"
    if Path(base).exists() or not Path(dist).exists():
        _load(base)
    else:
        _load(dist)

    env = environ.get(var_name)
    if env is None:
        env = default_env
        populate({var_name: env}, environ=environ, tracking_var=cfg.tracking_var)

    local = f"{base}.local"
    if env not in test_envs and Path(local).exists():
        _load(local)
        env = environ.get(var_name, env)

    for candidate in (f"{base}.{env}", f"{base}.{env}.local"):
        if Path(candidate).exists():
            _load(candidate)

    return env
