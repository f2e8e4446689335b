# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""``python -m envlex`` and the ``envlex`` console script."""

from __future__ import annotations

import sys
from collections.abc import Sequence


def main(argv: Sequence[str] | None = None) -> None:
    try:
        from envlex.cli import cli
    except ImportError as e:
        sys.stderr.write(f"envlex: the command line needs {e.name or 'click and rich'} (pip install envlex)\n")
        sys.exit(1)
    cli.main(args=list(argv) if argv is not None else None, prog_name="envlex")


if __name__ == "__main__":
    main()
