"""CLI wrapper: Run linter."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(["-m", "ruff", "check", "modelrepo", "tests", "cli", "example_usage.py", *sys.argv[1:]])
