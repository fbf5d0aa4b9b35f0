"""CLI wrapper: Format code."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(["-m", "ruff", "format", "modelrepo", "tests", "cli", "example_usage.py", *sys.argv[1:]])
