"""
Shared CLI runner helper.

The project's dev commands (`modelrepo-test`, `modelrepo-lint`, ...) are thin
wrappers that run a tool with the current interpreter and propagate its exit
code.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence


def run(cmd: Sequence[str]) -> None:
    """
    Run a command and exit with its return code.

    Example:
        >>> run(["-m", "pytest", "-q"])
    """
    result = subprocess.run([sys.executable, *cmd])
    raise SystemExit(result.returncode)
