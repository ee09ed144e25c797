"""
Shared CLI runner helper.

Runs a command and exits with its return code so `uv run <script>` reports
the wrapped tool's status.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence


def run(cmd: Sequence[str]) -> None:
    """
    Run `cmd` and exit with its return code.

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"])
    """
    result = subprocess.run(cmd, check=False)
    raise SystemExit(result.returncode)
