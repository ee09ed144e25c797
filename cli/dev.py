"""CLI wrapper: Start development server against the configured MongoDB."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "--factory",
            "mflix.main:create_app",
            "--reload",
            "--reload-dir",
            "mflix",
            "--port",
            "8000",
            *sys.argv[1:],
        ]
    )
