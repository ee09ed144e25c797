"""
Database setup commands.

These commands wrap scripts/setup_database.py.

Usage:
    uv run db-init      # Create indexes
    uv run db-verify    # Check connectivity and list indexes
"""

from __future__ import annotations

import sys
from pathlib import Path

from cli._runner import run

_SETUP_DB_SCRIPT = Path(__file__).parent.parent / "scripts" / "setup_database.py"


def db_init() -> None:
    """Create the indexes the repositories rely on."""
    run([sys.executable, str(_SETUP_DB_SCRIPT), "init"])


def db_verify() -> None:
    """Check MongoDB connectivity and list indexes."""
    run([sys.executable, str(_SETUP_DB_SCRIPT), "verify"])
