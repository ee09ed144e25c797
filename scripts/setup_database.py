#!/usr/bin/env python3
"""
MFlix Database Setup

Prepares the configured MongoDB database for the data access layer.

Usage:
    # Create the indexes the repositories rely on
    uv run python scripts/setup_database.py init

    # Check connectivity and list indexes
    uv run python scripts/setup_database.py verify

Environment Variables:
    MONGODB_URI        - Connection string
    MONGODB_DATABASE   - Database name (default: sample_mflix)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pymongo.errors import PyMongoError

# Add project root to path for imports
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from mflix.core.config import settings  # noqa: E402
from mflix.core.db import (  # noqa: E402
    close_client,
    get_database,
    ping,
    sessions_collection,
    users_collection,
)
from mflix.db.indexes import ensure_indexes  # noqa: E402


# ANSI colors for terminal output
class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    END = "\033[0m"


def log_info(msg: str) -> None:
    print(f"{Colors.BLUE}[INFO]{Colors.END} {msg}")


def log_success(msg: str) -> None:
    print(f"{Colors.GREEN}[OK]{Colors.END} {msg}")


def log_error(msg: str) -> None:
    print(f"{Colors.RED}[ERROR]{Colors.END} {msg}")


async def init() -> None:
    log_info(f"Ensuring indexes on database '{settings.mongodb_database}'")
    created = await ensure_indexes(get_database())
    for collection, names in created.items():
        log_success(f"{collection}: {', '.join(names)}")


async def verify() -> None:
    await ping()
    log_success("MongoDB reachable")

    db = get_database()
    for collection in (users_collection(db), sessions_collection(db)):
        info = await collection.index_information()
        log_info(f"{collection.name}: {', '.join(sorted(info))}")


async def _main(command: str) -> int:
    try:
        if command == "init":
            await init()
        else:
            await verify()
    except PyMongoError as e:
        log_error(str(e))
        return 1
    finally:
        await close_client()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="MFlix database setup")
    parser.add_argument("command", choices=["init", "verify"])
    args = parser.parse_args()
    sys.exit(asyncio.run(_main(args.command)))


if __name__ == "__main__":
    main()
