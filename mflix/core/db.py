"""
MongoDB client and collection management.

Provides the process-wide async client, the configured database handle and
collection handles carrying the write concerns the repositories rely on.

The client owns the connection pool; this module only decides when it is
created and closed.
"""

import logging

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from mflix.core.config import settings

logger = logging.getLogger(__name__)

_client: AsyncMongoClient | None = None


def get_client() -> AsyncMongoClient:
    """
    Create and configure the async MongoDB client.

    The client is created lazily and reused for the life of the process.
    Connection health and pooling are handled by pymongo.

    Returns:
        Configured AsyncMongoClient
    """
    global _client

    if _client is not None:
        return _client

    url = settings.mongodb_uri
    if not url:
        raise RuntimeError("MONGODB_URI is required")

    _client = AsyncMongoClient(
        url,
        appname=settings.app_name,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        tz_aware=True,
    )
    logger.info(
        "MongoDB client created",
        extra={"database": settings.mongodb_database},
    )
    return _client


def get_database() -> AsyncDatabase:
    """Return the configured application database."""
    return get_client()[settings.mongodb_database]


def users_collection(db: AsyncDatabase) -> AsyncCollection:
    """Return the users collection with the configured write concern."""
    return db.get_collection(
        settings.mongodb_users_collection,
        write_concern=settings.users_write_concern,
    )


def sessions_collection(db: AsyncDatabase) -> AsyncCollection:
    """Return the sessions collection with the configured write concern."""
    return db.get_collection(
        settings.mongodb_sessions_collection,
        write_concern=settings.sessions_write_concern,
    )


async def ping() -> None:
    """
    Round-trip a ping command to the server.

    Raises:
        pymongo.errors.PyMongoError: If the server is unreachable
    """
    await get_client().admin.command("ping")


async def close_client() -> None:
    """Close the MongoDB client and forget it.

    Safe to call when no client was ever created. The next get_client()
    call creates a fresh one, which tests rely on.
    """
    global _client

    if _client is not None:
        await _client.close()
        logger.info("MongoDB client closed")
    _client = None
