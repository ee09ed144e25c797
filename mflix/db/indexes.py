"""
Index definitions for the users and sessions collections.

The unique indexes are what make the uniqueness invariants hold: the
repositories translate the resulting duplicate-key errors, they never check
for existence first.
"""

import logging

from pymongo import ASCENDING, IndexModel
from pymongo.asynchronous.database import AsyncDatabase

from mflix.core.db import sessions_collection, users_collection

logger = logging.getLogger(__name__)

USER_INDEXES = [
    IndexModel([("email", ASCENDING)], name="email_unique", unique=True),
]

SESSION_INDEXES = [
    IndexModel([("jwt", ASCENDING)], name="jwt_unique", unique=True),
    IndexModel([("user_id", ASCENDING)], name="user_id"),
]


async def ensure_indexes(db: AsyncDatabase) -> dict[str, list[str]]:
    """
    Create the indexes the repositories depend on.

    createIndexes is a no-op for an index that already exists with the same
    keys and options, so this is safe to run on every startup.

    Args:
        db: Target database

    Returns:
        Mapping of collection name to the index names created or confirmed
    """
    users = users_collection(db)
    sessions = sessions_collection(db)

    created = {
        users.name: await users.create_indexes(USER_INDEXES),
        sessions.name: await sessions.create_indexes(SESSION_INDEXES),
    }
    logger.info("Indexes ensured", extra={"indexes": created})
    return created
