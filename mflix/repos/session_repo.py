"""
Repository layer for login sessions.

Owns the sessions collection. A session binds a bearer token (`jwt`) to a
user identifier; the token is stored, never verified here.
"""

import logging

from pydantic import ValidationError
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError

from mflix.core.errors import OperationError
from mflix.core.observability import db_metrics
from mflix.db.models import Session

logger = logging.getLogger(__name__)


class SessionRepository:
    """Create, look up and delete session records."""

    def __init__(self, collection: AsyncCollection):
        self.collection = collection

    async def create_user_session(self, user_id: str, jwt: str) -> bool:
        """
        Create a session for `jwt` unless one already exists.

        The insert is a single upsert keyed on the token, so concurrent calls
        with the same token cannot both insert. If two upserts still race past
        each other, the unique index on `jwt` rejects the loser and that
        counts as the session already existing.

        Args:
            user_id: User identifier the session belongs to
            jwt: Bearer token

        Returns:
            True if the write was acknowledged or the session already existed

        Raises:
            OperationError: If the write fails for any other reason
        """
        try:
            with db_metrics.track(self.collection.name, "update_one"):
                result = await self.collection.update_one(
                    {"jwt": jwt},
                    {"$setOnInsert": {"user_id": user_id}},
                    upsert=True,
                )
        except MongoDuplicateKeyError:
            logger.debug("Session already exists for token", extra={"user_id": user_id})
            return True
        except PyMongoError as e:
            logger.error(f"Failed to create session for user {user_id}: {e}")
            raise OperationError(
                "Error creating user session", details={"user_id": user_id}
            ) from e

        if not result.acknowledged:
            return False
        if result.upserted_id is None:
            logger.debug("Session already exists for token", extra={"user_id": user_id})
        else:
            logger.info("Session created", extra={"user_id": user_id})
        return True

    async def get_user_session(self, user_id: str) -> Session | None:
        """
        Return the first session for `user_id`.

        Returns:
            The Session, or None when there is none or it carries no token

        Raises:
            OperationError: If the lookup fails or the stored document does not
                decode as a Session
        """
        try:
            with db_metrics.track(self.collection.name, "find_one"):
                document = await self.collection.find_one({"user_id": user_id})
        except PyMongoError as e:
            raise OperationError(
                "Error reading user session", details={"user_id": user_id}
            ) from e

        if document is None:
            return None

        try:
            session = Session.from_document(document)
        except ValidationError as e:
            logger.error(f"Stored session for user {user_id} does not match the model: {e}")
            raise OperationError(
                "Error decoding user session", details={"user_id": user_id}
            ) from e

        if not session.jwt:
            logger.warning("Session without token", extra={"user_id": user_id})
            return None
        return session

    async def delete_user_sessions(self, user_id: str) -> bool:
        """
        Delete every session belonging to `user_id`.

        Returns:
            True if the delete was acknowledged, whether or not anything
            matched
        """
        try:
            with db_metrics.track(self.collection.name, "delete_many"):
                result = await self.collection.delete_many({"user_id": user_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete sessions for user {user_id}: {e}")
            raise OperationError(
                "Error deleting user sessions", details={"user_id": user_id}
            ) from e

        if result.acknowledged:
            logger.info(
                "Sessions deleted",
                extra={"user_id": user_id, "deleted_count": result.deleted_count},
            )
        return result.acknowledged
