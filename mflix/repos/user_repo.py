"""
Repository layer for user accounts.

Owns the users collection. Email is the user identifier: it is unique
(enforced by the `email_unique` index) and it is the `user_id` sessions are
keyed by.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError

from mflix.core.errors import (
    CascadeDeleteError,
    DuplicateKeyError,
    InvalidInputError,
    OperationError,
)
from mflix.core.observability import db_metrics
from mflix.db.models import User
from mflix.repos.session_repo import SessionRepository

logger = logging.getLogger(__name__)


class UserRepository:
    """Create, look up, update and delete user accounts."""

    def __init__(self, collection: AsyncCollection, sessions: SessionRepository):
        self.collection = collection
        self.sessions = sessions

    async def add_user(self, user: User) -> bool:
        """
        Insert a new user.

        Args:
            user: User to insert; `password` must already be hashed

        Returns:
            True if the insert was acknowledged

        Raises:
            DuplicateKeyError: If a user with the same email exists
            OperationError: If the insert fails for any other reason
        """
        try:
            with db_metrics.track(self.collection.name, "insert_one"):
                result = await self.collection.insert_one(user.to_document())
        except MongoDuplicateKeyError as e:
            logger.warning(f"User already exists: {user.email}")
            raise DuplicateKeyError(
                f"User with email '{user.email}' already exists",
                details={"email": user.email},
            ) from e
        except PyMongoError as e:
            logger.error(f"Failed to insert user {user.email}: {e}")
            raise OperationError("Error inserting user", details={"email": user.email}) from e

        logger.info(f"Created user: {user.email}")
        return result.acknowledged

    async def get_user(self, email: str) -> User | None:
        """
        Return the user with exactly this email, or None.

        Raises:
            OperationError: If the lookup fails or the stored document does not
                decode as a User
        """
        try:
            with db_metrics.track(self.collection.name, "find_one"):
                document = await self.collection.find_one({"email": email})
        except PyMongoError as e:
            raise OperationError("Error reading user", details={"email": email}) from e

        if document is None:
            logger.debug(f"User not found: {email}")
            return None

        try:
            return User.from_document(document)
        except ValidationError as e:
            logger.error(f"Stored user {email} does not match the model: {e}")
            raise OperationError("Error decoding user", details={"email": email}) from e

    async def update_user_preferences(
        self, email: str, preferences: Mapping[str, Any] | None
    ) -> bool:
        """
        Merge `preferences` into the user's stored preferences.

        Existing keys are overwritten, other stored keys are kept and the
        full merged map is written back. Values are stored as strings.

        Args:
            email: User to update
            preferences: Keys and values to merge; must not be empty

        Returns:
            True if the update was acknowledged, False if no user matched

        Raises:
            InvalidInputError: If preferences is None or empty
            OperationError: If the read or the write fails
        """
        if not preferences:
            raise InvalidInputError(
                "Preferences must not be empty", details={"email": email}
            )

        user = await self.get_user(email)
        if user is None:
            logger.warning(f"Cannot update preferences, user not found: {email}")
            return False

        merged = dict(user.preferences or {})
        merged.update({key: str(value) for key, value in preferences.items()})

        try:
            with db_metrics.track(self.collection.name, "update_one"):
                result = await self.collection.update_one(
                    {"email": email}, {"$set": {"preferences": merged}}
                )
        except PyMongoError as e:
            logger.error(f"Failed to update preferences for {email}: {e}")
            raise OperationError(
                "Error updating user preferences", details={"email": email}
            ) from e

        logger.info(f"Updated preferences for {email}", extra={"keys": sorted(preferences)})
        return result.acknowledged

    async def delete_user(self, email: str) -> bool:
        """
        Delete the user and then all of their sessions.

        Not transactional. The session delete runs even when the user delete
        fails or matches nothing, and a failure in either step is raised
        rather than swallowed.

        Returns:
            True if both deletes were acknowledged

        Raises:
            CascadeDeleteError: If either delete fails; `details` says which
                steps were acknowledged
        """
        user_deleted = False
        user_error: PyMongoError | None = None
        try:
            with db_metrics.track(self.collection.name, "delete_one"):
                result = await self.collection.delete_one({"email": email})
            user_deleted = result.acknowledged
        except PyMongoError as e:
            logger.error(f"Failed to delete user {email}: {e}")
            user_error = e

        try:
            sessions_deleted = await self.sessions.delete_user_sessions(email)
        except OperationError as e:
            details = {"email": email, "user_deleted": user_deleted, "sessions_deleted": False}
            if user_error is not None:
                # Only the session error can be chained; keep the user one here
                details["user_error"] = str(user_error)
            raise CascadeDeleteError("Error deleting user sessions", details=details) from e

        if user_error is not None:
            raise CascadeDeleteError(
                "Error deleting user",
                details={
                    "email": email,
                    "user_deleted": False,
                    "sessions_deleted": sessions_deleted,
                    "user_error": str(user_error),
                },
            ) from user_error

        logger.info(f"Deleted user: {email}")
        return user_deleted and sessions_deleted
