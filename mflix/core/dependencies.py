"""
FastAPI dependency injection utilities.

Provides the repositories to request handlers. The repositories hold
collection handles from the process-wide client in mflix.core.db; nothing
here keeps per-request state.

Usage:
    @router.get("/users/{email}")
    async def read_user(email: str, users: UserRepo):
        return await users.get_user(email)
"""

from typing import Annotated

from fastapi import Depends
from pymongo.asynchronous.database import AsyncDatabase

from mflix.core.db import get_database, sessions_collection, users_collection
from mflix.repos.session_repo import SessionRepository
from mflix.repos.user_repo import UserRepository


def get_db() -> AsyncDatabase:
    """Database handle dependency."""
    return get_database()


Database = Annotated[AsyncDatabase, Depends(get_db)]


def get_session_repository(db: Database) -> SessionRepository:
    """Session repository dependency."""
    return SessionRepository(sessions_collection(db))


SessionRepo = Annotated[SessionRepository, Depends(get_session_repository)]


def get_user_repository(db: Database, sessions: SessionRepo) -> UserRepository:
    """User repository dependency, wired to the request's session repository."""
    return UserRepository(users_collection(db), sessions)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
