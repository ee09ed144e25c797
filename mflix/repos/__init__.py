"""
Repository layer for data access operations.

Repositories are constructed with injected collection handles. Request
handlers get them from the FastAPI dependencies in mflix.core.dependencies,
which take the collections from mflix.core.db so the configured write
concerns apply.
"""

from mflix.repos.session_repo import SessionRepository
from mflix.repos.user_repo import UserRepository

__all__ = [
    "SessionRepository",
    "UserRepository",
]
