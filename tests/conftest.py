"""
Pytest configuration and shared fixtures.

Provides:
- Environment defaults so mflix.core.config.settings can load
- FakeCollection: an in-memory stand-in for pymongo's AsyncCollection
- Repository fixtures wired over fake collections

FakeCollection implements only the driver calls the repositories make. It
enforces unique indexes by raising pymongo's DuplicateKeyError and returns
real pymongo result objects, so repository code sees the same types it
sees against a server.
"""

from __future__ import annotations

import copy
import os
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing mflix
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DATABASE", "mflix_test")
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402 (import after env setup)
from bson import ObjectId  # noqa: E402
from pymongo.errors import DuplicateKeyError  # noqa: E402
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult  # noqa: E402

from mflix.repos.session_repo import SessionRepository  # noqa: E402
from mflix.repos.user_repo import UserRepository  # noqa: E402


class FakeCollection:
    """In-memory async collection supporting equality filters only."""

    def __init__(self, name: str, unique: tuple[str, ...] = (), acknowledged: bool = True):
        self.name = name
        self.unique = unique
        self.acknowledged = acknowledged
        self.documents: list[dict[str, Any]] = []
        self.created_indexes: list[Any] = []

    def _matches(self, document: dict[str, Any], flt: dict[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in flt.items())

    def _check_unique(self, candidate: dict[str, Any], skip: dict[str, Any] | None = None) -> None:
        for field in self.unique:
            if field not in candidate:
                continue
            for existing in self.documents:
                if existing is skip:
                    continue
                if existing.get(field) == candidate[field]:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {self.name} "
                        f"index: {field}_unique dup key: {{ {field}: {candidate[field]!r} }}",
                        code=11000,
                    )

    async def insert_one(self, document: dict[str, Any]) -> InsertOneResult:
        self._check_unique(document)
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        document["_id"] = stored["_id"]
        self.documents.append(stored)
        return InsertOneResult(stored["_id"], self.acknowledged)

    async def find_one(self, flt: dict[str, Any]) -> dict[str, Any] | None:
        for document in self.documents:
            if self._matches(document, flt):
                return copy.deepcopy(document)
        return None

    async def update_one(
        self, flt: dict[str, Any], update: dict[str, Any], upsert: bool = False
    ) -> UpdateResult:
        for document in self.documents:
            if self._matches(document, flt):
                changes = update.get("$set", {})
                self._check_unique({**document, **changes}, skip=document)
                document.update(copy.deepcopy(changes))
                return UpdateResult({"n": 1, "nModified": 1}, self.acknowledged)

        if not upsert:
            return UpdateResult({"n": 0, "nModified": 0}, self.acknowledged)

        document = {**flt, **update.get("$setOnInsert", {}), **update.get("$set", {})}
        result = await self.insert_one(document)
        return UpdateResult(
            {"n": 1, "nModified": 0, "upserted": result.inserted_id}, self.acknowledged
        )

    async def delete_one(self, flt: dict[str, Any]) -> DeleteResult:
        for index, document in enumerate(self.documents):
            if self._matches(document, flt):
                del self.documents[index]
                return DeleteResult({"n": 1}, self.acknowledged)
        return DeleteResult({"n": 0}, self.acknowledged)

    async def delete_many(self, flt: dict[str, Any]) -> DeleteResult:
        kept = [d for d in self.documents if not self._matches(d, flt)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return DeleteResult({"n": deleted}, self.acknowledged)

    async def create_indexes(self, indexes: list[Any]) -> list[str]:
        self.created_indexes.extend(indexes)
        return [index.document["name"] for index in indexes]


# This fixture ensures async tests run on asyncio with AnyIO's pytest plugin.
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def users_collection() -> FakeCollection:
    return FakeCollection("users", unique=("email",))


@pytest.fixture
def sessions_collection() -> FakeCollection:
    return FakeCollection("sessions", unique=("jwt",))


@pytest.fixture
def session_repo(sessions_collection: FakeCollection) -> SessionRepository:
    return SessionRepository(sessions_collection)


@pytest.fixture
def user_repo(users_collection: FakeCollection, session_repo: SessionRepository) -> UserRepository:
    return UserRepository(users_collection, session_repo)
