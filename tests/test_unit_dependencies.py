"""Tests for FastAPI repository dependencies."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mflix.core.dependencies import (
    SessionRepo,
    UserRepo,
    get_db,
    get_session_repository,
    get_user_repository,
)
from mflix.repos.session_repo import SessionRepository
from mflix.repos.user_repo import UserRepository


class TestRepositoryProviders:
    @pytest.mark.anyio
    async def test_get_db_returns_configured_database(self):
        with patch("mflix.core.dependencies.get_database") as mock_get_database:
            assert get_db() is mock_get_database.return_value

    @pytest.mark.anyio
    async def test_session_repository_uses_sessions_collection(self):
        db = MagicMock()

        repo = get_session_repository(db)

        assert isinstance(repo, SessionRepository)
        assert db.get_collection.call_args.args == ("sessions",)

    @pytest.mark.anyio
    async def test_user_repository_wired_to_sessions(self):
        db = MagicMock()
        sessions = SessionRepository(MagicMock())

        repo = get_user_repository(db, sessions)

        assert isinstance(repo, UserRepository)
        assert repo.sessions is sessions
        assert db.get_collection.call_args.args == ("users",)

    @pytest.mark.anyio
    async def test_injected_into_routes(self):
        app = FastAPI()

        @app.get("/wiring")
        async def wiring(users: UserRepo, sessions: SessionRepo):
            return {"shared": users.sessions is sessions}

        with patch("mflix.core.dependencies.get_database", return_value=MagicMock()):
            resp = TestClient(app).get("/wiring")

        assert resp.json() == {"shared": True}

