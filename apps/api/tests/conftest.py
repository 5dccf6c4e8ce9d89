"""
Shared test fixtures.

Environment overrides are applied before the application package is
imported so that settings pick them up.
"""

import os

os.environ.setdefault("PYTHON_ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RESEND_API_KEY", "")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-characters-long")

from collections.abc import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from school_directory.core.auth import SessionUser, create_session_token  # noqa: E402
from school_directory.core.database import get_db  # noqa: E402
from school_directory.main import create_app  # noqa: E402


def _session_cookie_header(user: SessionUser) -> dict[str, str]:
    token = create_session_token(user.id, user.email, user.name)
    return {"Cookie": f"auth-token={token}"}


@pytest.fixture
def session_user() -> SessionUser:
    """The logged-in user in API tests."""
    return SessionUser(id=1, email="owner@example.com", name="Owner User")


@pytest.fixture
def other_user() -> SessionUser:
    """A second user who owns nothing."""
    return SessionUser(id=2, email="other@example.com", name="Other User")


@pytest.fixture
def auth_headers(session_user) -> dict[str, str]:
    """Cookie header carrying a valid session for session_user."""
    return _session_cookie_header(session_user)


@pytest.fixture
def other_auth_headers(other_user) -> dict[str, str]:
    """Cookie header carrying a valid session for other_user."""
    return _session_cookie_header(other_user)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def app(mock_db) -> FastAPI:
    """Application with the database dependency replaced by mock_db."""
    application = create_app()

    async def override_get_db():
        yield mock_db

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the test application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
