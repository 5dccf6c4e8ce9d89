"""
Unit tests for the session guard and session cookie helpers.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import Response

from school_directory.core.auth import (
    SessionUser,
    clear_session_cookie,
    create_session_token,
    decode_session,
    get_current_user,
    get_optional_user,
    set_session_cookie,
)
from school_directory.core.config import settings
from school_directory.core.errors import AuthenticationRequiredError
from school_directory.core.security import create_access_token


def _request(scheme: str = "http", forwarded_proto: str | None = None) -> MagicMock:
    request = MagicMock()
    request.url.scheme = scheme
    request.headers = {"x-forwarded-proto": forwarded_proto} if forwarded_proto else {}
    return request


class TestDecodeSession:
    """Tests for decode_session."""

    def test_valid_token_returns_identity(self):
        token = create_session_token(7, "user@example.com", "User Seven")
        user = decode_session(token)

        assert user == SessionUser(id=7, email="user@example.com", name="User Seven")

    def test_missing_token_is_anonymous(self):
        assert decode_session(None) is None
        assert decode_session("") is None

    def test_expired_token_is_anonymous(self):
        token = create_access_token(
            "7",
            additional_claims={"email": "user@example.com", "name": "User"},
            expires_delta=timedelta(seconds=-5),
        )
        assert decode_session(token) is None

    def test_non_numeric_subject_is_anonymous(self):
        token = create_access_token("not-a-number", additional_claims={"email": "x@y.z"})
        assert decode_session(token) is None

    def test_garbage_token_is_anonymous(self):
        assert decode_session("garbage") is None


class TestSessionDependencies:
    """Tests for get_optional_user and get_current_user."""

    @pytest.mark.asyncio
    async def test_optional_user_never_raises_for_bad_cookie(self):
        assert await get_optional_user("bad-token") is None

    @pytest.mark.asyncio
    async def test_optional_user_returns_identity(self):
        token = create_session_token(3, "c@example.com", "Cee")
        user = await get_optional_user(token)
        assert user.id == 3

    @pytest.mark.asyncio
    async def test_current_user_rejects_anonymous(self):
        with pytest.raises(AuthenticationRequiredError) as exc_info:
            await get_current_user(None)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_current_user_passes_identity_through(self):
        user = SessionUser(id=1, email="a@example.com", name="A")
        assert await get_current_user(user) is user


class TestSessionCookie:
    """Tests for the cookie attributes."""

    def test_cookie_attributes_over_http(self):
        response = Response()
        set_session_cookie(response, _request("http"), "token-value")
        cookie = response.headers["set-cookie"]

        assert cookie.startswith(f"{settings.session_cookie_name}=token-value")
        assert "HttpOnly" in cookie
        assert "Max-Age=604800" in cookie
        assert "Path=/" in cookie
        assert "samesite=lax" in cookie.lower()
        assert "Secure" not in cookie

    def test_cookie_is_secure_over_https(self):
        response = Response()
        set_session_cookie(response, _request("https"), "token-value")
        assert "Secure" in response.headers["set-cookie"]

    def test_cookie_is_secure_behind_tls_proxy(self):
        response = Response()
        set_session_cookie(response, _request("http", forwarded_proto="https"), "token-value")
        assert "Secure" in response.headers["set-cookie"]

    def test_cookie_secure_can_be_forced(self, monkeypatch):
        monkeypatch.setattr(settings, "session_cookie_secure", True)
        response = Response()
        set_session_cookie(response, _request("http"), "token-value")
        assert "Secure" in response.headers["set-cookie"]

    def test_clear_cookie_expires_it(self):
        response = Response()
        clear_session_cookie(response, _request("http"))
        cookie = response.headers["set-cookie"]

        assert cookie.startswith(f"{settings.session_cookie_name}=")
        assert "Max-Age=0" in cookie
