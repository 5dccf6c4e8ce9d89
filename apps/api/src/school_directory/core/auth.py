"""
Authentication Module

Session guard and session cookie helpers for FastAPI endpoints.

Sessions are stateless: a signed JWT stored in an HTTP-only cookie. A missing,
malformed, or expired cookie is treated as an anonymous request. Only endpoints
that depend on `get_current_user` reject anonymous callers.

SECURITY NOTE:
- The token never appears in a response body, only in the cookie
- Cookies are HttpOnly and SameSite=Lax
- The Secure flag is set when the request arrived over TLS, or always when
  SESSION_COOKIE_SECURE=true
- There is no server-side revocation; logout only clears the cookie
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Depends, Request, Response
from fastapi.security import APIKeyCookie

from school_directory.core.config import settings
from school_directory.core.errors import AuthenticationRequiredError
from school_directory.core.security import create_access_token, decode_token

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
session_cookie = APIKeyCookie(
    name=settings.session_cookie_name,
    auto_error=False,
    description="Session token cookie set by POST /auth/login",
)


@dataclass
class SessionUser:
    """
    Identity decoded from a valid session token.

    Attributes:
        id: User's numeric identifier
        email: User's email address
        name: User's display name
    """

    id: int
    email: str
    name: str

    def __str__(self) -> str:
        return f"SessionUser(id={self.id}, email={self.email})"


def create_session_token(user_id: int, email: str, name: str) -> str:
    """Sign a session token for a user."""
    return create_access_token(
        subject=str(user_id),
        additional_claims={"email": email, "name": name},
        expires_delta=timedelta(days=settings.session_expire_days),
    )


def decode_session(token: str | None) -> SessionUser | None:
    """
    Validate a session token and extract the identity.

    Args:
        token: Raw cookie value

    Returns:
        SessionUser, or None when the token is absent, invalid, or expired
    """
    if not token:
        return None

    payload = decode_token(token)
    if payload is None:
        return None

    try:
        return SessionUser(
            id=int(payload["sub"]),
            email=payload.get("email", ""),
            name=payload.get("name", ""),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Session token has invalid claims: {e}")
        return None


async def get_optional_user(
    token: str | None = Depends(session_cookie),
) -> SessionUser | None:
    """
    Optional authentication dependency.

    Returns the session user if a valid cookie is present, otherwise None.
    Never raises for a missing or invalid cookie.
    """
    return decode_session(token)


async def get_current_user(
    user: SessionUser | None = Depends(get_optional_user),
) -> SessionUser:
    """
    FastAPI dependency that requires an authenticated session.

    Usage:
        @router.post("/schools")
        async def create(user: SessionUser = Depends(get_current_user)):
            ...

    Raises:
        AuthenticationRequiredError: If there is no valid session (HTTP 401)
    """
    if user is None:
        raise AuthenticationRequiredError()

    logger.debug(f"Authenticated user: {user.id} ({user.email})")
    return user


def _is_secure_request(request: Request) -> bool:
    if settings.session_cookie_secure:
        return True
    forwarded_proto = request.headers.get("x-forwarded-proto", "")
    return request.url.scheme == "https" or forwarded_proto.split(",")[0].strip() == "https"


def set_session_cookie(response: Response, request: Request, token: str) -> None:
    """Attach the session cookie to a response."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_is_secure_request(request),
    )


def clear_session_cookie(response: Response, request: Request) -> None:
    """Expire the session cookie on the client."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_is_secure_request(request),
    )


__all__ = [
    "SessionUser",
    "create_session_token",
    "decode_session",
    "get_optional_user",
    "get_current_user",
    "set_session_cookie",
    "clear_session_cookie",
]
