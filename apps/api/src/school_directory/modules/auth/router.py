"""
Authentication Router

API endpoints for registration, email verification, and sessions.

Endpoints:
- POST /auth/register - Create an unverified account and email a code
- POST /auth/send-otp - Email a new verification code
- POST /auth/verify-otp - Verify an email with a code
- POST /auth/login - Start a session (sets the session cookie)
- POST /auth/logout - Clear the session cookie
- GET /auth/me - Current session's profile

Security:
- Rate limiting per client IP on register, send-otp, verify-otp, and login
- Session token only travels in an HTTP-only cookie
- Service errors are translated to JSON by the application error handlers
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.core.auth import (
    SessionUser,
    clear_session_cookie,
    get_current_user,
    set_session_cookie,
)
from school_directory.core.database import get_db
from school_directory.core.rate_limit import rate_limit
from school_directory.modules.auth import service
from school_directory.modules.auth.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    SendOTPRequest,
    SendOTPResponse,
    UserResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_EXAMPLE = {
    "application/json": {
        "example": {
            "detail": {
                "error": "VALIDATION_ERROR",
                "message": "Invalid email format",
            }
        }
    }
}


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
    description="""
Create a new account and send a 6-digit verification code by email.

The account cannot log in until the email is verified. If the email could
not be sent the account is still created; request a new code via
`/auth/send-otp`.

**Password policy:** at least 6 characters with an uppercase letter, a
lowercase letter, a number, and one of `@$!%*?&`.
""",
    responses={
        400: {"description": "Missing fields, weak password, or invalid email", "content": _ERROR_EXAMPLE},
        409: {"description": "Email already registered"},
        429: {"description": "Too many requests"},
    },
)
@rate_limit()
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    return await service.register_user(db, data)


@router.post(
    "/send-otp",
    response_model=SendOTPResponse,
    summary="Send Verification Code",
    description="Issue a new verification code for an email. Expired and used codes are removed.",
    responses={
        400: {"description": "Invalid email", "content": _ERROR_EXAMPLE},
        429: {"description": "Too many requests"},
        500: {"description": "Verification email could not be sent"},
    },
)
@rate_limit()
async def send_otp(
    request: Request,
    data: SendOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> SendOTPResponse:
    return await service.send_otp(db, data)


@router.post(
    "/verify-otp",
    response_model=VerifyOTPResponse,
    summary="Verify Email",
    description="""
Verify an email address with a code sent by `/auth/register` or `/auth/send-otp`.

A code works once, and only within 10 minutes of being issued. Wrong,
expired, and already-used codes return the same error.
""",
    responses={
        400: {"description": "Malformed, invalid, or expired code", "content": _ERROR_EXAMPLE},
        429: {"description": "Too many requests"},
    },
)
@rate_limit()
async def verify_otp(
    request: Request,
    data: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> VerifyOTPResponse:
    return await service.verify_otp(db, data)


@router.post(
    "/login",
    response_model=UserResponse,
    summary="Log In",
    description="""
Authenticate with email and password.

On success the session token is set in an HTTP-only cookie valid for 7 days.
The token is never returned in the body.

An account whose email is not verified gets a 403 with
`requiresVerification: true` and the email, so the client can send it to
the verification step.
""",
    responses={
        400: {"description": "Missing email or password"},
        401: {"description": "Invalid email or password"},
        403: {
            "description": "Email not verified",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "EMAIL_NOT_VERIFIED",
                            "message": "Email not verified",
                            "requiresVerification": True,
                            "email": "user@example.com",
                        }
                    }
                }
            },
        },
        429: {"description": "Too many requests"},
    },
)
@rate_limit()
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    profile, token = await service.login_user(db, credentials)
    set_session_cookie(response, request, token)
    return UserResponse(user=profile)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log Out",
    description="Clear the session cookie. Tokens are stateless and are not revoked server-side.",
)
async def logout(request: Request, response: Response) -> MessageResponse:
    clear_session_cookie(response, request)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current User",
    description="Profile of the user owning the session cookie.",
    responses={401: {"description": "Not authenticated"}},
)
async def me(user: SessionUser = Depends(get_current_user)) -> UserResponse:
    return UserResponse(user=service.get_profile(user))
