"""
Authentication Service Layer

Business logic for accounts, email verification, and sessions.
Orchestrates the credential store, the OTP ledger, and email notifications.

This module implements:
1. Registration Flow:
   - Validate name, email format, and password strength
   - Reject duplicate emails
   - Store the bcrypt-hashed password on an unverified account
   - Issue a 6-digit code (10 minute expiry) and email it
   - Email failure does not fail registration; the user can request a new code

2. Send OTP Flow:
   - Remove stale codes for the email
   - Issue and email a new code
   - Email failure is reported to the caller

3. Verification Flow:
   - Match the newest unexpired, unused code for the email
   - Consume the code and mark the account verified in one transaction
   - Best-effort cleanup of stale codes afterwards

4. Login Flow:
   - Generic error for unknown email or wrong password
   - Distinct error for unverified accounts so the client can route to verification
   - Issue a 7 day session token (set as a cookie by the router)

Security considerations:
- Codes are generated with the `secrets` CSPRNG
- Codes, passwords, and session tokens are never logged
- A dummy bcrypt comparison runs for unknown emails so response timing
  does not reveal whether an account exists
- Invalid, expired, and reused codes produce the same error
"""

import logging
import re
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.core.auth import SessionUser, create_session_token
from school_directory.core.config import settings
from school_directory.core.email import send_otp_email
from school_directory.core.errors import (
    ConflictError,
    DeliveryError,
    InvalidCredentialsError,
    InvalidOrExpiredError,
    ValidationError,
    VerificationRequiredError,
)
from school_directory.core.security import DUMMY_HASH, hash_password, verify_password
from school_directory.modules.auth import repository
from school_directory.modules.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    SendOTPRequest,
    SendOTPResponse,
    UserProfile,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from school_directory.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# Validation patterns (used with fullmatch; ASCII digits only)
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PASSWORD_PATTERN = re.compile(
    r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{6,}",
    re.ASCII,
)
OTP_PATTERN = re.compile(r"\d{6}", re.ASCII)

PASSWORD_REQUIREMENTS = (
    "Password must be at least 6 characters long and contain at least one uppercase letter, "
    "one lowercase letter, one number, and one special character (@$!%*?&)"
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def is_valid_email(email: str) -> bool:
    """Basic email shape check: something@something.tld, no whitespace."""
    return bool(EMAIL_PATTERN.fullmatch(email))


def is_strong_password(password: str) -> bool:
    """
    Check the password policy.

    At least 6 characters with a lowercase letter, an uppercase letter, a digit,
    and one of @$!%*?&. Only letters, digits, and those symbols are allowed.
    """
    return bool(PASSWORD_PATTERN.fullmatch(password))


def generate_otp() -> str:
    """Return a uniformly random 6-digit code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


def _calculate_otp_expiry(now: datetime | None = None) -> datetime:
    """Expiry for a code issued at `now` (default: current time)."""
    return (now or _utcnow()) + timedelta(minutes=settings.otp_expire_minutes)


def _otp_expires_in_seconds() -> int:
    return settings.otp_expire_minutes * 60


async def _issue_otp(db: AsyncSession, email: str) -> str:
    """Store a new code for the email and return it. Does not commit."""
    otp = generate_otp()
    await repository.create_code(
        db,
        email=email,
        otp_code=otp,
        expires_at=_calculate_otp_expiry(),
    )
    return otp


async def register_user(db: AsyncSession, data: RegisterRequest) -> RegisterResponse:
    """
    Register a new, unverified account and send a verification code.

    Args:
        db: Database session
        data: Registration request

    Returns:
        RegisterResponse; expires_in is only set when the email was sent

    Raises:
        ValidationError: Missing fields, weak password, or malformed email
        ConflictError: Email already registered
    """
    name = data.name.strip()
    email = data.email.strip()
    password = data.password

    missing = [
        field
        for field, value in (("name", name), ("email", email), ("password", password))
        if not value
    ]
    if missing:
        raise ValidationError("All fields are required", extra={"missingFields": missing})

    if not is_strong_password(password):
        raise ValidationError(PASSWORD_REQUIREMENTS)

    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    if await UserRepository.email_exists(db, email):
        logger.info(f"Registration rejected, email already registered: {email}")
        raise ConflictError("User with this email already exists", error_code="EMAIL_EXISTS")

    try:
        user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            name=name,
        )
    except IntegrityError as e:
        # Concurrent registration with the same email won the unique index
        await db.rollback()
        logger.info(f"Registration lost a race on unique email: {email}")
        raise ConflictError(
            "User with this email already exists", error_code="EMAIL_EXISTS"
        ) from e

    otp = await _issue_otp(db, email)
    await db.commit()
    logger.info(f"Registered user {user.id}, verification code issued")

    email_sent = await send_otp_email(to_email=email, otp=otp, name=name)

    if not email_sent:
        logger.error(f"Failed to send verification email after registering user {user.id}")
        return RegisterResponse(
            message=(
                "Registration successful, but verification email failed to send. "
                "Please request a new OTP."
            ),
            email=email,
        )

    return RegisterResponse(
        message="Registration successful. Please check your email for verification code.",
        email=email,
        expires_in=_otp_expires_in_seconds(),
    )


async def send_otp(db: AsyncSession, data: SendOTPRequest) -> SendOTPResponse:
    """
    Issue a fresh verification code for an email.

    Raises:
        ValidationError: Missing or malformed email
        DeliveryError: The email could not be sent
    """
    email = data.email.strip()
    name = data.name.strip() if data.name else None

    if not email:
        raise ValidationError("Email is required")

    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    deleted = await repository.delete_stale_codes(db, email, _utcnow())
    if deleted:
        logger.debug(f"Removed {deleted} stale codes for {email}")

    otp = await _issue_otp(db, email)
    await db.commit()

    email_sent = await send_otp_email(to_email=email, otp=otp, name=name)

    if not email_sent:
        logger.error(f"Failed to send verification code to {email}")
        raise DeliveryError()

    logger.info(f"Verification code sent to {email}")

    return SendOTPResponse(
        message="OTP sent successfully",
        email=email,
        expires_in=_otp_expires_in_seconds(),
    )


async def verify_otp(db: AsyncSession, data: VerifyOTPRequest) -> VerifyOTPResponse:
    """
    Verify an email address with a one-time code.

    Consuming the code and marking the account verified are committed together.
    A failure in either rolls both back.

    Raises:
        ValidationError: Missing email or code not 6 digits
        InvalidOrExpiredError: No unexpired, unused matching code
    """
    email = data.email.strip()
    otp = data.otp.strip()

    if not email or not otp:
        raise ValidationError("Email and OTP are required")

    if not OTP_PATTERN.fullmatch(otp):
        raise ValidationError("OTP must be a 6-digit number")

    now = _utcnow()
    code = await repository.find_valid_code(db, email, otp, now)

    if code is None:
        logger.warning(f"Invalid or expired verification code attempt for {email}")
        raise InvalidOrExpiredError()

    try:
        consumed = await repository.mark_code_used(db, code.id)
        if not consumed:
            # Another request consumed the code between lookup and update
            raise InvalidOrExpiredError()

        verified = await UserRepository.mark_email_verified(db, email)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    if verified:
        logger.info(f"Email verified: {email}")
    else:
        logger.warning(f"Verification code consumed for unregistered email: {email}")

    await _cleanup_stale_codes(db, email, now)

    return VerifyOTPResponse(message="Email verified successfully", verified=True)


async def _cleanup_stale_codes(db: AsyncSession, email: str, now: datetime) -> None:
    """Best-effort removal of expired or used codes. Failures are only logged."""
    try:
        await repository.delete_stale_codes(db, email, now)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Stale code cleanup failed for {email}: {e}")


async def login_user(db: AsyncSession, data: LoginRequest) -> tuple[UserProfile, str]:
    """
    Authenticate a user and issue a session token.

    Returns:
        Tuple of (public profile, signed session token)

    Raises:
        ValidationError: Missing email or password
        InvalidCredentialsError: Unknown email or wrong password
        VerificationRequiredError: Account exists but email is not verified
    """
    email = data.email.strip()
    password = data.password

    if not email or not password:
        raise ValidationError("Email and password are required")

    user = await UserRepository.get_by_email(db, email)

    if user is None:
        # Equalize timing with the wrong-password path
        verify_password(password, DUMMY_HASH)
        logger.warning(f"Login attempt for non-existent email: {email}")
        raise InvalidCredentialsError()

    if not user.email_verified:
        logger.info(f"Login attempt for unverified account: {user.id}")
        raise VerificationRequiredError(user.email)

    if not verify_password(password, user.password_hash):
        logger.warning(f"Invalid password for user: {user.id}")
        raise InvalidCredentialsError()

    token = create_session_token(user.id, user.email, user.name)
    logger.info(f"User logged in: {user.id}")

    return UserProfile(id=user.id, name=user.name, email=user.email), token


def get_profile(user: SessionUser) -> UserProfile:
    """Public profile from the session identity."""
    return UserProfile(id=user.id, name=user.name, email=user.email)
