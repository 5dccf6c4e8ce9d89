"""
OTP Repository

Database operations for one-time verification codes.

Design Principles:
- All queries are parameterized (no SQL injection)
- Single responsibility - only database operations, no business logic
- Timezone-aware datetime handling (UTC); callers pass `now`
- No commits here; the caller owns the transaction
"""

from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import OTPCode


async def create_code(
    db: AsyncSession,
    *,
    email: str,
    otp_code: str,
    expires_at: datetime,
) -> OTPCode:
    """Insert a new unused code."""

    code = OTPCode(
        email=email,
        otp_code=otp_code,
        expires_at=expires_at,
        used=False,
    )

    db.add(code)
    await db.flush()

    return code


async def find_valid_code(
    db: AsyncSession,
    email: str,
    otp_code: str,
    now: datetime,
) -> OTPCode | None:
    """
    Get the newest code matching email and code that is unexpired and unused.
    """

    result = await db.execute(
        select(OTPCode)
        .where(
            OTPCode.email == email,
            OTPCode.otp_code == otp_code,
            OTPCode.expires_at > now,
            OTPCode.used.is_(False),
        )
        .order_by(OTPCode.created_at.desc(), OTPCode.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def mark_code_used(db: AsyncSession, code_id: int) -> bool:
    """
    Consume a code. Only an unused code can be consumed.

    Returns:
        True if the code was unused and is now marked used
    """

    result = await db.execute(
        update(OTPCode)
        .where(OTPCode.id == code_id, OTPCode.used.is_(False))
        .values(used=True)
    )
    return result.rowcount > 0


async def delete_stale_codes(db: AsyncSession, email: str, now: datetime) -> int:
    """Delete expired or used codes for one email. Returns rows deleted."""

    result = await db.execute(
        delete(OTPCode).where(
            OTPCode.email == email,
            or_(OTPCode.expires_at < now, OTPCode.used.is_(True)),
        )
    )
    return result.rowcount or 0


async def purge_stale_codes(db: AsyncSession, now: datetime) -> int:
    """Delete expired or used codes for every email. Returns rows deleted."""

    result = await db.execute(
        delete(OTPCode).where(or_(OTPCode.expires_at < now, OTPCode.used.is_(True)))
    )
    return result.rowcount or 0
