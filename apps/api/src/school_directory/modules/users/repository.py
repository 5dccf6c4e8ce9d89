"""
User Repository

Database operations for the credential store.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.modules.users.models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        name: str,
        email_verified: bool = False,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique)
            password_hash: Hashed password
            name: Display name
            email_verified: Whether email is verified

        Returns:
            Created User instance

        Raises:
            IntegrityError: If the email is already registered
        """
        user = User(
            email=email,
            password_hash=password_hash,
            name=name,
            email_verified=email_verified,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        """
        Get a user by ID.

        Returns:
            User instance or None if not found
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """
        Get a user by email address.

        Returns:
            User instance or None if not found
        """
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        """Check if an email address is already registered."""
        user = await UserRepository.get_by_email(db, email)
        return user is not None

    @staticmethod
    async def mark_email_verified(db: AsyncSession, email: str) -> bool:
        """
        Set email_verified for the account with this email.

        Returns:
            True if a row was updated
        """
        result = await db.execute(
            update(User).where(User.email == email).values(email_verified=True)
        )
        return result.rowcount > 0
