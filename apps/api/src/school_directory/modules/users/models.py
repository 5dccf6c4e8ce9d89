"""
User Models

Database model for registered accounts.
"""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_directory.modules.shared import BaseModel


class User(BaseModel):
    """
    Registered account.

    The password is stored only as a bcrypt hash. Accounts start unverified
    and become verified after a one-time code sent to the email is confirmed.
    Accounts are never deleted by the application.
    """

    __tablename__ = "users"

    # Authentication fields
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Profile fields
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Account status
    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, verified={self.email_verified})>"
