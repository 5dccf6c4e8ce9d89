"""
Authentication Models

One-time verification codes sent by email.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from school_directory.core.database import Base


class OTPCode(Base):
    """
    One-time email verification code.

    Several codes may exist for one email (resends); only the newest valid
    one matters. A code matches only while unexpired and unused.
    """

    __tablename__ = "otp_codes"
    __table_args__ = (
        Index("ix_otp_codes_email_otp_code", "email", "otp_code"),
        Index("ix_otp_codes_expires_at", "expires_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    otp_code: Mapped[str] = mapped_column(
        String(6),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    used: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<OTPCode(id={self.id}, email={self.email}, used={self.used})>"
