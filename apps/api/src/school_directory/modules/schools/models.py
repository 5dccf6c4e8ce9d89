"""
School Models

Database model for directory entries.
"""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_directory.modules.shared import BaseModel


class School(BaseModel):
    """
    School directory entry.

    Listed and viewed publicly. Only the owning user (created_by) may update
    or delete it. Legacy rows may have no owner and are then immutable
    through the API.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    address: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    city: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    state: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Contact information
    contact: Mapped[str] = mapped_column(
        String(15),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # URL or path returned by the upload endpoint
    image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Owner
    # ON DELETE SET NULL: If the user is deleted, the school remains without an owner
    created_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    def is_owned_by(self, user_id: int) -> bool:
        """Whether `user_id` may mutate this record. Ownerless rows belong to nobody."""
        return self.created_by is not None and self.created_by == user_id

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name}, city={self.city})>"
