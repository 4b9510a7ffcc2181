"""
PasswordRecovery model.

A recovery key is valid for a limited window after creation and is
consumed (soft-deleted) on reset or superseded by a newer request.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from docvault.core.security import generate_recovery_key
from docvault.core.timeutils import utc_now
from docvault.models.base import Base


class PasswordRecovery(Base):
    """
    One-time password reset key.

    Attributes:
        id: The key sent to the user
        username: Account the key resets
        created_at: When the key was issued
        deleted_at: When the key was consumed or superseded
    """

    __tablename__ = "password_recoveries"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_recovery_key,
    )

    username: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"PasswordRecovery(username={self.username}, created_at={self.created_at})"
