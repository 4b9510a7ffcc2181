"""
Reusable mixins for database models.

This module provides mixins for common model patterns:
- TimestampMixin: created_at and updated_at timestamps
- SoftDeleteMixin: soft delete with deleted_at timestamp
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from docvault.core.timeutils import utc_now


class TimestampMixin:
    """
    Mixin to add timestamp columns to models.

    Adds:
    - created_at: Timestamp when record was created (auto-set)
    - updated_at: Timestamp when record was last updated (auto-updated)

    Both timestamps use UTC timezone.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


class SoftDeleteMixin:
    """
    Mixin to add soft delete functionality to models.

    Adds:
    - deleted_at: Timestamp when record was soft-deleted (NULL if not deleted)

    Soft deleted records remain in the database but are filtered out from
    queries by default.

    Querying with soft deletes:
        # Get only active records (deleted_at IS NULL)
        active_users = select(User).where(User.deleted_at.is_(None))

    Important: unique constraints on soft-deletable models are partial
    unique indexes scoped to ``deleted_at IS NULL``.
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
    )
