"""
Group and UserGroup models.

Groups are named, optionally nested, and used to share documents and to
assign route model steps. Membership is a plain junction row.
"""

from typing import Optional

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base
from docvault.models.mixins import SoftDeleteMixin, TimestampMixin


class Group(Base, TimestampMixin, SoftDeleteMixin):
    """
    Named group of users.

    Attributes:
        name: Group name, unique among non-deleted groups
        parent_id: Optional parent group
        role_id: Optional role granted to members
    """

    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    parent_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("groups.id"),
        nullable=True,
    )

    role_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("roles.id"),
        nullable=True,
    )

    __table_args__ = (
        Index(
            "uq_groups_name_active",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )


class UserGroup(Base):
    """Membership of one user in one group."""

    __tablename__ = "user_groups"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_user_groups_pair"),
    )
