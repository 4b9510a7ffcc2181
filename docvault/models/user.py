"""
User, Role and RoleBaseFunction models.

This module defines:
- User: identity, credential, quota and two-factor state
- Role: named set of capabilities referenced by users
- RoleBaseFunction: junction between roles and BaseFunction capabilities

Architecture:
- Every user references exactly one role
- A role grants zero or more BaseFunction capabilities
- Two reserved identities are seeded: "admin" (ADMIN role) and "guest"
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base
from docvault.models.enums import BaseFunction
from docvault.models.mixins import SoftDeleteMixin, TimestampMixin

# Reserved identities and roles
ADMIN_USER_ID = "admin"
GUEST_USER_ID = "guest"
ADMIN_ROLE_ID = "admin"
USER_ROLE_ID = "user"


# =============================================================================
# Role Models
# =============================================================================


class Role(Base):
    """
    Role referenced by users.

    Attributes:
        id: Role identifier ("admin", "user", ...)
        name: Display name
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(36), nullable=False)


class RoleBaseFunction(Base):
    """Grants one BaseFunction to one role."""

    __tablename__ = "role_base_functions"

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    base_function: Mapped[BaseFunction] = mapped_column(
        Enum(BaseFunction, name="base_function_enum", native_enum=False, length=20),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("role_id", "base_function", name="uq_role_base_functions_pair"),
    )


# =============================================================================
# User Model
# =============================================================================


class User(Base, TimestampMixin, SoftDeleteMixin):
    """
    User model for authentication and profile management.

    Attributes:
        id: Primary key ("admin" and "guest" for the reserved identities)
        username: Username, unique among non-deleted users
        email: Contact address used for password recovery
        password_hash: Argon2id hashed password
        default_password: Whether the password is the default administrator password
        role_id: Role granting the user's capabilities
        storage_quota: Maximum bytes of file storage
        storage_current: Bytes of file storage in use
        totp_key: Base32 TOTP secret; when set every login needs a code
        disabled_at: When the account was disabled (NULL if enabled)
        onboarding: Whether the onboarding tour is still pending

    Soft Delete:
        Deleted users have deleted_at set. They cannot login and are
        excluded from normal queries. Their username becomes available again.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    email: Mapped[str] = mapped_column(String(100), nullable=False)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    default_password: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id"),
        nullable=False,
    )

    storage_quota: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    storage_current: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    totp_key: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    disabled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    onboarding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        # One active user per username; deleted rows keep their username
        Index(
            "uq_users_username_active",
            "username",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    @property
    def is_disabled(self) -> bool:
        return self.disabled_at is not None

    @property
    def is_guest(self) -> bool:
        return self.id == GUEST_USER_ID

    @property
    def totp_enabled(self) -> bool:
        return self.totp_key is not None

    def __repr__(self) -> str:
        """String representation of User."""
        return f"User(id={self.id}, username={self.username})"
