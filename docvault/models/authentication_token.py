"""
AuthenticationToken model for cookie-based sessions.

The primary key is the bearer value itself: an opaque random string handed
to the client in the session cookie. Rows are hard-deleted on logout,
revocation, expiry pruning and account deletion.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from docvault.core.security import generate_token_id
from docvault.core.timeutils import utc_now
from docvault.models.base import Base

IP_MAX_LENGTH = 45
USER_AGENT_MAX_LENGTH = 1000


class AuthenticationToken(Base):
    """
    Session credential bound to a user and client metadata.

    Attributes:
        id: Bearer value (URL-safe, 256 bits of randomness)
        user_id: Owner of the session
        long_lasted: "Remember me" session, exempt from short-lived pruning
        ip: Client IP at login (truncated to 45 characters)
        user_agent: Client user agent at login (truncated to 1000 characters)
        created_at: Login time
        last_connection_at: Last authenticated request with this token
    """

    __tablename__ = "authentication_tokens"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_token_id,
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    long_lasted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    ip: Mapped[Optional[str]] = mapped_column(String(IP_MAX_LENGTH), nullable=True)

    user_agent: Mapped[Optional[str]] = mapped_column(
        String(USER_AGENT_MAX_LENGTH),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    last_connection_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_authentication_tokens_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        # Never render the bearer value itself
        return (
            f"AuthenticationToken(user_id={self.user_id}, "
            f"long_lasted={self.long_lasted}, created_at={self.created_at})"
        )
