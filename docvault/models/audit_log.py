"""
AuditLog model for the account audit trail.

Every mutation performed through the credential store is recorded with the
acting user id. Audit logs are write-once: they are never updated or deleted
by the application.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docvault.core.timeutils import utc_now
from docvault.models.base import Base
from docvault.models.enums import AuditAction, AuditStatus


class AuditLog(Base):
    """
    AuditLog model for tracking account actions.

    Attributes:
        id: Primary key
        user_id: User who performed the action (NULL for system actions)
        action: Type of action performed (enum)
        entity_type: Type of entity affected (e.g., "user")
        entity_id: Id of the affected entity
        old_values: Snapshot of values before the action
        new_values: Snapshot of values after the action
        description: Human-readable description of the action
        ip_address: IP address of the client
        user_agent: User agent string of the client
        request_id: Correlation ID for tracing requests
        status: Status of the action (SUCCESS, FAILURE)
        created_at: When the action occurred

    Example:
        audit_log = AuditLog(
            user_id=actor_id,
            action=AuditAction.UPDATE,
            entity_type="user",
            entity_id=target.id,
            old_values={"email": "old@example.com"},
            new_values={"email": "new@example.com"},
            description="User updated",
        )
    """

    __tablename__ = "audit_logs"

    # Plain column: audit rows outlive the users they mention
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, name="audit_action_enum", native_enum=False, length=30),
        nullable=False,
        index=True,
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    old_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    new_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)

    user_agent: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    request_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    status: Mapped[AuditStatus] = mapped_column(
        Enum(AuditStatus, name="audit_status_enum", native_enum=False, length=10),
        nullable=False,
        default=AuditStatus.SUCCESS,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation of AuditLog."""
        return (
            f"AuditLog(id={self.id}, user_id={self.user_id}, action={self.action}, "
            f"entity_type={self.entity_type}, entity_id={self.entity_id})"
        )
