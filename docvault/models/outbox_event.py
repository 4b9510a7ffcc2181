"""
OutboxEvent model.

Side-effect events are written to this table in the same transaction as the
write that caused them, then delivered by the background dispatcher once the
transaction has committed. Delivery is at-least-once.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docvault.core.timeutils import utc_now
from docvault.models.base import Base


class OutboxEvent(Base):
    """
    Pending or delivered side-effect event.

    Attributes:
        event_type: Name of the event class (e.g. "FileDeletedEvent")
        payload: Serialized event fields
        created_at: When the event was enqueued
        dispatched_at: When every handler succeeded (NULL while pending)
        attempts: Number of failed delivery attempts
        last_error: Error of the last failed attempt
    """

    __tablename__ = "outbox_events"

    event_type: Mapped[str] = mapped_column(String(100), nullable=False)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    dispatched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_outbox_events_pending", "dispatched_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"OutboxEvent(id={self.id}, event_type={self.event_type}, "
            f"attempts={self.attempts}, dispatched_at={self.dispatched_at})"
        )
