"""
OutboxEvent repository.

Rows are added inside the transaction of the triggering write and read back
by the dispatcher, which owns every state change after that.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.timeutils import utc_now
from docvault.models import OutboxEvent


class OutboxEventRepository:
    """Repository for OutboxEvent model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, event_type: str, payload: dict[str, Any]) -> OutboxEvent:
        """Queue an event in the current transaction."""
        row = OutboxEvent(event_type=event_type, payload=payload)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_pending_ids(self, limit: int, max_attempts: int) -> list[str]:
        """
        Get the ids of undelivered events still worth retrying, oldest first.

        Rows being delivered by another dispatcher are skipped on PostgreSQL.
        The ids are only candidates: delivery claims each row again with
        ``get_pending``.
        """
        query = (
            select(OutboxEvent.id)
            .where(
                OutboxEvent.dispatched_at.is_(None),
                OutboxEvent.attempts < max_attempts,
            )
            .order_by(OutboxEvent.created_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_pending(self, event_id: str) -> OutboxEvent | None:
        """
        Lock an event for delivery if it has not been delivered yet.

        The row stays locked until the session ends its transaction. On
        PostgreSQL a row already locked by another dispatcher yields None.
        """
        query = (
            select(OutboxEvent)
            .where(
                OutboxEvent.id == event_id,
                OutboxEvent.dispatched_at.is_(None),
            )
            .with_for_update(skip_locked=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_type(self, event_type: str) -> list[OutboxEvent]:
        """Get every event of a type, oldest first."""
        query = (
            select(OutboxEvent)
            .where(OutboxEvent.event_type == event_type)
            .order_by(OutboxEvent.created_at.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_dispatched(self, row: OutboxEvent) -> None:
        row.dispatched_at = utc_now()
        row.last_error = None
        await self.session.flush()

    async def mark_failed(self, row: OutboxEvent, error: str) -> None:
        row.attempts += 1
        row.last_error = error[:2000]
        await self.session.flush()
