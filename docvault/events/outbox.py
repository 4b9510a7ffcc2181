"""
Transactional outbox.

Enqueuing writes an ``outbox_events`` row through the caller's session, so
the event is committed or rolled back together with the write that caused
it. Nothing is delivered until the dispatcher picks the row up after commit.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.events.events import DomainEvent
from docvault.models import OutboxEvent
from docvault.repositories.outbox_repository import OutboxEventRepository

logger = logging.getLogger(__name__)


class EventOutbox:
    """Queue of side-effect events bound to one transaction."""

    def __init__(self, session: AsyncSession):
        self.repo = OutboxEventRepository(session)

    async def enqueue(self, event: DomainEvent) -> OutboxEvent:
        """
        Add an event to the outbox.

        Example:
            await outbox.enqueue(FileDeletedEvent(file_id=f.id, user_id=actor, size=f.size))
        """
        row = await self.repo.add(event.event_type(), event.model_dump(mode="json"))
        logger.debug(f"Enqueued {row.event_type} ({row.id})")
        return row
