"""
Background delivery of outbox events.

The dispatcher runs as an asyncio task started by the application lifespan.
Each poll reads a batch of undelivered events and delivers them one by one,
each in its own session: the row is locked, handlers run, then the row is
marked dispatched and committed. Rows locked by another dispatcher process
are left to it. A failing handler rolls its work back; the row then records the
attempt and error and is retried on a later poll, up to
``outbox_max_attempts``.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.core.config import settings
from docvault.events.events import load_event
from docvault.events.handlers import EventHandler
from docvault.repositories.outbox_repository import OutboxEventRepository

logger = logging.getLogger(__name__)


class OutboxDispatcher:
    """
    Polls the outbox and runs the registered handlers.

    Usage:
        dispatcher = OutboxDispatcher(sessionmaker, build_default_handlers())
        dispatcher.start()
        ...
        await dispatcher.stop()
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        handlers: dict[str, list[EventHandler]],
        poll_interval: float | None = None,
        batch_size: int | None = None,
        max_attempts: int | None = None,
    ):
        self.sessionmaker = sessionmaker
        self.handlers = handlers
        self.poll_interval = poll_interval or settings.outbox_poll_interval_seconds
        self.batch_size = batch_size or settings.outbox_batch_size
        self.max_attempts = max_attempts or settings.outbox_max_attempts
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling in a background task."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="outbox-dispatcher")
        logger.info(
            f"Outbox dispatcher started: interval={self.poll_interval}s "
            f"batch={self.batch_size} max_attempts={self.max_attempts}"
        )

    async def stop(self) -> None:
        """Stop polling and wait for the current batch to finish."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Outbox dispatcher stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.error("Outbox poll failed", exc_info=True)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def run_once(self) -> int:
        """
        Deliver one batch of pending events.

        Returns:
            Number of events delivered successfully
        """
        async with self.sessionmaker() as session:
            event_ids = await OutboxEventRepository(session).get_pending_ids(
                self.batch_size, self.max_attempts
            )
            await session.commit()

        delivered = 0
        for event_id in event_ids:
            if await self._deliver(event_id):
                delivered += 1
        return delivered

    async def _deliver(self, event_id: str) -> bool:
        async with self.sessionmaker() as session:
            repo = OutboxEventRepository(session)
            row = await repo.get_pending(event_id)
            if row is None:
                return False

            try:
                event = load_event(row.event_type, row.payload)
                for handler in self.handlers.get(row.event_type, []):
                    await handler(event, session)
                await repo.mark_dispatched(row)
                await session.commit()
                logger.debug(f"Delivered {row.event_type} ({event_id})")
                return True
            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                await session.rollback()
                logger.warning(f"Delivery of outbox event {event_id} failed: {e}", exc_info=True)

        async with self.sessionmaker() as session:
            repo = OutboxEventRepository(session)
            row = await repo.get_pending(event_id)
            if row is not None:
                await repo.mark_failed(row, error)
                if row.attempts >= self.max_attempts:
                    logger.error(
                        f"Outbox event {event_id} ({row.event_type}) abandoned after "
                        f"{row.attempts} attempts"
                    )
                await session.commit()
        return False
