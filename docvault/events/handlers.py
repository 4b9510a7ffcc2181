"""
Outbox event handlers.

Delivery is at-least-once, so every handler must tolerate replays:
- file deleted: removes the stored content and releases the owner's quota
  usage once; the file row's size is zeroed when the usage is released
- document deleted: retracts the document from the search index (logged)
- password lost: hands the reset link to the recovery mailer
"""

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.events.events import (
    DocumentDeletedEvent,
    DomainEvent,
    FileDeletedEvent,
    PasswordLostEvent,
)
from docvault.events.mailer import (
    ConsolePasswordRecoveryMailer,
    PasswordRecoveryMailer,
    build_reset_url,
)
from docvault.repositories.document_repository import FileRepository

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent, AsyncSession], Awaitable[None]]

# Derived variants written next to the original content
STORED_FILE_SUFFIXES = ("", "_web", "_thumb")


class FileDeletedHandler:
    """Releases the storage held by a deleted file."""

    def __init__(self, storage_dir: str | Path):
        self.storage_dir = Path(storage_dir)

    async def __call__(self, event: FileDeletedEvent, session: AsyncSession) -> None:
        for suffix in STORED_FILE_SUFFIXES:
            path = self.storage_dir / f"{event.file_id}{suffix}"
            path.unlink(missing_ok=True)

        file_repo = FileRepository(session)
        file = await file_repo.get_including_deleted(event.file_id)
        if file is None or not await file_repo.release_storage(file):
            logger.debug(f"File {event.file_id} already released")
            return

        logger.info(f"Released storage of file {event.file_id}")


class DocumentDeletedHandler:
    """Retracts a deleted document from the search index."""

    async def __call__(self, event: DocumentDeletedEvent, session: AsyncSession) -> None:
        # Indexing is external; retraction of an absent entry is a no-op there
        logger.info(
            f"Document {event.document_id} retracted from index (deleted by {event.user_id})"
        )


class PasswordLostHandler:
    """Sends the password reset link of a new recovery key."""

    def __init__(self, mailer: PasswordRecoveryMailer, reset_url: str):
        self.mailer = mailer
        self.reset_url = reset_url

    async def __call__(self, event: PasswordLostEvent, session: AsyncSession) -> None:
        await self.mailer.send_reset_link(
            email=event.email,
            username=event.username,
            reset_url=build_reset_url(self.reset_url, event.recovery_key),
        )


def build_default_handlers(
    mailer: PasswordRecoveryMailer | None = None,
    storage_dir: str | Path | None = None,
) -> dict[str, list[EventHandler]]:
    """
    Wire the handlers of every event type.

    Args:
        mailer: Recovery mailer, console mailer by default
        storage_dir: Root of stored files, ``settings.storage_dir`` by default

    Returns:
        Mapping of event type name to its handlers, run in order
    """
    return {
        FileDeletedEvent.event_type(): [
            FileDeletedHandler(storage_dir or settings.storage_dir),
        ],
        DocumentDeletedEvent.event_type(): [DocumentDeletedHandler()],
        PasswordLostEvent.event_type(): [
            PasswordLostHandler(
                mailer or ConsolePasswordRecoveryMailer(),
                settings.password_reset_url,
            ),
        ],
    }
