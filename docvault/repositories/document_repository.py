"""
Document and File repositories.

Only ownership queries are provided: the account deletion flow needs to know
what a user owns before the account is removed, and the file cleanup handler
needs to read files that are already soft-deleted and release their storage.
"""

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.timeutils import utc_now
from docvault.models import Document, File, User
from docvault.repositories.base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Repository for Document model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Document, session)

    async def find_by_user(self, user_id: str) -> list[Document]:
        """Get every non-deleted document owned by a user."""
        query = select(Document).where(Document.user_id == user_id)
        query = self._apply_soft_delete_filter(query)
        result = await self.session.execute(query.order_by(Document.created_at.asc()))
        return list(result.scalars().all())

    async def soft_delete_by_user(self, user_id: str) -> int:
        """
        Soft delete every document owned by a user.

        Returns:
            Number of documents deleted
        """
        result = await self.session.execute(
            update(Document)
            .where(Document.user_id == user_id, Document.deleted_at.is_(None))
            .values(deleted_at=utc_now())
        )
        await self.session.flush()
        return result.rowcount


class FileRepository(BaseRepository[File]):
    """Repository for File model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(File, session)

    async def find_by_user(self, user_id: str) -> list[File]:
        """Get every non-deleted file owned by a user."""
        query = select(File).where(File.user_id == user_id)
        query = self._apply_soft_delete_filter(query)
        result = await self.session.execute(query.order_by(File.created_at.asc()))
        return list(result.scalars().all())

    async def get_including_deleted(self, file_id: str) -> File | None:
        """Get a file by id whether or not it has been soft-deleted."""
        result = await self.session.execute(select(File).where(File.id == file_id))
        return result.scalar_one_or_none()

    async def soft_delete_by_user(self, user_id: str) -> int:
        """
        Soft delete every file owned by a user.

        Returns:
            Number of files deleted
        """
        result = await self.session.execute(
            update(File)
            .where(File.user_id == user_id, File.deleted_at.is_(None))
            .values(deleted_at=utc_now())
        )
        await self.session.flush()
        return result.rowcount

    async def release_storage(self, file: File) -> bool:
        """
        Zero a file's size and subtract it from its owner's storage usage.

        Both changes are single UPDATE statements; the size is only zeroed
        while it still holds the value read from ``file``.

        Returns:
            False if the size had already been released
        """
        size = file.size
        result = await self.session.execute(
            update(File)
            .where(File.id == file.id, File.size == size, File.size > 0)
            .values(size=0)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        await self.session.execute(
            update(User)
            .where(User.id == file.user_id)
            .values(
                storage_current=case(
                    (User.storage_current > size, User.storage_current - size),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return True
