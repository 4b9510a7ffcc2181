"""
PasswordRecovery repository.

A key is active while it is not deleted and younger than
``settings.password_recovery_validity_hours``.
"""

from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.timeutils import utc_now
from docvault.models import PasswordRecovery


class PasswordRecoveryRepository:
    """Repository for PasswordRecovery model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, username: str) -> PasswordRecovery:
        """
        Issue a new recovery key for a username.

        Returns:
            The persisted PasswordRecovery; its id is the key
        """
        recovery = PasswordRecovery(username=username)
        self.session.add(recovery)
        await self.session.flush()
        return recovery

    async def get_active(self, key: str) -> PasswordRecovery | None:
        """
        Get a recovery key if it is still usable.

        Returns:
            PasswordRecovery or None if unknown, consumed or expired
        """
        min_date = utc_now() - timedelta(hours=settings.password_recovery_validity_hours)
        query = select(PasswordRecovery).where(
            PasswordRecovery.id == key,
            PasswordRecovery.deleted_at.is_(None),
            PasswordRecovery.created_at >= min_date,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def delete_active_by_username(self, username: str) -> int:
        """
        Consume every outstanding key of a username.

        Returns:
            Number of keys consumed
        """
        result = await self.session.execute(
            update(PasswordRecovery)
            .where(
                PasswordRecovery.username == username,
                PasswordRecovery.deleted_at.is_(None),
            )
            .values(deleted_at=utc_now())
        )
        await self.session.flush()
        return result.rowcount
