"""
Group repository for group lookups and memberships.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.models import Group, UserGroup
from docvault.repositories.base import BaseRepository


class GroupRepository(BaseRepository[Group]):
    """
    Repository for Group model operations.

    Extends BaseRepository with:
    - Name lookups (for the user list group filter)
    - Membership queries and removal (for user views and deletion)
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Group, session)

    async def get_active_by_name(self, name: str) -> Group | None:
        """Get a non-deleted group by name."""
        query = select(Group).where(Group.name == name)
        query = self._apply_soft_delete_filter(query)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_names_for_user(self, user_id: str) -> list[str]:
        """
        Get the names of the groups a user belongs to, sorted by name.

        Args:
            user_id: Id of the user

        Returns:
            Group names (deleted groups excluded)
        """
        query = (
            select(Group.name)
            .join(UserGroup, UserGroup.group_id == Group.id)
            .where(UserGroup.user_id == user_id, Group.deleted_at.is_(None))
            .order_by(Group.name.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_memberships(self, user_id: str) -> int:
        """
        Remove every membership of a user.

        Returns:
            Number of memberships removed
        """
        result = await self.session.execute(
            delete(UserGroup).where(UserGroup.user_id == user_id)
        )
        await self.session.flush()
        return result.rowcount
