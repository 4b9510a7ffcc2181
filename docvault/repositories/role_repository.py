"""
Role repository.

Resolves the capabilities a role grants into an explicit set of
BaseFunction members.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.models import BaseFunction, Role, RoleBaseFunction
from docvault.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Repository for Role model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Role, session)

    async def get_base_functions(self, role_id: str) -> frozenset[BaseFunction]:
        """
        Get the capabilities granted by a role.

        Args:
            role_id: Id of the role

        Returns:
            Frozen set of BaseFunction members (empty for unknown roles)

        Example:
            functions = await role_repo.get_base_functions(user.role_id)
            if BaseFunction.ADMIN in functions:
                ...
        """
        query = select(RoleBaseFunction.base_function).where(
            RoleBaseFunction.role_id == role_id
        )
        result = await self.session.execute(query)
        return frozenset(result.scalars().all())
