"""
RouteModel repository.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.models import RouteModel
from docvault.repositories.base import BaseRepository


class RouteModelRepository(BaseRepository[RouteModel]):
    """Repository for RouteModel model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(RouteModel, session)

    async def find_referencing_user(self, username: str) -> RouteModel | None:
        """
        Find an active route model with a step assigned to ``username``.

        Steps are JSON documents, so the match is done in Python over the
        (small) set of active route models.

        Returns:
            The first matching route model by name, or None
        """
        query = select(RouteModel).order_by(RouteModel.name.asc())
        query = self._apply_soft_delete_filter(query)
        result = await self.session.execute(query)
        for route_model in result.scalars().all():
            if route_model.references_user(username):
                return route_model
        return None
