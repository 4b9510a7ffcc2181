"""
RouteModel model.

A route model is a reusable workflow template. Its steps are stored as a JSON
list; each step names a target user or group, e.g.::

    [{"type": "VALIDATE", "target": {"type": "USER", "name": "alice"}}]
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base
from docvault.models.enums import RouteTargetType
from docvault.models.mixins import SoftDeleteMixin, TimestampMixin


class RouteModel(Base, TimestampMixin, SoftDeleteMixin):
    """Workflow template referencing users and groups by name."""

    __tablename__ = "route_models"

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    steps: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    def references_user(self, username: str) -> bool:
        """Check whether any step is assigned to ``username``."""
        for step in self.steps or []:
            target = step.get("target") or {}
            if target.get("type") == RouteTargetType.USER.value and target.get("name") == username:
                return True
        return False
