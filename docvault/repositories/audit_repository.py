"""
AuditLog repository for audit trail operations.

Note: AuditLogs are IMMUTABLE - this repository only supports
creation, not updates or deletes.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.middleware import NO_REQUEST_ID, request_id_var
from docvault.models import AuditAction, AuditStatus
from docvault.models.audit_log import AuditLog


class AuditLogRepository:
    """
    Repository for AuditLog model operations.

    This repository does NOT extend BaseRepository because audit logs are
    immutable. Only creation is supported.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize AuditLogRepository.

        Args:
            session: Async database session
        """
        self.session = session

    async def add(self, instance: AuditLog) -> AuditLog:
        """
        Persist a new audit log entry.

        The current request id is attached when the entry does not carry one.
        """
        if instance.request_id is None:
            request_id = request_id_var.get()
            if request_id != NO_REQUEST_ID:
                instance.request_id = request_id
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def record(
        self,
        actor_id: str | None,
        action: AuditAction,
        entity_type: str,
        entity_id: str | None,
        description: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
    ) -> AuditLog:
        """
        Shortcut for building and persisting an entry in one call.

        Example:
            await audit_repo.record(actor_id, AuditAction.DELETE, "user", user.id)
        """
        return await self.add(
            AuditLog(
                user_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                description=description,
                old_values=old_values,
                new_values=new_values,
                status=status,
            )
        )
