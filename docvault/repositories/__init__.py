"""
Repositories: database access for each model.
"""

from docvault.repositories.audit_repository import AuditLogRepository
from docvault.repositories.authentication_token_repository import (
    AuthenticationTokenRepository,
)
from docvault.repositories.base import BaseRepository
from docvault.repositories.document_repository import DocumentRepository, FileRepository
from docvault.repositories.group_repository import GroupRepository
from docvault.repositories.outbox_repository import OutboxEventRepository
from docvault.repositories.password_recovery_repository import PasswordRecoveryRepository
from docvault.repositories.role_repository import RoleRepository
from docvault.repositories.route_model_repository import RouteModelRepository
from docvault.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "RoleRepository",
    "GroupRepository",
    "AuthenticationTokenRepository",
    "PasswordRecoveryRepository",
    "DocumentRepository",
    "FileRepository",
    "RouteModelRepository",
    "AuditLogRepository",
    "OutboxEventRepository",
]
