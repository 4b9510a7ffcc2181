"""
Database models for DocVault.

This module exports all SQLAlchemy models and the declarative base.
Import models from this module to ensure proper initialization.
"""

from docvault.models.audit_log import AuditLog
from docvault.models.authentication_token import AuthenticationToken
from docvault.models.base import Base
from docvault.models.document import Document, File
from docvault.models.enums import AuditAction, AuditStatus, BaseFunction, RouteTargetType
from docvault.models.group import Group, UserGroup
from docvault.models.mixins import SoftDeleteMixin, TimestampMixin
from docvault.models.outbox_event import OutboxEvent
from docvault.models.password_recovery import PasswordRecovery
from docvault.models.route_model import RouteModel
from docvault.models.user import (
    ADMIN_ROLE_ID,
    ADMIN_USER_ID,
    GUEST_USER_ID,
    USER_ROLE_ID,
    Role,
    RoleBaseFunction,
    User,
)

__all__ = [
    # Base
    "Base",
    # Mixins
    "TimestampMixin",
    "SoftDeleteMixin",
    # User models
    "User",
    "Role",
    "RoleBaseFunction",
    "BaseFunction",
    "ADMIN_USER_ID",
    "GUEST_USER_ID",
    "ADMIN_ROLE_ID",
    "USER_ROLE_ID",
    # Group models
    "Group",
    "UserGroup",
    # Session models
    "AuthenticationToken",
    "PasswordRecovery",
    # Document models
    "Document",
    "File",
    "RouteModel",
    "RouteTargetType",
    # Audit models
    "AuditLog",
    "AuditAction",
    "AuditStatus",
    # Outbox
    "OutboxEvent",
]
