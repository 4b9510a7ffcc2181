"""
Enums shared by the models.

This module defines:
- BaseFunction: named capabilities granted to roles
- AuditAction / AuditStatus: audit trail vocabulary
- RouteTargetType: kind of participant in a route model step
"""

import enum


class BaseFunction(str, enum.Enum):
    """
    Capabilities a role can grant.

    A user's capabilities are resolved into a ``frozenset[BaseFunction]``;
    checks are membership tests against these members, never raw strings.
    """

    ADMIN = "ADMIN"


class AuditAction(str, enum.Enum):
    """Enumeration of audit log action types."""

    # Authentication actions
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PASSWORD_RESET = "PASSWORD_RESET"
    TOTP_ENABLE = "TOTP_ENABLE"
    TOTP_DISABLE = "TOTP_DISABLE"

    # CRUD actions (data modifications)
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Administrative actions
    ACCOUNT_DISABLE = "ACCOUNT_DISABLE"
    ACCOUNT_ENABLE = "ACCOUNT_ENABLE"


class AuditStatus(str, enum.Enum):
    """Status of the audited action."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class RouteTargetType(str, enum.Enum):
    """Who a route model step is assigned to."""

    USER = "USER"
    GROUP = "GROUP"
