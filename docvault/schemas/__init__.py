"""
Pydantic schemas for request validation and response serialization.
"""

from docvault.schemas.auth import (
    DisableTotpRequest,
    LoginRequest,
    LoginResult,
    PasswordLostRequest,
    PasswordResetRequest,
    Principal,
    TotpSecretResponse,
    TotpTestRequest,
)
from docvault.schemas.common import StatusResponse
from docvault.schemas.user import (
    SessionItem,
    SessionListResponse,
    UserAdminUpdate,
    UserCreate,
    UserInfoResponse,
    UserListItem,
    UserListResponse,
    UserSelfUpdate,
    UserViewResponse,
)

__all__ = [
    "StatusResponse",
    "Principal",
    "LoginRequest",
    "LoginResult",
    "TotpSecretResponse",
    "TotpTestRequest",
    "DisableTotpRequest",
    "PasswordLostRequest",
    "PasswordResetRequest",
    "UserCreate",
    "UserSelfUpdate",
    "UserAdminUpdate",
    "UserInfoResponse",
    "UserViewResponse",
    "UserListItem",
    "UserListResponse",
    "SessionItem",
    "SessionListResponse",
]
