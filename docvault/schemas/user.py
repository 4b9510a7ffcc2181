"""
User Pydantic schemas for API request/response handling.

This module provides:
- User creation and update schemas (self-service and admin)
- User info, view and list response schemas
- Session list schemas
"""

import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from docvault.schemas.auth import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_@.-]+$")
EMAIL_MAX_LENGTH = 100


def _check_email_length(value: str | None) -> str | None:
    if value is not None and len(value) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return value


class UserCreate(BaseModel):
    """
    Schema for user registration by an administrator.

    Attributes:
        username: Username (3-50 characters, letters, digits and _@.-)
        password: Password (8-50 characters)
        email: Email address (at most 100 characters)
        storage_quota: Storage quota in bytes
    """

    username: str = Field(min_length=3, max_length=50, description="Username")
    password: str = Field(
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="Password (8-50 characters)",
    )
    email: EmailStr = Field(description="Email address (at most 100 characters)")
    storage_quota: int = Field(ge=0, description="Storage quota in bytes")

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        """Validate username format."""
        if not USERNAME_PATTERN.match(value):
            raise ValueError(
                "Username can only contain letters, numbers, underscores, @, dots and hyphens"
            )
        return value

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, value: str) -> str:
        return _check_email_length(value)


class UserSelfUpdate(BaseModel):
    """
    Schema for a user updating their own account.

    All fields are optional; omitted fields are left unchanged.
    """

    email: EmailStr | None = Field(default=None, description="New email address")
    password: str | None = Field(
        default=None,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="New password",
    )

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, value: str | None) -> str | None:
        return _check_email_length(value)


class UserAdminUpdate(UserSelfUpdate):
    """
    Schema for an administrator updating any account.

    Attributes:
        storage_quota: New storage quota in bytes
        disabled: Disable (True) or re-enable (False) the account; ignored
            for the guest and administrator accounts
    """

    storage_quota: int | None = Field(default=None, ge=0, description="New storage quota in bytes")
    disabled: bool | None = Field(default=None, description="Disable or enable the account")


class UserInfoResponse(BaseModel):
    """
    Information about the caller.

    Anonymous callers only get ``anonymous`` and ``is_default_password``;
    every other field is filled for authenticated callers.
    """

    anonymous: bool
    is_default_password: bool | None = Field(
        default=None,
        description="Whether the administrator account still uses the default password",
    )
    username: str | None = None
    email: str | None = None
    storage_quota: int | None = None
    storage_current: int | None = None
    totp_enabled: bool | None = None
    onboarding: bool | None = None
    base_functions: list[str] | None = None
    groups: list[str] | None = None


class UserViewResponse(BaseModel):
    """Public view of one user."""

    username: str
    groups: list[str]
    email: str
    totp_enabled: bool
    storage_quota: int
    storage_current: int
    disabled: bool


class UserListItem(BaseModel):
    """One row of the user list."""

    id: str
    username: str
    email: str
    totp_enabled: bool
    storage_quota: int
    storage_current: int
    create_date: datetime
    disabled: bool


class UserListResponse(BaseModel):
    users: list[UserListItem]


class SessionItem(BaseModel):
    """
    One active session of the caller.

    Attributes:
        current: Whether this is the session of the current request
    """

    create_date: datetime
    ip: str | None
    user_agent: str | None
    last_connection_date: datetime | None
    current: bool


class SessionListResponse(BaseModel):
    sessions: list[SessionItem]
