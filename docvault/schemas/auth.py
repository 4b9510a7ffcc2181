"""
Authentication Pydantic schemas for API request/response handling.

This module provides:
- Login, TOTP and password recovery request schemas
- The authenticated principal resolved from a session token
- Login result handed from the service to the route
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docvault.models import GUEST_USER_ID, BaseFunction

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 50


class Principal(BaseModel):
    """
    Identity attached to an authenticated request.

    Attributes:
        user_id: Id of the authenticated user
        username: Username of the authenticated user
        base_functions: Capabilities granted by the user's role
        token_id: Session token the request was authenticated with
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    base_functions: frozenset[BaseFunction] = frozenset()
    token_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return BaseFunction.ADMIN in self.base_functions

    @property
    def is_guest(self) -> bool:
        return self.user_id == GUEST_USER_ID


class LoginRequest(BaseModel):
    """
    Schema for login request.

    Attributes:
        username: Username (surrounding whitespace ignored)
        password: Password (surrounding whitespace ignored)
        code: TOTP code, required when two-factor authentication is enabled
        remember: Issue a persistent ("remember me") session
    """

    username: str = Field(default="", max_length=50, description="Username")
    password: str = Field(default="", max_length=100, description="Password")
    code: str | None = Field(default=None, max_length=20, description="TOTP code")
    remember: bool = Field(default=False, description="Keep the session after browser exit")

    @field_validator("username", "password")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class LoginResult(BaseModel):
    """
    Outcome of a successful login.

    Attributes:
        token_id: Bearer value to put in the session cookie
        max_age: Cookie max-age in seconds, None for a browser-session cookie
    """

    token_id: str
    max_age: int | None = None


class TotpSecretResponse(BaseModel):
    """Freshly generated TOTP secret, shown once to the user."""

    secret: str = Field(description="Base32 shared secret for the authenticator app")


class TotpTestRequest(BaseModel):
    """Schema for checking a TOTP code against the stored secret."""

    code: str = Field(min_length=1, max_length=20, description="TOTP code")


class DisableTotpRequest(BaseModel):
    """Schema for disabling two-factor authentication on one's own account."""

    password: str = Field(min_length=1, max_length=100, description="Current password")


class PasswordLostRequest(BaseModel):
    """Schema for requesting a password recovery key."""

    username: str = Field(min_length=1, max_length=50, description="Username")


class PasswordResetRequest(BaseModel):
    """
    Schema for resetting a password with a recovery key.

    Attributes:
        key: Recovery key received by email
        password: New password (8-50 characters)
    """

    key: str = Field(min_length=1, max_length=64, description="Recovery key")
    password: str = Field(
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="New password (8-50 characters)",
    )
