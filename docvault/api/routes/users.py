"""
User API routes.

This module provides:
- GET /api/user - Information about the caller (anonymous allowed)
- PUT /api/user - Register a user (admin only)
- POST /api/user - Update the current user
- DELETE /api/user - Delete the current user
- POST /api/user/login - Log in and receive the session cookie
- POST /api/user/logout - Log out
- GET|DELETE /api/user/session - List sessions / log out everywhere else
- POST /api/user/onboarded - Finish the onboarding tour
- POST /api/user/enable_totp|test_totp|disable_totp - Two-factor authentication
- POST /api/user/password_lost|password_reset - Password recovery
- GET /api/user/list - List users
- GET|POST|DELETE /api/user/{username} - View, update, delete a user (admin)
- POST /api/user/{username}/disable_totp - Remove a user's TOTP (admin only)

Static paths are declared before the ``{username}`` routes so that they are
never captured as usernames.
"""

import logging

from fastapi import APIRouter, Path, Query, Request, Response

from docvault.api.dependencies import (
    AdminPrincipal,
    AuthServiceDep,
    CurrentPrincipal,
    OptionalPrincipal,
    UserServiceDep,
    get_client_ip,
    get_user_agent,
)
from docvault.core.config import settings
from docvault.core.rate_limit import limiter
from docvault.schemas.auth import (
    DisableTotpRequest,
    LoginRequest,
    PasswordLostRequest,
    PasswordResetRequest,
    TotpSecretResponse,
    TotpTestRequest,
)
from docvault.schemas.common import StatusResponse
from docvault.schemas.user import (
    SessionListResponse,
    UserAdminUpdate,
    UserCreate,
    UserInfoResponse,
    UserListResponse,
    UserSelfUpdate,
    UserViewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])

UsernamePath = Path(min_length=1, max_length=50, description="Username")


# ============================================================================
# Current User Endpoints
# ============================================================================


@router.get(
    "",
    response_model=UserInfoResponse,
    response_model_exclude_none=True,
    summary="Get information about the caller",
    description="Profile of the authenticated user, or a minimal anonymous answer",
)
async def get_info(
    principal: OptionalPrincipal,
    user_service: UserServiceDep,
) -> UserInfoResponse:
    return await user_service.get_info(principal)


@router.put(
    "",
    response_model=StatusResponse,
    summary="Register a user",
    description="Create a new user account (admin only)",
)
async def register(
    data: UserCreate,
    principal: AdminPrincipal,
    user_service: UserServiceDep,
) -> StatusResponse:
    """
    Register a new user.

    Raises:
        - 403 Forbidden: If the caller is not an administrator
        - 409 Conflict: If the username is already in use
        - 422 Unprocessable Entity: If validation fails
    """
    await user_service.register(data, principal)
    return StatusResponse()


@router.post(
    "",
    response_model=StatusResponse,
    summary="Update current user",
    description="Change the email address and/or password of the caller",
)
async def update_current_user(
    data: UserSelfUpdate,
    principal: CurrentPrincipal,
    user_service: UserServiceDep,
) -> StatusResponse:
    await user_service.update_current_user(principal, data)
    return StatusResponse()


@router.delete(
    "",
    response_model=StatusResponse,
    summary="Delete current user",
    description="Delete the caller's account, documents and files",
)
async def delete_current_user(
    principal: CurrentPrincipal,
    user_service: UserServiceDep,
) -> StatusResponse:
    """
    Delete the caller's own account.

    Raises:
        - 403 Forbidden: If not authenticated
        - 409 Conflict: For administrators, the guest account, or a user
          still assigned to a route model
    """
    await user_service.delete_current_user(principal)
    return StatusResponse()


# ============================================================================
# Login / Logout
# ============================================================================


@router.post(
    "/login",
    response_model=StatusResponse,
    summary="Log in",
    description="Check credentials and set the session cookie",
)
@limiter.limit(settings.rate_limit_login)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    """
    Authenticate and open a session.

    Rate limited per client address.

    Raises:
        - 403 Forbidden: Bad credentials, disabled account or bad TOTP code
        - 422 Unprocessable Entity: TOTP code required (ValidationCodeRequired)
    """
    result = await auth_service.login(
        credentials,
        ip=get_client_ip(request),
        user_agent=get_user_agent(request),
    )

    response.set_cookie(
        key=settings.cookie_name,
        value=result.token_id,
        max_age=result.max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
    )
    return StatusResponse()


@router.post(
    "/logout",
    response_model=StatusResponse,
    summary="Log out",
    description="Close the current session and clear the session cookie",
)
async def logout(
    response: Response,
    principal: CurrentPrincipal,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    await auth_service.logout(principal.token_id)

    response.set_cookie(
        key=settings.cookie_name,
        value="",
        max_age=0,
        expires=0,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
    )
    return StatusResponse()


# ============================================================================
# Sessions
# ============================================================================


@router.get(
    "/session",
    response_model=SessionListResponse,
    summary="List sessions",
    description="Active sessions of the caller, newest first",
)
async def list_sessions(
    principal: CurrentPrincipal,
    auth_service: AuthServiceDep,
) -> SessionListResponse:
    return await auth_service.list_sessions(principal)


@router.delete(
    "/session",
    response_model=StatusResponse,
    summary="Log out other sessions",
    description="Revoke every session of the caller except the current one",
)
async def revoke_other_sessions(
    principal: CurrentPrincipal,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    await auth_service.revoke_other_sessions(principal)
    return StatusResponse()


@router.post(
    "/onboarded",
    response_model=StatusResponse,
    summary="Finish onboarding",
)
async def mark_onboarded(
    principal: CurrentPrincipal,
    user_service: UserServiceDep,
) -> StatusResponse:
    await user_service.mark_onboarded(principal)
    return StatusResponse()


# ============================================================================
# Two-Factor Authentication
# ============================================================================


@router.post(
    "/enable_totp",
    response_model=TotpSecretResponse,
    summary="Enable two-factor authentication",
    description="Generate a TOTP secret; every following login needs a code",
)
async def enable_totp(
    principal: CurrentPrincipal,
    auth_service: AuthServiceDep,
) -> TotpSecretResponse:
    return await auth_service.enable_totp(principal)


@router.post(
    "/test_totp",
    response_model=StatusResponse,
    summary="Test a TOTP code",
)
async def test_totp(
    data: TotpTestRequest,
    principal: CurrentPrincipal,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    await auth_service.test_totp(principal, data.code)
    return StatusResponse()


@router.post(
    "/disable_totp",
    response_model=StatusResponse,
    summary="Disable two-factor authentication",
    description="Remove the caller's TOTP secret after checking their password",
)
async def disable_totp(
    data: DisableTotpRequest,
    principal: CurrentPrincipal,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    await auth_service.disable_totp(principal, data.password)
    return StatusResponse()


# ============================================================================
# Password Recovery
# ============================================================================


@router.post(
    "/password_lost",
    response_model=StatusResponse,
    summary="Request a password reset",
    description="Email a recovery link; answers ok whether or not the user exists",
)
@limiter.limit(settings.rate_limit_password_lost)
async def password_lost(
    request: Request,
    data: PasswordLostRequest,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    await auth_service.password_lost(data.username)
    return StatusResponse()


@router.post(
    "/password_reset",
    response_model=StatusResponse,
    summary="Reset a password",
    description="Set a new password using a recovery key",
)
async def password_reset(
    data: PasswordResetRequest,
    auth_service: AuthServiceDep,
) -> StatusResponse:
    """
    Reset a password.

    Raises:
        - 404 Not Found: If the key is unknown, used or expired (KeyNotFound)
    """
    await auth_service.password_reset(data.key, data.password)
    return StatusResponse()


# ============================================================================
# User Lookup Endpoints
# ============================================================================


@router.get(
    "/list",
    response_model=UserListResponse,
    summary="List users",
    description="Active users, optionally filtered by group and sorted",
)
async def list_users(
    principal: CurrentPrincipal,
    user_service: UserServiceDep,
    sort_column: int | None = Query(
        default=None,
        ge=1,
        le=5,
        description="1 username, 2 email, 3 creation date, 4 storage used, 5 quota",
    ),
    asc: bool = Query(default=True, description="Ascending order"),
    group: str | None = Query(default=None, description="Only members of this group"),
) -> UserListResponse:
    return await user_service.list_users(sort_column=sort_column, asc=asc, group_name=group)


@router.get(
    "/{username}",
    response_model=UserViewResponse,
    summary="View a user",
)
async def view_user(
    principal: CurrentPrincipal,
    user_service: UserServiceDep,
    username: str = UsernamePath,
) -> UserViewResponse:
    return await user_service.view_user(username)


@router.post(
    "/{username}",
    response_model=StatusResponse,
    summary="Update a user",
    description="Change email, password, quota or disabled state (admin only)",
)
async def update_user(
    data: UserAdminUpdate,
    principal: AdminPrincipal,
    user_service: UserServiceDep,
    username: str = UsernamePath,
) -> StatusResponse:
    """
    Update any user.

    Disabling the guest account or an administrator succeeds but leaves the
    account enabled.

    Raises:
        - 403 Forbidden: If the caller is not an administrator
        - 404 Not Found: If the user does not exist (UserNotFound)
    """
    await user_service.update_user(username, data, principal)
    return StatusResponse()


@router.delete(
    "/{username}",
    response_model=StatusResponse,
    summary="Delete a user",
    description="Delete a user account, documents and files (admin only)",
)
async def delete_user(
    principal: AdminPrincipal,
    user_service: UserServiceDep,
    username: str = UsernamePath,
) -> StatusResponse:
    """
    Delete any user.

    Raises:
        - 403 Forbidden: If the caller is not an administrator
        - 404 Not Found: If the user does not exist (UserNotFound)
        - 409 Conflict: For the guest account, an administrator, or a user
          still assigned to a route model
    """
    await user_service.delete_user(username, principal)
    return StatusResponse()


@router.post(
    "/{username}/disable_totp",
    response_model=StatusResponse,
    summary="Disable a user's two-factor authentication",
    description="Remove the TOTP secret of any user (admin only)",
)
async def disable_user_totp(
    principal: AdminPrincipal,
    auth_service: AuthServiceDep,
    username: str = UsernamePath,
) -> StatusResponse:
    await auth_service.disable_totp_for(username, principal)
    return StatusResponse()
