"""
FastAPI dependencies for authentication and authorization.

This module provides:
- Principal resolution from the session cookie
- Authenticated and administrator guards
- Client metadata extraction (IP, user agent)
- Service factories bound to the request session
"""

import logging
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.database import get_db
from docvault.core.exceptions import ForbiddenError
from docvault.schemas.auth import Principal
from docvault.services import AuthService, UserService

logger = logging.getLogger(__name__)


# ============================================================================
# Service Dependencies
# ============================================================================


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Dependency to get AuthService instance.

    Usage:
        @router.post("/login")
        async def login(auth_service: AuthService = Depends(get_auth_service)):
            ...
    """
    return AuthService(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency to get UserService instance."""
    return UserService(db)


# ============================================================================
# Authentication Dependencies
# ============================================================================


def get_token_id(request: Request) -> str | None:
    """Read the bearer value from the session cookie, if any."""
    token_id = request.cookies.get(settings.cookie_name)
    return token_id or None


async def get_optional_principal(
    token_id: str | None = Depends(get_token_id),
    auth_service: AuthService = Depends(get_auth_service),
) -> Principal | None:
    """
    Resolve the caller, or None for anonymous requests.

    Unknown or expired tokens are treated as anonymous, never as errors.
    """
    return await auth_service.resolve_principal(token_id)


async def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    """
    Require an authenticated caller.

    Raises:
        ForbiddenError: If the request carries no valid session
    """
    if principal is None:
        raise ForbiddenError()
    return principal


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """
    Require a caller holding the ADMIN capability.

    Raises:
        ForbiddenError: If the caller is not an administrator
    """
    if not principal.is_admin:
        logger.warning(
            f"Access denied: user {principal.username} attempted admin-only action"
        )
        raise ForbiddenError()
    return principal


# ============================================================================
# Request Metadata
# ============================================================================


def get_client_ip(request: Request) -> str | None:
    """
    Client IP, preferring the first X-Forwarded-For entry over the socket peer.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> str | None:
    return request.headers.get("user-agent")


# ============================================================================
# Type aliases for cleaner route signatures
# ============================================================================

OptionalPrincipal = Annotated[Principal | None, Depends(get_optional_principal)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
AdminPrincipal = Annotated[Principal, Depends(require_admin)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
