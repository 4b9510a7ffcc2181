"""
Authentication service: login, sessions, two-factor and password recovery.

This module provides:
- Login with password, optional TOTP challenge and session token issuance
- Logout and "log out everywhere else"
- Session token resolution for incoming requests
- TOTP enrolment, test and removal
- Password recovery keys and password reset

Login state machine:
    Anonymous -> PasswordVerified -> (TotpChallenged ->) Authenticated

Every authentication failure raises the same ForbiddenError, so callers
cannot tell which step failed. The only exception is a missing TOTP code,
which is reported as a validation error so the client can prompt for it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core import totp
from docvault.core.config import settings
from docvault.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from docvault.events.events import PasswordLostEvent
from docvault.events.outbox import EventOutbox
from docvault.models import GUEST_USER_ID, AuditAction, AuditStatus, User
from docvault.repositories.audit_repository import AuditLogRepository
from docvault.repositories.authentication_token_repository import (
    AuthenticationTokenRepository,
)
from docvault.repositories.password_recovery_repository import PasswordRecoveryRepository
from docvault.repositories.role_repository import RoleRepository
from docvault.repositories.user_repository import UserRepository
from docvault.schemas.auth import LoginRequest, LoginResult, Principal, TotpSecretResponse
from docvault.schemas.user import SessionItem, SessionListResponse

logger = logging.getLogger(__name__)


def parse_totp_code(code: str | None) -> int:
    """
    Parse a user-entered TOTP code.

    Raises:
        ValidationError: If the code is missing or not made of ASCII digits
    """
    if code is None or not code.strip():
        raise ValidationError(
            field="code",
            reason="An OTP validation code is required",
            error_code="ValidationCodeRequired",
        )
    code = code.strip()
    if not (code.isascii() and code.isdigit()):
        raise ValidationError(field="code", reason="must be an integer")
    return int(code)


class AuthService:
    """
    Service class for authentication operations.

    All methods require an active database session. Methods that write
    commit the session themselves once every write of the operation is done.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize AuthService.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.token_repo = AuthenticationTokenRepository(session)
        self.role_repo = RoleRepository(session)
        self.recovery_repo = PasswordRecoveryRepository(session)
        self.audit_repo = AuditLogRepository(session)
        self.outbox = EventOutbox(session)

    # -------------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------------

    async def login(
        self,
        credentials: LoginRequest,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        """
        Authenticate a user and open a session.

        Args:
            credentials: Username, password, optional TOTP code and remember flag
            ip: Client IP address
            user_agent: Client user agent

        Returns:
            LoginResult with the bearer value and the cookie max-age

        Raises:
            ForbiddenError: Bad credentials, disabled account or bad TOTP code
            ValidationError: TOTP code required but missing, or not a number
        """
        user: User | None = None
        if credentials.username == GUEST_USER_ID:
            if settings.guest_login_enabled:
                user = await self.user_repo.get_active_by_username(GUEST_USER_ID)
        else:
            user = await self.user_repo.authenticate(
                credentials.username, credentials.password
            )

        if user is None:
            logger.warning(f"Login failed for username: {credentials.username}")
            raise ForbiddenError()

        if user.totp_key is not None:
            code = parse_totp_code(credentials.code)
            if not totp.authorize(user.totp_key, code):
                logger.warning(f"Login failed for username: {credentials.username} (TOTP)")
                raise ForbiddenError()

        token_id = await self.token_repo.create(
            user_id=user.id,
            long_lasted=credentials.remember,
            ip=ip,
            user_agent=user_agent,
        )
        pruned = await self.token_repo.delete_old_session_tokens(user.id)

        await self.audit_repo.record(
            user.id, AuditAction.LOGIN, "user", user.id, description="User logged in"
        )
        await self.session.commit()

        logger.info(f"User logged in: {user.username} (pruned {pruned} stale sessions)")
        return LoginResult(
            token_id=token_id,
            max_age=settings.long_token_lifetime_seconds if credentials.remember else None,
        )

    async def logout(self, token_id: str | None) -> None:
        """
        Close the session of the current request.

        Raises:
            ForbiddenError: If the token is missing or unknown
        """
        token = await self.token_repo.get(token_id) if token_id else None
        if token is None:
            raise ForbiddenError()

        await self.token_repo.delete(token.id)
        await self.audit_repo.record(
            token.user_id, AuditAction.LOGOUT, "user", token.user_id, description="User logged out"
        )
        await self.session.commit()
        logger.info(f"User logged out: {token.user_id}")

    async def resolve_principal(self, token_id: str | None) -> Principal | None:
        """
        Resolve the identity behind a session token.

        Unknown tokens resolve to None (anonymous). Expired tokens are deleted
        and resolve to None. Otherwise the token's activity date is updated.

        Args:
            token_id: Bearer value from the session cookie

        Returns:
            Principal, or None for anonymous requests
        """
        if not token_id:
            return None

        token = await self.token_repo.get(token_id)
        if token is None:
            return None

        if self.token_repo.is_expired(token):
            await self.token_repo.delete(token.id)
            await self.session.commit()
            return None

        user = await self.user_repo.get_by_id(token.user_id)
        if user is None or user.is_disabled:
            return None

        await self.token_repo.update_last_connection_date(token.id)
        await self.session.commit()

        return Principal(
            user_id=user.id,
            username=user.username,
            base_functions=await self.role_repo.get_base_functions(user.role_id),
            token_id=token.id,
        )

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    async def list_sessions(self, principal: Principal) -> SessionListResponse:
        """
        List the caller's sessions, newest first.

        The guest identity is shared, so it never sees any session.
        """
        if principal.is_guest:
            return SessionListResponse(sessions=[])

        tokens = await self.token_repo.get_by_user_id(principal.user_id)
        return SessionListResponse(
            sessions=[
                SessionItem(
                    create_date=token.created_at,
                    ip=token.ip,
                    user_agent=token.user_agent,
                    last_connection_date=token.last_connection_at,
                    current=token.id == principal.token_id,
                )
                for token in tokens
            ]
        )

    async def revoke_other_sessions(self, principal: Principal) -> int:
        """
        Log the caller out everywhere except the current session.

        Returns:
            Number of sessions revoked

        Raises:
            ForbiddenError: For the guest identity
        """
        if principal.is_guest:
            raise ForbiddenError()

        count = await self.token_repo.delete_by_user_id(
            principal.user_id, except_token_id=principal.token_id
        )
        await self.session.commit()
        logger.info(f"Revoked {count} other sessions of {principal.username}")
        return count

    # -------------------------------------------------------------------------
    # Two-factor authentication
    # -------------------------------------------------------------------------

    async def _get_self(self, principal: Principal) -> User:
        user = await self.user_repo.get_by_id(principal.user_id)
        if user is None:
            raise ForbiddenError()
        return user

    async def enable_totp(self, principal: Principal) -> TotpSecretResponse:
        """
        Generate and store a new TOTP secret for the caller.

        From now on every login of the caller needs a code.
        """
        if principal.is_guest:
            raise ForbiddenError()

        user = await self._get_self(principal)
        user.totp_key = totp.create_secret()
        await self.user_repo.update(user, principal.user_id)
        await self.audit_repo.record(
            principal.user_id, AuditAction.TOTP_ENABLE, "user", user.id
        )
        await self.session.commit()

        logger.info(f"TOTP enabled for {principal.username}")
        return TotpSecretResponse(secret=user.totp_key)

    async def test_totp(self, principal: Principal, code: str | None) -> None:
        """
        Check a code against the caller's secret.

        Passes trivially when the caller has no secret.

        Raises:
            ForbiddenError: If the code does not match
        """
        if principal.is_guest:
            raise ForbiddenError()

        user = await self._get_self(principal)
        if user.totp_key is not None:
            if not totp.authorize(user.totp_key, parse_totp_code(code)):
                raise ForbiddenError()

    async def disable_totp(self, principal: Principal, password: str) -> None:
        """
        Remove the caller's TOTP secret after re-checking their password.

        Raises:
            ForbiddenError: For the guest identity or a wrong password
        """
        if principal.is_guest:
            raise ForbiddenError()

        user = await self.user_repo.authenticate(principal.username, password)
        if user is None:
            await self.audit_repo.record(
                principal.user_id,
                AuditAction.TOTP_DISABLE,
                "user",
                principal.user_id,
                status=AuditStatus.FAILURE,
            )
            await self.session.commit()
            raise ForbiddenError()

        user.totp_key = None
        await self.user_repo.update(user, principal.user_id)
        await self.audit_repo.record(principal.user_id, AuditAction.TOTP_DISABLE, "user", user.id)
        await self.session.commit()
        logger.info(f"TOTP disabled by {principal.username}")

    async def disable_totp_for(self, username: str, principal: Principal) -> None:
        """
        Remove a user's TOTP secret (administrators).

        Raises:
            ForbiddenError: If no active user has this username
        """
        user = await self.user_repo.get_active_by_username(username)
        if user is None:
            raise ForbiddenError()

        user.totp_key = None
        await self.user_repo.update(user, principal.user_id)
        await self.audit_repo.record(principal.user_id, AuditAction.TOTP_DISABLE, "user", user.id)
        await self.session.commit()
        logger.info(f"TOTP of {username} disabled by {principal.username}")

    # -------------------------------------------------------------------------
    # Password recovery
    # -------------------------------------------------------------------------

    async def password_lost(self, username: str) -> None:
        """
        Issue a recovery key and queue the reset email.

        Succeeds silently for unknown usernames so that the endpoint cannot
        be used to probe for accounts. A new key supersedes older ones.
        """
        user = await self.user_repo.get_active_by_username(username)
        if user is None:
            logger.info(f"Password recovery requested for unknown username: {username}")
            return

        await self.recovery_repo.delete_active_by_username(user.username)
        recovery = await self.recovery_repo.create(user.username)
        await self.outbox.enqueue(
            PasswordLostEvent(
                user_id=user.id,
                username=user.username,
                email=user.email,
                recovery_key=recovery.id,
            )
        )
        await self.session.commit()
        logger.info(f"Password recovery key issued for {user.username}")

    async def password_reset(self, key: str, password: str) -> None:
        """
        Set a new password using a recovery key.

        Every outstanding key of the user is consumed and every session of
        the user is closed.

        Raises:
            NotFoundError: If the key is unknown, consumed or expired
        """
        recovery = await self.recovery_repo.get_active(key)
        user = (
            await self.user_repo.get_active_by_username(recovery.username)
            if recovery is not None
            else None
        )
        if user is None:
            raise NotFoundError(
                resource="Password recovery key",
                message="Password recovery key not found",
                error_code="KeyNotFound",
            )

        await self.user_repo.update_password(user, password, user.id)
        await self.recovery_repo.delete_active_by_username(user.username)
        await self.token_repo.delete_by_user_id(user.id)
        await self.audit_repo.record(user.id, AuditAction.PASSWORD_RESET, "user", user.id)
        await self.session.commit()
        logger.info(f"Password reset for {user.username}")
