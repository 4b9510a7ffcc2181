"""
AuthenticationToken repository for session management operations.

This module provides database operations for the AuthenticationToken model:
issuance, lookup, activity tracking, revocation and expiry pruning.

Expiry rules:
- short-lived tokens expire ``session_token_lifetime_hours`` after their last
  connection (or creation when never used) and are purged at each new login
- long-lived tokens expire ``long_token_lifetime_days`` after creation, the
  max-age of the persistent cookie
"""

from datetime import timedelta

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.security import abbreviate
from docvault.core.timeutils import as_utc, utc_now
from docvault.models.authentication_token import (
    IP_MAX_LENGTH,
    USER_AGENT_MAX_LENGTH,
    AuthenticationToken,
)


class AuthenticationTokenRepository:
    """
    Repository for AuthenticationToken model operations.

    Tokens are never soft-deleted: a revoked bearer value must stop working
    immediately and can never be handed out again.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize AuthenticationTokenRepository.

        Args:
            session: Async database session
        """
        self.session = session

    async def create(
        self,
        user_id: str,
        long_lasted: bool,
        ip: str | None,
        user_agent: str | None,
    ) -> str:
        """
        Issue a new session token.

        Args:
            user_id: Owner of the session
            long_lasted: Persistent ("remember me") session
            ip: Client IP, truncated to 45 characters
            user_agent: Client user agent, truncated to 1000 characters

        Returns:
            The bearer value
        """
        token = AuthenticationToken(
            user_id=user_id,
            long_lasted=long_lasted,
            ip=abbreviate(ip, IP_MAX_LENGTH),
            user_agent=abbreviate(user_agent, USER_AGENT_MAX_LENGTH),
        )
        self.session.add(token)
        await self.session.flush()
        return token.id

    async def get(self, token_id: str) -> AuthenticationToken | None:
        """
        Look up a token by its bearer value.

        Returns:
            AuthenticationToken or None; callers treat None as anonymous
        """
        result = await self.session.execute(
            select(AuthenticationToken).where(AuthenticationToken.id == token_id)
        )
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> list[AuthenticationToken]:
        """Get every token of a user, newest first."""
        query = (
            select(AuthenticationToken)
            .where(AuthenticationToken.user_id == user_id)
            .order_by(AuthenticationToken.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update_last_connection_date(self, token_id: str) -> None:
        """Record activity on a token."""
        await self.session.execute(
            update(AuthenticationToken)
            .where(AuthenticationToken.id == token_id)
            .values(last_connection_at=utc_now())
        )
        await self.session.flush()

    async def delete(self, token_id: str) -> None:
        """Revoke a single token. Unknown ids are ignored."""
        await self.session.execute(
            delete(AuthenticationToken).where(AuthenticationToken.id == token_id)
        )
        await self.session.flush()

    async def delete_by_user_id(
        self,
        user_id: str,
        except_token_id: str | None = None,
    ) -> int:
        """
        Revoke every token of a user.

        Args:
            user_id: Owner of the tokens
            except_token_id: Token to keep ("log out everywhere else")

        Returns:
            Number of tokens revoked
        """
        statement = delete(AuthenticationToken).where(
            AuthenticationToken.user_id == user_id
        )
        if except_token_id is not None:
            statement = statement.where(AuthenticationToken.id != except_token_id)
        result = await self.session.execute(statement)
        await self.session.flush()
        return result.rowcount

    async def delete_old_session_tokens(self, user_id: str) -> int:
        """
        Purge the expired short-lived tokens of a user.

        Long-lived tokens are left alone.

        Returns:
            Number of tokens purged
        """
        min_date = utc_now() - timedelta(hours=settings.session_token_lifetime_hours)
        result = await self.session.execute(
            delete(AuthenticationToken).where(
                AuthenticationToken.user_id == user_id,
                AuthenticationToken.long_lasted.is_(False),
                or_(
                    AuthenticationToken.last_connection_at < min_date,
                    and_(
                        AuthenticationToken.last_connection_at.is_(None),
                        AuthenticationToken.created_at < min_date,
                    ),
                ),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    @staticmethod
    def is_expired(token: AuthenticationToken) -> bool:
        """
        Check whether a token is past its lifetime.

        Example:
            token = await token_repo.get(token_id)
            if token is None or token_repo.is_expired(token):
                ...  # anonymous
        """
        now = utc_now()
        if token.long_lasted:
            return as_utc(token.created_at) < now - timedelta(
                days=settings.long_token_lifetime_days
            )
        reference = as_utc(token.last_connection_at or token.created_at)
        return reference < now - timedelta(hours=settings.session_token_lifetime_hours)
