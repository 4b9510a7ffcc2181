"""
User repository: the credential store.

This module provides database operations for the User model, including
password verification, audited mutations and the account deletion cascade.
Every mutation records an audit entry carrying the acting user id.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.exceptions import AlreadyExistsError
from docvault.core.security import burn_password_check, hash_password, verify_password
from docvault.core.timeutils import utc_now
from docvault.models import AuditAction, User, UserGroup
from docvault.repositories.audit_repository import AuditLogRepository
from docvault.repositories.authentication_token_repository import (
    AuthenticationTokenRepository,
)
from docvault.repositories.base import BaseRepository
from docvault.repositories.document_repository import DocumentRepository, FileRepository
from docvault.repositories.group_repository import GroupRepository

logger = logging.getLogger(__name__)

# sort_column index -> column, as exposed by the user list endpoint
SORT_COLUMNS = {
    1: User.username,
    2: User.email,
    3: User.created_at,
    4: User.storage_current,
    5: User.storage_quota,
}


def _username_taken() -> AlreadyExistsError:
    return AlreadyExistsError(
        resource="User",
        message="Login already used",
        error_code="AlreadyExistingUsername",
    )


class UserRepository(BaseRepository[User]):
    """
    Repository for User model operations.

    Extends BaseRepository with:
    - Username lookups among non-deleted users
    - Fail-closed authentication
    - Audited create, update, password change and delete
    - Filtered and sorted listing for the admin user list
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserRepository.

        Args:
            session: Async database session
        """
        super().__init__(User, session)
        self.audit_repo = AuditLogRepository(session)

    async def get_active_by_username(self, username: str) -> User | None:
        """
        Get a non-deleted user by username.

        Disabled users are returned; callers decide what disabled means.

        Args:
            username: Username to search for

        Returns:
            User instance or None if not found
        """
        query = select(User).where(User.username == username)
        query = self._apply_soft_delete_filter(query)

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(self, user: User, password: str, actor_id: str | None) -> User:
        """
        Persist a new user with a hashed password.

        Args:
            user: Transient user (username, email, role, quota set)
            password: Plain text password, hashed before storage
            actor_id: Id of the user performing the creation

        Returns:
            The persisted user

        Raises:
            AlreadyExistsError: If a non-deleted user holds the username
        """
        if await self.get_active_by_username(user.username) is not None:
            raise _username_taken()

        user.password_hash = hash_password(password)
        user.default_password = password == settings.default_admin_password
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent registration
            logger.warning(f"Username uniqueness violated on insert: {user.username} ({e.orig})")
            raise _username_taken() from e

        await self.audit_repo.record(
            actor_id, AuditAction.CREATE, "user", user.id, description="User created"
        )
        return user

    async def update(self, user: User, actor_id: str | None = None) -> User:
        """
        Persist changes already applied to ``user`` and audit them.

        Args:
            user: Modified user
            actor_id: Id of the user performing the update
        """
        await self.session.flush()
        await self.audit_repo.record(
            actor_id, AuditAction.UPDATE, "user", user.id, description="User updated"
        )
        return user

    async def update_password(self, user: User, password: str, actor_id: str | None) -> User:
        """
        Replace a user's password.

        The plain text password is hashed and never logged or audited.
        """
        user.password_hash = hash_password(password)
        user.default_password = password == settings.default_admin_password
        await self.session.flush()
        await self.audit_repo.record(
            actor_id,
            AuditAction.PASSWORD_CHANGE,
            "user",
            user.id,
            description="Password changed",
        )
        return user

    async def update_onboarding(self, user: User) -> User:
        """Persist the onboarding flag (not audited)."""
        await self.session.flush()
        return user

    async def authenticate(self, username: str, password: str) -> User | None:
        """
        Check a username/password pair.

        Fails closed: unknown, deleted and disabled accounts, as well as hash
        mismatches, all return None. A hash is verified in every case so that
        timing does not reveal whether the account exists.

        Returns:
            The authenticated User, or None
        """
        user = await self.get_active_by_username(username)
        if user is None:
            burn_password_check(password)
            return None

        if not verify_password(password, user.password_hash):
            return None

        if user.is_disabled:
            return None

        return user

    async def delete(self, username: str, actor_id: str | None) -> User | None:
        """
        Soft delete a user and cascade to what they own.

        In the caller's transaction:
        - the user row is tombstoned
        - every authentication token of the user is hard-deleted
        - their documents and files are soft-deleted
        - their group memberships are removed

        Args:
            username: Username of the user to delete
            actor_id: Id of the user performing the deletion

        Returns:
            The deleted user, or None if no active user has this username
        """
        user = await self.get_active_by_username(username)
        if user is None:
            return None

        now = utc_now()
        user.deleted_at = now
        await self.session.flush()

        tokens = await AuthenticationTokenRepository(self.session).delete_by_user_id(user.id)
        documents = await DocumentRepository(self.session).soft_delete_by_user(user.id)
        files = await FileRepository(self.session).soft_delete_by_user(user.id)
        memberships = await GroupRepository(self.session).delete_memberships(user.id)

        await self.audit_repo.record(
            actor_id,
            AuditAction.DELETE,
            "user",
            user.id,
            description="User deleted",
            new_values={
                "tokens": tokens,
                "documents": documents,
                "files": files,
                "memberships": memberships,
            },
        )

        logger.info(
            f"User {username} deleted: tokens={tokens} documents={documents} "
            f"files={files} memberships={memberships}"
        )
        return user

    async def find_by_criteria(
        self,
        group_id: str | None = None,
        sort_column: int | None = None,
        asc: bool = True,
    ) -> list[User]:
        """
        List non-deleted users.

        Args:
            group_id: Only return members of this group
            sort_column: 1 username, 2 email, 3 creation date,
                4 storage used, 5 storage quota (default: username)
            asc: Ascending order when True

        Returns:
            List of User instances
        """
        query = select(User)
        query = self._apply_soft_delete_filter(query)

        if group_id is not None:
            query = query.join(UserGroup, UserGroup.user_id == User.id).where(
                UserGroup.group_id == group_id
            )

        column = SORT_COLUMNS.get(sort_column or 1, User.username)
        query = query.order_by(column.asc() if asc else column.desc())

        result = await self.session.execute(query)
        return list(result.scalars().all())
