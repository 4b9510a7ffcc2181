"""
User management service.

This module provides:
- Registration and updates (self-service and administrator)
- Caller info, user view and user list
- Onboarding completion
- Account deletion with its cascade and deferred cleanup events
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from docvault.core.timeutils import utc_now
from docvault.events.events import DocumentDeletedEvent, FileDeletedEvent
from docvault.events.outbox import EventOutbox
from docvault.models import (
    ADMIN_USER_ID,
    GUEST_USER_ID,
    USER_ROLE_ID,
    AuditAction,
    BaseFunction,
    User,
)
from docvault.repositories.audit_repository import AuditLogRepository
from docvault.repositories.document_repository import DocumentRepository, FileRepository
from docvault.repositories.group_repository import GroupRepository
from docvault.repositories.role_repository import RoleRepository
from docvault.repositories.route_model_repository import RouteModelRepository
from docvault.repositories.user_repository import UserRepository
from docvault.schemas.auth import Principal
from docvault.schemas.user import (
    UserAdminUpdate,
    UserCreate,
    UserInfoResponse,
    UserListItem,
    UserListResponse,
    UserSelfUpdate,
    UserViewResponse,
)

logger = logging.getLogger(__name__)


def _user_not_found() -> NotFoundError:
    return NotFoundError(
        resource="User",
        message="The user does not exist",
        error_code="UserNotFound",
    )


class UserService:
    """
    Service class for user management operations.

    All methods require an active database session. Methods that write
    commit the session themselves once every write of the operation is done.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserService with database session.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)
        self.group_repo = GroupRepository(session)
        self.document_repo = DocumentRepository(session)
        self.file_repo = FileRepository(session)
        self.route_model_repo = RouteModelRepository(session)
        self.audit_repo = AuditLogRepository(session)
        self.outbox = EventOutbox(session)

    # -------------------------------------------------------------------------
    # Creation and updates
    # -------------------------------------------------------------------------

    async def register(self, data: UserCreate, principal: Principal) -> User:
        """
        Create a user (administrators).

        New users get the default role and the onboarding tour.

        Raises:
            AlreadyExistsError: If the username is already in use
        """
        user = User(
            username=data.username,
            email=data.email,
            role_id=USER_ROLE_ID,
            storage_quota=data.storage_quota,
            storage_current=0,
            onboarding=True,
        )
        user = await self.user_repo.create(user, data.password, principal.user_id)
        await self.session.commit()

        logger.info(f"User {user.username} registered by {principal.username}")
        return user

    async def update_current_user(self, principal: Principal, data: UserSelfUpdate) -> User:
        """
        Update the caller's email and/or password.

        Raises:
            ForbiddenError: For the guest identity
        """
        if principal.is_guest:
            raise ForbiddenError()

        user = await self.user_repo.get_by_id(principal.user_id)
        if user is None:
            raise ForbiddenError()

        if data.email is not None:
            user.email = data.email
        user = await self.user_repo.update(user, principal.user_id)

        if data.password:
            await self.user_repo.update_password(user, data.password, principal.user_id)

        await self.session.commit()
        return user

    async def update_user(
        self,
        username: str,
        data: UserAdminUpdate,
        principal: Principal,
    ) -> User:
        """
        Update any user (administrators).

        Disabling the guest identity or an administrator is silently turned
        into "enabled": the request succeeds and the account stays enabled.
        The disable date only changes when the state actually flips.

        Raises:
            NotFoundError: If no active user has this username
        """
        user = await self.user_repo.get_active_by_username(username)
        if user is None:
            raise _user_not_found()

        if data.email is not None:
            user.email = data.email
        if data.storage_quota is not None:
            user.storage_quota = data.storage_quota

        if data.disabled is not None:
            disabled = data.disabled
            target_functions = await self.role_repo.get_base_functions(user.role_id)
            if user.id == GUEST_USER_ID or BaseFunction.ADMIN in target_functions:
                disabled = False

            if disabled and user.disabled_at is None:
                user.disabled_at = utc_now()
                await self.audit_repo.record(
                    principal.user_id, AuditAction.ACCOUNT_DISABLE, "user", user.id
                )
            elif not disabled and user.disabled_at is not None:
                user.disabled_at = None
                await self.audit_repo.record(
                    principal.user_id, AuditAction.ACCOUNT_ENABLE, "user", user.id
                )

        user = await self.user_repo.update(user, principal.user_id)

        if data.password:
            await self.user_repo.update_password(user, data.password, principal.user_id)

        await self.session.commit()
        return user

    async def mark_onboarded(self, principal: Principal) -> None:
        """Record that the caller finished the onboarding tour."""
        user = await self.user_repo.get_by_id(principal.user_id)
        if user is None:
            raise ForbiddenError()

        user.onboarding = False
        await self.user_repo.update_onboarding(user)
        await self.session.commit()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _admin_has_default_password(self) -> bool:
        admin = await self.user_repo.get_by_id(ADMIN_USER_ID)
        if admin is None:
            return False
        return admin.default_password

    async def get_info(self, principal: Principal | None) -> UserInfoResponse:
        """
        Describe the caller.

        Anonymous callers learn whether the administrator still uses the
        default password, so the login page can warn about it.
        """
        if principal is None:
            return UserInfoResponse(
                anonymous=True,
                is_default_password=await self._admin_has_default_password(),
            )

        user = await self.user_repo.get_by_id(principal.user_id)
        if user is None:
            raise ForbiddenError()

        return UserInfoResponse(
            anonymous=False,
            username=user.username,
            email=user.email,
            storage_quota=user.storage_quota,
            storage_current=user.storage_current,
            totp_enabled=user.totp_enabled,
            onboarding=user.onboarding,
            base_functions=sorted(bf.value for bf in principal.base_functions),
            groups=await self.group_repo.get_names_for_user(user.id),
            is_default_password=principal.is_admin and user.default_password,
        )

    async def view_user(self, username: str) -> UserViewResponse:
        """
        Describe one user.

        Raises:
            NotFoundError: If no active user has this username
        """
        user = await self.user_repo.get_active_by_username(username)
        if user is None:
            raise _user_not_found()

        return UserViewResponse(
            username=user.username,
            groups=await self.group_repo.get_names_for_user(user.id),
            email=user.email,
            totp_enabled=user.totp_enabled,
            storage_quota=user.storage_quota,
            storage_current=user.storage_current,
            disabled=user.is_disabled,
        )

    async def list_users(
        self,
        sort_column: int | None = None,
        asc: bool = True,
        group_name: str | None = None,
    ) -> UserListResponse:
        """
        List active users.

        An unknown group name is ignored rather than yielding an empty list.
        """
        group_id = None
        if group_name:
            group = await self.group_repo.get_active_by_name(group_name)
            if group is not None:
                group_id = group.id

        users = await self.user_repo.find_by_criteria(
            group_id=group_id, sort_column=sort_column, asc=asc
        )
        return UserListResponse(
            users=[
                UserListItem(
                    id=user.id,
                    username=user.username,
                    email=user.email,
                    totp_enabled=user.totp_enabled,
                    storage_quota=user.storage_quota,
                    storage_current=user.storage_current,
                    create_date=user.created_at,
                    disabled=user.is_disabled,
                )
                for user in users
            ]
        )

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    async def delete_current_user(self, principal: Principal) -> None:
        """
        Delete the caller's own account.

        Raises:
            ConflictError: For administrators, the guest identity, or a user
                assigned to a route model
        """
        if principal.is_admin or principal.is_guest:
            raise ConflictError(
                message="This user cannot be deleted",
                error_code="ForbiddenError",
            )

        await self._check_route_models(principal.username)
        await self._delete_with_cascade(principal.user_id, principal.username, principal)

    async def delete_user(self, username: str, principal: Principal) -> None:
        """
        Delete any account (administrators).

        Raises:
            ConflictError: For the guest identity, an administrator, or a user
                assigned to a route model
            NotFoundError: If no active user has this username
        """
        if username == GUEST_USER_ID:
            raise ConflictError(
                message="The guest user cannot be deleted",
                error_code="ForbiddenError",
            )

        user = await self.user_repo.get_active_by_username(username)
        if user is None:
            raise _user_not_found()

        target_functions = await self.role_repo.get_base_functions(user.role_id)
        if BaseFunction.ADMIN in target_functions:
            raise ConflictError(
                message="The admin user cannot be deleted",
                error_code="ForbiddenError",
            )

        await self._check_route_models(username)
        await self._delete_with_cascade(user.id, user.username, principal)

    async def _check_route_models(self, username: str) -> None:
        route_model = await self.route_model_repo.find_referencing_user(username)
        if route_model is not None:
            raise ConflictError(
                message=route_model.name,
                error_code="UserUsedInRouteModel",
                details={"route_model": route_model.name},
            )

    async def _delete_with_cascade(
        self,
        user_id: str,
        username: str,
        principal: Principal,
    ) -> None:
        # Snapshot ownership before the cascade soft-deletes it
        document_ids = [document.id for document in await self.document_repo.find_by_user(user_id)]
        files = [(file.id, file.size) for file in await self.file_repo.find_by_user(user_id)]

        await self.user_repo.delete(username, principal.user_id)

        for document_id in document_ids:
            await self.outbox.enqueue(
                DocumentDeletedEvent(document_id=document_id, user_id=principal.user_id)
            )
        for file_id, size in files:
            await self.outbox.enqueue(
                FileDeletedEvent(file_id=file_id, user_id=principal.user_id, size=size)
            )

        await self.session.commit()
        logger.info(
            f"User {username} deleted by {principal.username}: "
            f"{len(document_ids)} document and {len(files)} file events queued"
        )
