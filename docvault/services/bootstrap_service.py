"""
Reference data seeding.

Creates the roles and the two reserved identities the application relies
on. Safe to run repeatedly: existing rows are left untouched. The initial
Alembic migration seeds the same data; this service covers databases created
with ``create_all`` (development and tests).
"""

import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.security import hash_password
from docvault.models import (
    ADMIN_ROLE_ID,
    ADMIN_USER_ID,
    GUEST_USER_ID,
    USER_ROLE_ID,
    BaseFunction,
    Role,
    RoleBaseFunction,
    User,
)

logger = logging.getLogger(__name__)


class BootstrapService:
    """Seeds roles, the administrator and the guest identity."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def ensure_defaults(self) -> None:
        """
        Create whatever reference data is missing.

        Seeded:
        - role "admin" granting BaseFunction.ADMIN, role "user" granting nothing
        - user "admin" with the default administrator password
        - user "guest", whose password is random and never used
        """
        created = []

        if await self.session.get(Role, ADMIN_ROLE_ID) is None:
            self.session.add(Role(id=ADMIN_ROLE_ID, name="Admin"))
            await self.session.flush()
            self.session.add(
                RoleBaseFunction(role_id=ADMIN_ROLE_ID, base_function=BaseFunction.ADMIN)
            )
            created.append("role:admin")

        if await self.session.get(Role, USER_ROLE_ID) is None:
            self.session.add(Role(id=USER_ROLE_ID, name="User"))
            created.append("role:user")

        await self.session.flush()

        if await self.session.get(User, ADMIN_USER_ID) is None:
            self.session.add(
                User(
                    id=ADMIN_USER_ID,
                    username="admin",
                    email="admin@localhost",
                    password_hash=hash_password(settings.default_admin_password),
                    default_password=True,
                    role_id=ADMIN_ROLE_ID,
                    storage_quota=settings.default_storage_quota,
                    onboarding=True,
                )
            )
            created.append("user:admin")

        if await self.session.get(User, GUEST_USER_ID) is None:
            self.session.add(
                User(
                    id=GUEST_USER_ID,
                    username=GUEST_USER_ID,
                    email="guest@localhost",
                    password_hash=hash_password(secrets.token_urlsafe(32)),
                    role_id=USER_ROLE_ID,
                    storage_quota=0,
                    onboarding=False,
                )
            )
            created.append("user:guest")

        await self.session.commit()

        if created:
            logger.info(f"Bootstrap created: {', '.join(created)}")
        else:
            logger.debug("Bootstrap: reference data already present")
