"""
Tests for UserRepository.

Tests cover:
- Username uniqueness among non-deleted users
- Fail-closed authentication
- The deletion cascade
- Filtered and sorted listing
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.exceptions import AlreadyExistsError
from docvault.core.timeutils import utc_now
from docvault.models import (
    AuditAction,
    AuditLog,
    AuthenticationToken,
    Document,
    File,
    Group,
    User,
    UserGroup,
)
from docvault.repositories.user_repository import UserRepository


def _new_user(username: str, **fields) -> User:
    return User(
        username=username,
        email=fields.pop("email", f"{username}@example.com"),
        role_id="user",
        storage_quota=fields.pop("storage_quota", 1000),
        **fields,
    )


class TestCreate:
    """Tests for create."""

    @pytest.mark.asyncio
    async def test_create_hashes_password_and_audits(self, db_session: AsyncSession):
        repo = UserRepository(db_session)

        user = await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")

        assert user.password_hash.startswith("$argon2id$")
        logs = await db_session.execute(
            select(AuditLog).where(AuditLog.entity_id == user.id)
        )
        log = logs.scalar_one()
        assert log.action == AuditAction.CREATE
        assert log.user_id == "admin"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")

        with pytest.raises(AlreadyExistsError) as exc_info:
            await repo.create(_new_user("alice", email="other@example.com"), "Passw0rd!", "admin")

        assert exc_info.value.error_code == "AlreadyExistingUsername"

    @pytest.mark.asyncio
    async def test_username_reusable_after_deletion(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        first = await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")
        await repo.delete("alice", actor_id="admin")

        second = await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")

        assert second.id != first.id
        assert (await repo.get_active_by_username("alice")).id == second.id


class TestUpdatePassword:
    """Tests for update_password."""

    @pytest.mark.asyncio
    async def test_tracks_default_admin_password(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        admin = await repo.get_by_id("admin")
        assert admin.default_password is True

        await repo.update_password(admin, "Another-passw0rd", actor_id="admin")
        assert admin.default_password is False

        await repo.update_password(admin, settings.default_admin_password, actor_id="admin")
        assert admin.default_password is True


class TestAuthenticate:
    """Tests for authenticate."""

    @pytest.mark.asyncio
    async def test_correct_password(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")

        user = await repo.authenticate("alice", "Passw0rd!")

        assert user is not None
        assert user.username == "alice"

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")

        assert await repo.authenticate("alice", "wrong-password") is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session: AsyncSession):
        assert await UserRepository(db_session).authenticate("nobody", "Passw0rd!") is None

    @pytest.mark.asyncio
    async def test_disabled_user(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        await repo.create(_new_user("alice", disabled_at=utc_now()), "Passw0rd!", "admin")

        assert await repo.authenticate("alice", "Passw0rd!") is None

    @pytest.mark.asyncio
    async def test_deleted_user(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")
        await repo.delete("alice", actor_id="admin")

        assert await repo.authenticate("alice", "Passw0rd!") is None


class TestDelete:
    """Tests for the deletion cascade."""

    @pytest.mark.asyncio
    async def test_cascade(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        alice = await repo.create(_new_user("alice"), "Passw0rd!", actor_id="admin")
        bob = await repo.create(_new_user("bob"), "Passw0rd!", actor_id="admin")
        group = Group(name="staff")
        db_session.add(group)
        await db_session.flush()
        document = Document(user_id=alice.id, title="Invoice")
        bob_document = Document(user_id=bob.id, title="Memo")
        db_session.add_all([document, bob_document])
        await db_session.flush()
        db_session.add_all(
            [
                File(user_id=alice.id, document_id=document.id, size=100),
                AuthenticationToken(user_id=alice.id),
                AuthenticationToken(user_id=bob.id),
                UserGroup(user_id=alice.id, group_id=group.id),
            ]
        )
        await db_session.flush()

        deleted = await repo.delete("alice", actor_id="admin")

        assert deleted.deleted_at is not None
        assert await repo.get_active_by_username("alice") is None

        async def count(model, *criteria):
            query = select(func.count()).select_from(model).where(*criteria)
            return (await db_session.execute(query)).scalar_one()

        assert await count(AuthenticationToken, AuthenticationToken.user_id == alice.id) == 0
        assert await count(AuthenticationToken, AuthenticationToken.user_id == bob.id) == 1
        assert await count(Document, Document.user_id == alice.id, Document.deleted_at.is_(None)) == 0
        assert await count(Document, Document.user_id == bob.id, Document.deleted_at.is_(None)) == 1
        assert await count(File, File.user_id == alice.id, File.deleted_at.is_(None)) == 0
        assert await count(UserGroup, UserGroup.user_id == alice.id) == 0

        log = (
            await db_session.execute(
                select(AuditLog).where(
                    AuditLog.entity_id == alice.id, AuditLog.action == AuditAction.DELETE
                )
            )
        ).scalar_one()
        assert log.user_id == "admin"
        assert log.new_values["tokens"] == 1

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session: AsyncSession):
        assert await UserRepository(db_session).delete("nobody", actor_id="admin") is None


class TestFindByCriteria:
    """Tests for the user list query."""

    @pytest.mark.asyncio
    async def test_default_sort_by_username_excludes_deleted(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        for name in ("carol", "alice", "bob"):
            await repo.create(_new_user(name), "Passw0rd!", actor_id="admin")
        await repo.delete("bob", actor_id="admin")

        users = await repo.find_by_criteria()

        # admin and guest are seeded reference users
        assert [u.username for u in users] == ["admin", "alice", "carol", "guest"]

    @pytest.mark.asyncio
    async def test_sort_by_quota_descending(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        await repo.create(_new_user("small", storage_quota=10), "Passw0rd!", "admin")
        await repo.create(
            _new_user("huge", storage_quota=10**15), "Passw0rd!", "admin"
        )

        users = await repo.find_by_criteria(sort_column=5, asc=False)

        assert users[0].username == "huge"

    @pytest.mark.asyncio
    async def test_group_filter(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        alice = await repo.create(_new_user("alice"), "Passw0rd!", "admin")
        await repo.create(_new_user("bob"), "Passw0rd!", "admin")
        group = Group(name="staff")
        db_session.add(group)
        await db_session.flush()
        db_session.add(UserGroup(user_id=alice.id, group_id=group.id))
        await db_session.flush()

        users = await repo.find_by_criteria(group_id=group.id)

        assert [u.username for u in users] == ["alice"]

    @pytest.mark.asyncio
    async def test_sort_by_creation_date(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        older = await repo.create(
            _new_user("older", created_at=utc_now() - timedelta(days=400)), "Passw0rd!", "admin"
        )

        users = await repo.find_by_criteria(sort_column=3, asc=True)

        assert users[0].id == older.id
