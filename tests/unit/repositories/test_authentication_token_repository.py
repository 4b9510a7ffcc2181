"""
Tests for AuthenticationTokenRepository.

Tests cover:
- Token issuance and client metadata truncation
- Listing order
- Expiry rules for short-lived and long-lived tokens
- Revocation and pruning
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.config import settings
from docvault.core.security import hash_password
from docvault.core.timeutils import utc_now
from docvault.models import AuthenticationToken, User
from docvault.repositories.authentication_token_repository import (
    AuthenticationTokenRepository,
)


async def _add_user(session: AsyncSession, username: str) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password("Passw0rd!"),
        role_id="user",
    )
    session.add(user)
    await session.flush()
    return user


async def _add_token(session: AsyncSession, user: User, age: timedelta, **fields) -> AuthenticationToken:
    token = AuthenticationToken(user_id=user.id, created_at=utc_now() - age, **fields)
    session.add(token)
    await session.flush()
    return token


class TestCreate:
    """Tests for token issuance."""

    @pytest.mark.asyncio
    async def test_create_returns_bearer_value(self, db_session: AsyncSession):
        user = await _add_user(db_session, "alice")
        repo = AuthenticationTokenRepository(db_session)

        token_id = await repo.create(user.id, long_lasted=False, ip="10.0.0.1", user_agent="pytest")

        token = await repo.get(token_id)
        assert len(token_id) == 43
        assert token.user_id == user.id
        assert token.ip == "10.0.0.1"
        assert token.long_lasted is False
        assert token.last_connection_at is None

    @pytest.mark.asyncio
    async def test_client_metadata_truncated(self, db_session: AsyncSession):
        user = await _add_user(db_session, "alice")
        repo = AuthenticationTokenRepository(db_session)

        token_id = await repo.create(
            user.id, long_lasted=False, ip="f" * 100, user_agent="Mozilla " * 300
        )

        token = await repo.get(token_id)
        assert len(token.ip) == 45
        assert len(token.user_agent) == 1000
        assert token.user_agent.endswith("...")

    @pytest.mark.asyncio
    async def test_unknown_token(self, db_session: AsyncSession):
        assert await AuthenticationTokenRepository(db_session).get("nope") is None


class TestListing:
    """Tests for get_by_user_id."""

    @pytest.mark.asyncio
    async def test_newest_first_and_per_user(self, db_session: AsyncSession):
        alice = await _add_user(db_session, "alice")
        bob = await _add_user(db_session, "bob")
        old = await _add_token(db_session, alice, timedelta(hours=5))
        new = await _add_token(db_session, alice, timedelta(hours=1))
        await _add_token(db_session, bob, timedelta(hours=1))

        tokens = await AuthenticationTokenRepository(db_session).get_by_user_id(alice.id)

        assert [t.id for t in tokens] == [new.id, old.id]


class TestExpiry:
    """Tests for is_expired."""

    def test_short_lived_never_used_expires_after_lifetime(self):
        age = timedelta(hours=settings.session_token_lifetime_hours + 1)
        token = AuthenticationToken(long_lasted=False, created_at=utc_now() - age)

        assert AuthenticationTokenRepository.is_expired(token) is True

    def test_short_lived_recently_used_is_valid(self):
        age = timedelta(hours=settings.session_token_lifetime_hours + 1)
        token = AuthenticationToken(
            long_lasted=False,
            created_at=utc_now() - age,
            last_connection_at=utc_now() - timedelta(minutes=5),
        )

        assert AuthenticationTokenRepository.is_expired(token) is False

    def test_long_lived_survives_session_lifetime(self):
        token = AuthenticationToken(long_lasted=True, created_at=utc_now() - timedelta(days=2))

        assert AuthenticationTokenRepository.is_expired(token) is False

    def test_long_lived_expires_after_cookie_max_age(self):
        token = AuthenticationToken(long_lasted=True, created_at=utc_now() - timedelta(days=2))

        with patch.object(settings, "long_token_lifetime_days", 1):
            assert AuthenticationTokenRepository.is_expired(token) is True

    def test_naive_datetimes_are_utc(self):
        naive = (utc_now() - timedelta(minutes=1)).replace(tzinfo=None)
        token = AuthenticationToken(long_lasted=False, created_at=naive)

        assert AuthenticationTokenRepository.is_expired(token) is False


class TestRevocation:
    """Tests for delete_by_user_id and delete_old_session_tokens."""

    @pytest.mark.asyncio
    async def test_delete_all_but_current(self, db_session: AsyncSession):
        alice = await _add_user(db_session, "alice")
        current = await _add_token(db_session, alice, timedelta(minutes=1))
        await _add_token(db_session, alice, timedelta(minutes=2))
        await _add_token(db_session, alice, timedelta(minutes=3))
        repo = AuthenticationTokenRepository(db_session)

        revoked = await repo.delete_by_user_id(alice.id, except_token_id=current.id)

        assert revoked == 2
        assert [t.id for t in await repo.get_by_user_id(alice.id)] == [current.id]

    @pytest.mark.asyncio
    async def test_prune_only_expired_short_lived(self, db_session: AsyncSession):
        alice = await _add_user(db_session, "alice")
        bob = await _add_user(db_session, "bob")
        stale = timedelta(hours=settings.session_token_lifetime_hours + 2)
        expired = await _add_token(db_session, alice, stale)
        remembered = await _add_token(db_session, alice, stale, long_lasted=True)
        used = await _add_token(db_session, alice, stale, last_connection_at=utc_now())
        fresh = await _add_token(db_session, alice, timedelta(minutes=1))
        other = await _add_token(db_session, bob, stale)
        repo = AuthenticationTokenRepository(db_session)

        pruned = await repo.delete_old_session_tokens(alice.id)

        assert pruned == 1
        remaining = set(
            (await db_session.execute(select(AuthenticationToken.id))).scalars().all()
        )
        assert expired.id not in remaining
        assert {remembered.id, used.id, fresh.id, other.id} <= remaining

    @pytest.mark.asyncio
    async def test_update_last_connection_date(self, db_session: AsyncSession):
        alice = await _add_user(db_session, "alice")
        token = await _add_token(db_session, alice, timedelta(minutes=1))
        repo = AuthenticationTokenRepository(db_session)

        await repo.update_last_connection_date(token.id)

        refreshed = await repo.get(token.id)
        assert refreshed.last_connection_at is not None
