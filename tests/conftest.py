"""
Pytest configuration and fixtures for DocVault tests.

This module provides:
- Settings overrides (in-memory SQLite, cheap hashing, no background tasks)
- Database engine and session factory, seeded with the reference data
- Async HTTP client bound to the application
- Helpers to create users, documents, files and route models
"""

# Set environment variables BEFORE importing anything from docvault
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OUTBOX_DISPATCHER_ENABLED"] = "false"
os.environ["BOOTSTRAP_ON_STARTUP"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GUEST_LOGIN_ENABLED"] = "true"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "8192"
os.environ["ARGON2_PARALLELISM"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from docvault.core.config import settings
from docvault.core.database import create_database_engine, create_sessionmaker
from docvault.core.security import hash_password
from docvault.main import app
from docvault.models import USER_ROLE_ID, Base, Document, File, Group, RouteModel, User, UserGroup
from docvault.services import BootstrapService

DEFAULT_PASSWORD = "Passw0rd!"


# ============================================================================
# Database Fixtures
# ============================================================================
@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a fresh in-memory database for one test.

    Tables are created from the models and the reference data (roles,
    admin, guest) is seeded the same way the application does at startup.
    """
    engine = create_database_engine(settings.database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with create_sessionmaker(engine)() as session:
        await BootstrapService(session).ensure_defaults()

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Database session for repository and service tests."""
    async with session_factory() as session:
        yield session


# ============================================================================
# FastAPI Client Fixtures
# ============================================================================
@pytest_asyncio.fixture
async def client_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[Callable[[], AsyncClient], None]:
    """
    Build independent clients, each with its own cookie jar.

    Use this when a test needs several users logged in at the same time.
    """
    app.state.sessionmaker = session_factory
    clients: list[AsyncClient] = []

    def make_client() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield make_client

    for client in clients:
        await client.aclose()
    app.state.sessionmaker = None


@pytest_asyncio.fixture
async def async_client(client_factory: Callable[[], AsyncClient]) -> AsyncClient:
    """Async client for API tests."""
    return client_factory()


# ============================================================================
# Data Helpers
# ============================================================================
@pytest.fixture
def create_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[User]]:
    """
    Insert a user directly in the database.

    Usage:
        alice = await create_user("alice", storage_quota=1000)
    """

    async def _create(
        username: str,
        password: str = DEFAULT_PASSWORD,
        email: str | None = None,
        **fields: Any,
    ) -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                password_hash=hash_password(password),
                role_id=fields.pop("role_id", USER_ROLE_ID),
                storage_quota=fields.pop("storage_quota", 1_000_000),
                storage_current=fields.pop("storage_current", 0),
                **fields,
            )
            session.add(user)
            await session.commit()
            return user

    return _create


@pytest.fixture
def create_document(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[tuple[Document, list[File]]]]:
    """
    Insert a document owned by a user, with one file per given size.

    The owner's storage usage is increased by the file sizes.
    """

    async def _create(user: User, title: str = "Doc", file_sizes: tuple[int, ...] = ()):
        async with session_factory() as session:
            document = Document(user_id=user.id, title=title)
            session.add(document)
            await session.flush()

            files = [
                File(user_id=user.id, document_id=document.id, name=f"{title}-{i}", size=size)
                for i, size in enumerate(file_sizes)
            ]
            session.add_all(files)

            owner = await session.get(User, user.id)
            owner.storage_current += sum(file_sizes)
            await session.commit()
            return document, files

    return _create


@pytest.fixture
def create_route_model(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[RouteModel]]:
    """Insert a route model with one validation step assigned to a user."""

    async def _create(name: str, username: str) -> RouteModel:
        async with session_factory() as session:
            route_model = RouteModel(
                name=name,
                steps=[
                    {
                        "type": "VALIDATE",
                        "target": {"type": "USER", "name": username},
                        "name": "Check",
                    }
                ],
            )
            session.add(route_model)
            await session.commit()
            return route_model

    return _create


@pytest.fixture
def create_group(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Group]]:
    """Insert a group with the given members."""

    async def _create(name: str, *members: User) -> Group:
        async with session_factory() as session:
            group = Group(name=name)
            session.add(group)
            await session.flush()
            session.add_all([UserGroup(user_id=m.id, group_id=group.id) for m in members])
            await session.commit()
            return group

    return _create


# ============================================================================
# Authentication Helpers
# ============================================================================
@pytest.fixture
def login() -> Callable[..., Awaitable[str]]:
    """
    Log a client in and return the session token from the cookie.

    The cookie stays in the client's jar for the following requests.

    Usage:
        token = await login(client, "alice")
    """

    async def _login(
        client: AsyncClient,
        username: str,
        password: str = DEFAULT_PASSWORD,
        **extra: Any,
    ) -> str:
        response = await client.post(
            "/api/user/login",
            json={"username": username, "password": password, **extra},
        )
        assert response.status_code == 200, response.text
        return response.cookies[settings.cookie_name]

    return _login


@pytest_asyncio.fixture
async def admin_client(
    client_factory: Callable[[], AsyncClient],
    login: Callable[..., Awaitable[str]],
) -> AsyncClient:
    """Client logged in as the seeded administrator."""
    client = client_factory()
    await login(client, "admin", settings.default_admin_password)
    return client
