"""
Integration tests for user management routes.

Tests cover:
- Registration by an administrator
- Self-service and administrator updates
- Disabling accounts, including the reserved ones
- User view and list
- Access control on admin-only routes
"""

import pytest
from httpx import AsyncClient

NEW_USER = {
    "username": "carol",
    "password": "Carol-Passw0rd",
    "email": "carol@example.com",
    "storage_quota": 1_000_000,
}


# ============================================================================
# Registration Tests
# ============================================================================
class TestRegister:
    """Test PUT /api/user."""

    @pytest.mark.asyncio
    async def test_register_then_login(self, admin_client: AsyncClient, client_factory, login):
        response = await admin_client.put("/api/user", json=NEW_USER)

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

        carol = client_factory()
        await login(carol, "carol", "Carol-Passw0rd")
        data = (await carol.get("/api/user")).json()
        assert data["email"] == "carol@example.com"
        assert data["storage_quota"] == 1_000_000
        assert data["onboarding"] is True

    @pytest.mark.asyncio
    async def test_duplicate_username(self, admin_client: AsyncClient, create_user):
        await create_user("carol")

        response = await admin_client.put("/api/user", json=NEW_USER)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "AlreadyExistingUsername"

    @pytest.mark.asyncio
    async def test_invalid_username(self, admin_client: AsyncClient):
        response = await admin_client.put("/api/user", json={**NEW_USER, "username": "car ol"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_short_password(self, admin_client: AsyncClient):
        response = await admin_client.put("/api/user", json={**NEW_USER, "password": "short"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_email(self, admin_client: AsyncClient):
        response = await admin_client.put("/api/user", json={**NEW_USER, "email": "not-an-email"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, async_client: AsyncClient, create_user, login):
        await create_user("alice")
        await login(async_client, "alice")

        response = await async_client.put("/api/user", json=NEW_USER)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous_forbidden(self, async_client: AsyncClient):
        response = await async_client.put("/api/user", json=NEW_USER)

        assert response.status_code == 403


# ============================================================================
# Update Tests
# ============================================================================
class TestUpdate:
    """Test POST /api/user and POST /api/user/{username}."""

    @pytest.mark.asyncio
    async def test_update_own_password(self, client_factory, create_user, login):
        await create_user("alice")
        client = client_factory()
        await login(client, "alice")

        response = await client.post("/api/user", json={"password": "New-Passw0rd"})

        assert response.status_code == 200
        await login(client_factory(), "alice", "New-Passw0rd")

    @pytest.mark.asyncio
    async def test_guest_cannot_update_self(self, async_client: AsyncClient, login):
        await login(async_client, "guest", "")

        response = await async_client.post("/api/user", json={"email": "g@example.com"})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_updates_quota_and_email(self, admin_client: AsyncClient, create_user):
        await create_user("alice")

        response = await admin_client.post(
            "/api/user/alice", json={"storage_quota": 42, "email": "a@example.org"}
        )

        assert response.status_code == 200
        data = (await admin_client.get("/api/user/alice")).json()
        assert data["storage_quota"] == 42
        assert data["email"] == "a@example.org"

    @pytest.mark.asyncio
    async def test_disable_and_enable(self, admin_client: AsyncClient, client_factory, login):
        response = await admin_client.put(
            "/api/user",
            json={**NEW_USER, "username": "alice", "password": "Passw0rd!"},
        )
        assert response.status_code == 200
        laptop, phone = client_factory(), client_factory()
        await login(laptop, "alice")
        await login(phone, "alice")

        assert (await phone.delete("/api/user/session")).status_code == 200
        assert len((await phone.get("/api/user/session")).json()["sessions"]) == 1

        await admin_client.post("/api/user/alice", json={"disabled": True})
        assert (await admin_client.get("/api/user/alice")).json()["disabled"] is True
        response = await client_factory().post(
            "/api/user/login", json={"username": "alice", "password": "Passw0rd!"}
        )
        assert response.status_code == 403

        await admin_client.post("/api/user/alice", json={"disabled": False})
        assert (await admin_client.get("/api/user/alice")).json()["disabled"] is False
        await login(client_factory(), "alice", "Passw0rd!")

    @pytest.mark.asyncio
    async def test_disable_kills_open_sessions(
        self, admin_client: AsyncClient, async_client: AsyncClient, create_user, login
    ):
        await create_user("alice")
        await login(async_client, "alice")

        await admin_client.post("/api/user/alice", json={"disabled": True})

        assert (await async_client.get("/api/user")).json()["anonymous"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", ["admin", "guest"])
    async def test_reserved_accounts_stay_enabled(self, admin_client: AsyncClient, username):
        response = await admin_client.post(f"/api/user/{username}", json={"disabled": True})

        assert response.status_code == 200
        assert (await admin_client.get(f"/api/user/{username}")).json()["disabled"] is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, admin_client: AsyncClient):
        response = await admin_client.post("/api/user/nobody", json={"storage_quota": 1})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "UserNotFound"


# ============================================================================
# View and List Tests
# ============================================================================
class TestViewAndList:
    """Test GET /api/user/{username} and GET /api/user/list."""

    @pytest.mark.asyncio
    async def test_view(self, async_client: AsyncClient, create_user, create_group, login):
        alice = await create_user("alice", storage_quota=500)
        await create_user("bob")
        await create_group("staff", alice)
        await login(async_client, "bob")

        response = await async_client.get("/api/user/alice")

        assert response.status_code == 200
        assert response.json() == {
            "username": "alice",
            "groups": ["staff"],
            "email": "alice@example.com",
            "totp_enabled": False,
            "storage_quota": 500,
            "storage_current": 0,
            "disabled": False,
        }

    @pytest.mark.asyncio
    async def test_view_unknown(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/user/nobody")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "UserNotFound"

    @pytest.mark.asyncio
    async def test_view_anonymous(self, async_client: AsyncClient):
        response = await async_client.get("/api/user/admin")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_sorted(self, admin_client: AsyncClient, create_user):
        await create_user("alice", storage_quota=10)
        await create_user("bob", storage_quota=20)

        by_name = (await admin_client.get("/api/user/list")).json()["users"]
        by_quota = (
            await admin_client.get("/api/user/list", params={"sort_column": 5, "asc": False})
        ).json()["users"]

        assert [u["username"] for u in by_name] == ["admin", "alice", "bob", "guest"]
        assert by_quota[-1]["username"] == "guest"
        assert by_quota[-2]["username"] == "alice"

    @pytest.mark.asyncio
    async def test_list_group_filter(self, admin_client: AsyncClient, create_user, create_group):
        alice = await create_user("alice")
        await create_user("bob")
        await create_group("staff", alice)

        members = (await admin_client.get("/api/user/list", params={"group": "staff"})).json()
        unknown = (await admin_client.get("/api/user/list", params={"group": "nope"})).json()

        assert [u["username"] for u in members["users"]] == ["alice"]
        assert len(unknown["users"]) == 4

    @pytest.mark.asyncio
    async def test_list_invalid_sort_column(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/user/list", params={"sort_column": 9})

        assert response.status_code == 422
