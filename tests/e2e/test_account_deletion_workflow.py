"""
End-to-End tests for the account deletion workflow.

This module follows a user's account from registration to deletion:
1. Administrator registers the user
2. The user logs in from two devices and owns documents and files
3. A route model assigned to the user blocks the deletion
4. Once unassigned, the user deletes the account
5. Every session dies, the username becomes free again
6. The outbox releases stored files and quota in the background
"""

from pathlib import Path

import pytest
from sqlalchemy import delete, select

from docvault.events import OutboxDispatcher, build_default_handlers
from docvault.models import Document, File, OutboxEvent, RouteModel, User


@pytest.mark.asyncio
async def test_self_deletion_workflow(
    admin_client,
    client_factory,
    login,
    create_document,
    create_route_model,
    session_factory,
    tmp_path: Path,
):
    # Step 1: Administrator registers alice
    response = await admin_client.put(
        "/api/user",
        json={
            "username": "alice",
            "password": "Alice-Passw0rd",
            "email": "alice@example.com",
            "storage_quota": 10_000,
        },
    )
    assert response.status_code == 200

    # Step 2: alice logs in twice and owns content
    laptop, phone = client_factory(), client_factory()
    await login(laptop, "alice", "Alice-Passw0rd")
    await login(phone, "alice", "Alice-Passw0rd")

    async with session_factory() as session:
        alice = (
            await session.execute(select(User).where(User.username == "alice"))
        ).scalar_one()
    await create_document(alice, "Invoice", file_sizes=(1000, 2000))
    await create_document(alice, "Contract", file_sizes=(500,))
    for suffix in ("", "_web", "_thumb"):
        for name in ("stray-1", "stray-2"):
            (tmp_path / f"{name}{suffix}").write_bytes(b"other user content")

    info = (await laptop.get("/api/user")).json()
    assert info["storage_current"] == 3500

    # Step 3: A route model still assigns alice a step
    await create_route_model("Invoice approval", "alice")
    response = await laptop.delete("/api/user")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "UserUsedInRouteModel"
    assert response.json()["error"]["details"] == {"route_model": "Invoice approval"}
    assert (await laptop.get("/api/user")).json()["anonymous"] is False

    # Step 4: Once unassigned, alice deletes the account
    async with session_factory() as session:
        await session.execute(delete(RouteModel))
        await session.commit()

    async with session_factory() as session:
        files = (
            await session.execute(select(File).where(File.user_id == alice.id))
        ).scalars().all()
    for file in files:
        (tmp_path / file.id).write_bytes(b"x" * file.size)

    response = await laptop.delete("/api/user")
    assert response.status_code == 200

    # Step 5: Every session is gone and the username is free
    for client in (laptop, phone):
        assert (await client.get("/api/user")).json()["anonymous"] is True
    response = await client_factory().post(
        "/api/user/login", json={"username": "alice", "password": "Alice-Passw0rd"}
    )
    assert response.status_code == 403

    response = await admin_client.put(
        "/api/user",
        json={
            "username": "alice",
            "password": "Alice-Passw0rd",
            "email": "alice2@example.com",
            "storage_quota": 10_000,
        },
    )
    assert response.status_code == 200

    async with session_factory() as session:
        documents = (
            await session.execute(select(Document).where(Document.user_id == alice.id))
        ).scalars().all()
        assert all(d.deleted_at is not None for d in documents)
        events = (await session.execute(select(OutboxEvent))).scalars().all()
        event_types = sorted(e.event_type for e in events)
        assert event_types == ["DocumentDeletedEvent"] * 2 + ["FileDeletedEvent"] * 3

    # Step 6: Background delivery releases files and quota
    dispatcher = OutboxDispatcher(session_factory, build_default_handlers(storage_dir=tmp_path))
    assert await dispatcher.run_once() == 5

    async with session_factory() as session:
        old_alice = await session.get(User, alice.id)
        assert old_alice.deleted_at is not None
        assert old_alice.storage_current == 0
    remaining = sorted(p.name for p in tmp_path.iterdir())
    assert remaining == sorted(
        f"{name}{suffix}" for name in ("stray-1", "stray-2") for suffix in ("", "_web", "_thumb")
    )


@pytest.mark.asyncio
async def test_admin_deletes_user(admin_client, client_factory, create_user, login, session_factory):
    alice = await create_user("alice")
    alice_client = client_factory()
    await login(alice_client, "alice")

    # The reserved accounts cannot be deleted
    response = await admin_client.delete("/api/user/guest")
    assert response.status_code == 409
    response = await admin_client.delete("/api/user/admin")
    assert response.status_code == 409
    response = await admin_client.delete("/api/user")
    assert response.status_code == 409

    response = await admin_client.delete("/api/user/alice")
    assert response.status_code == 200
    assert (await alice_client.get("/api/user")).json()["anonymous"] is True

    response = await admin_client.delete("/api/user/alice")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "UserNotFound"

    # Non-administrators cannot delete other users
    await create_user("bob")
    await create_user("carol")
    bob_client = client_factory()
    await login(bob_client, "bob")
    response = await bob_client.delete("/api/user/carol")
    assert response.status_code == 403

    async with session_factory() as session:
        assert (await session.get(User, alice.id)).deleted_at is not None
