import pytest
from httpx import AsyncClient

from tests.fixtures.accounts import (
    audit_entries,
    bearer,
    create_user,
    csrf_headers,
    sign_in,
)

ADMIN_EMAIL = "owner@example.com"


async def admin_token(client: AsyncClient, db_session) -> str:
    """Allow-listed owner account, stored without the admin flag"""
    await create_user(db_session, ADMIN_EMAIL, name="Owner")
    return await sign_in(client, ADMIN_EMAIL)


@pytest.mark.asyncio
async def test_auth_logs_require_session(client: AsyncClient):
    response = await client.get("/admin/auth/logs")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"
    assert response.headers["X-RateLimit-Limit"] == "100"
    assert response.headers["X-RateLimit-Remaining"] == "99"


@pytest.mark.asyncio
async def test_auth_logs_require_admin(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    token = await sign_in(client, "jane@example.com")

    response = await client.get("/admin/auth/logs", headers=bearer(token))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ADMIN_REQUIRED"


@pytest.mark.asyncio
async def test_recent_logs(client: AsyncClient, db_session):
    token = await admin_token(client, db_session)

    response = await client.get("/admin/auth/logs", headers=bearer(token))

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "recent"
    assert data["logs"][0]["action"] == "auth:signin:success"
    assert data["logs"][0]["email"] == ADMIN_EMAIL
    assert data["logs"][0]["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_auth_stats(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    await client.post(
        "/auth/signin", json={"email": "jane@example.com", "password": "wrong-pass"}
    )
    token = await admin_token(client, db_session)

    response = await client.get("/admin/auth/logs?type=stats", headers=bearer(token))

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["successful_sign_ins"] == 1
    assert stats["failed_sign_ins"] == 1
    assert stats["new_sign_ups"] == 0
    assert stats["success_rate"] == 50.0
    assert "logs" not in response.json()


@pytest.mark.asyncio
async def test_user_logs_require_user_id(client: AsyncClient, db_session):
    token = await admin_token(client, db_session)

    response = await client.get("/admin/auth/logs?type=user", headers=bearer(token))

    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "VALIDATION_ERROR",
        "message": "userId parameter required",
    }


@pytest.mark.asyncio
async def test_user_logs(client: AsyncClient, db_session):
    jane = await create_user(db_session, "jane@example.com")
    # Requests roll back the shared session and expire its instances
    jane_id = str(jane.id)
    await sign_in(client, "jane@example.com")
    token = await admin_token(client, db_session)

    response = await client.get(
        f"/admin/auth/logs?type=user&userId={jane_id}", headers=bearer(token)
    )

    assert response.status_code == 200
    logs = response.json()["logs"]
    assert [log["action"] for log in logs] == ["auth:signin:success"]
    assert logs[0]["user_id"] == jane_id


@pytest.mark.asyncio
async def test_failed_sign_ins_for_email(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    for _ in range(2):
        await client.post(
            "/auth/signin", json={"email": "jane@example.com", "password": "wrong-pass"}
        )
    await sign_in(client, "jane@example.com")
    token = await admin_token(client, db_session)

    response = await client.get(
        "/admin/auth/logs?type=failed&email=jane@example.com", headers=bearer(token)
    )

    assert response.status_code == 200
    logs = response.json()["logs"]
    assert len(logs) == 2
    assert all(log["success"] is False for log in logs)


@pytest.mark.asyncio
async def test_suspicious_activity_requires_ip(client: AsyncClient, db_session):
    token = await admin_token(client, db_session)

    response = await client.get("/admin/auth/logs?type=suspicious", headers=bearer(token))
    assert response.status_code == 400

    response = await client.get(
        "/admin/auth/logs?type=suspicious&ip=127.0.0.1", headers=bearer(token)
    )
    assert response.status_code == 200
    assert response.json()["logs"] == []


@pytest.mark.asyncio
async def test_promote_user(client: AsyncClient, db_session, session_factory):
    """Promotion

    Given an allow-listed admin and a regular customer
    When the admin promotes the customer
    Then the customer's next session is an admin session
    And the change is audited under the admin's identity
    """
    await create_user(db_session, "jane@example.com")
    headers = await csrf_headers(client, await admin_token(client, db_session))

    response = await client.post(
        "/admin/users/promote", json={"email": "jane@example.com"}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Successfully made jane@example.com an admin"
    assert response.json()["user"]["is_admin"] is True

    jane_token = await sign_in(client, "jane@example.com")
    session = await client.get("/auth/session", headers=bearer(jane_token))
    assert session.json()["state"] == "admin"

    entries = await audit_entries(session_factory, ADMIN_EMAIL)
    granted = [e for e in entries if e.action == "admin:role:granted"]
    assert granted[0].details["target_email"] == "jane@example.com"


@pytest.mark.asyncio
async def test_promote_requires_csrf(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    token = await admin_token(client, db_session)

    response = await client.post(
        "/admin/users/promote", json={"email": "jane@example.com"}, headers=bearer(token)
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INVALID_CSRF_TOKEN"


@pytest.mark.asyncio
async def test_promote_unknown_user(client: AsyncClient, db_session):
    headers = await csrf_headers(client, await admin_token(client, db_session))

    response = await client.post(
        "/admin/users/promote", json={"email": "ghost@example.com"}, headers=headers
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_customer_cannot_promote(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    headers = await csrf_headers(client, await sign_in(client, "jane@example.com"))

    response = await client.post(
        "/admin/users/promote", json={"email": "jane@example.com"}, headers=headers
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ADMIN_REQUIRED"


@pytest.mark.asyncio
async def test_revoke_admin(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com", is_admin=True)
    headers = await csrf_headers(client, await admin_token(client, db_session))

    response = await client.post(
        "/admin/users/revoke-admin", json={"email": "jane@example.com"}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Revoked admin access for jane@example.com"
    assert response.json()["user"]["is_admin"] is False


@pytest.mark.asyncio
async def test_allow_listed_admin_cannot_be_revoked(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com", is_admin=True)
    headers = await csrf_headers(client, await sign_in(client, "jane@example.com"))
    await create_user(db_session, ADMIN_EMAIL)

    response = await client.post(
        "/admin/users/revoke-admin", json={"email": ADMIN_EMAIL}, headers=headers
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ADMIN_ALLOW_LISTED"


@pytest.mark.asyncio
async def test_admin_cannot_revoke_self(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com", is_admin=True)
    headers = await csrf_headers(client, await sign_in(client, "jane@example.com"))

    response = await client.post(
        "/admin/users/revoke-admin", json={"email": "jane@example.com"}, headers=headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "CANNOT_DEMOTE_SELF"


@pytest.mark.asyncio
async def test_auth_logs_rate_limited(client: AsyncClient, db_session, session_factory):
    """Log reads share the general 100-per-15-minutes budget per IP"""
    token = await admin_token(client, db_session)

    for _ in range(100):
        response = await client.get("/admin/auth/logs?type=stats", headers=bearer(token))
        assert response.status_code == 200

    response = await client.get("/admin/auth/logs?type=stats", headers=bearer(token))

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    blocked = [
        e for e in await audit_entries(session_factory) if e.action == "auth:rate_limit:exceeded"
    ]
    assert blocked[0].details["endpoint"] == "admin-logs"
