import pytest
from httpx import AsyncClient

from tests.fixtures.accounts import (
    PASSWORD,
    audit_entries,
    bearer,
    create_user,
    csrf_headers,
    sign_in,
)

RESET_MESSAGE = "If an account exists with this email, you will receive a password reset code."


@pytest.mark.asyncio
async def test_password_reset_flow(client: AsyncClient, db_session, session_factory, outbox):
    """Password reset end to end

    Given a registered user
    When they request a reset and submit the emailed code with a new password
    Then the new password works and the old one does not
    """
    await create_user(db_session, "jane@example.com")

    response = await client.post("/auth/reset-password", json={"email": "jane@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == RESET_MESSAGE
    assert outbox.sent[-1].subject == "Reset Your Password - Storefront"

    code = outbox.last_code("jane@example.com")
    response = await client.post(
        "/auth/update-password",
        json={"email": "jane@example.com", "code": code, "new_password": "brand-new-pass"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Password updated successfully"

    await sign_in(client, "jane@example.com", "brand-new-pass")
    response = await client.post(
        "/auth/signin", json={"email": "jane@example.com", "password": PASSWORD}
    )
    assert response.status_code == 401

    actions = [e.action for e in await audit_entries(session_factory, "jane@example.com")]
    assert "auth:password_reset:request" in actions
    assert "auth:password_reset:success" in actions


@pytest.mark.asyncio
async def test_password_reset_unknown_email(client: AsyncClient, session_factory, outbox):
    """Unknown emails get the same answer and no email"""
    response = await client.post("/auth/reset-password", json={"email": "ghost@example.com"})

    assert response.status_code == 200
    assert response.json()["message"] == RESET_MESSAGE
    assert outbox.sent == []

    entries = await audit_entries(session_factory, "ghost@example.com")
    assert entries[0].action == "auth:password_reset:request"
    assert entries[0].success is False
    assert entries[0].error == "Unknown email"


@pytest.mark.asyncio
async def test_update_password_wrong_code(client: AsyncClient, db_session, outbox):
    await create_user(db_session, "jane@example.com")
    await client.post("/auth/reset-password", json={"email": "jane@example.com"})
    code = outbox.last_code("jane@example.com")
    wrong = "000000" if code != "000000" else "111111"

    response = await client.post(
        "/auth/update-password",
        json={"email": "jane@example.com", "code": wrong, "new_password": "brand-new-pass"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_OR_EXPIRED_CODE"


@pytest.mark.asyncio
async def test_verification_code_cannot_reset_password(client: AsyncClient, db_session, outbox):
    """Codes are bound to their purpose"""
    await client.post(
        "/auth/signup",
        json={"name": "Jane Doe", "email": "jane@example.com", "password": PASSWORD},
    )
    code = outbox.last_code("jane@example.com")

    response = await client.post(
        "/auth/update-password",
        json={"email": "jane@example.com", "code": code, "new_password": "brand-new-pass"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_sign_in_failures(client: AsyncClient, db_session, session_factory):
    await create_user(db_session, "jane@example.com")
    await create_user(db_session, "pending@example.com", email_verified=False)

    response = await client.post(
        "/auth/signin", json={"email": "jane@example.com", "password": "wrong-pass"}
    )
    assert response.status_code == 401
    assert response.json()["error"] == {
        "code": "INVALID_CREDENTIALS",
        "message": "Invalid email or password",
    }

    response = await client.post(
        "/auth/signin", json={"email": "ghost@example.com", "password": "wrong-pass"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    response = await client.post(
        "/auth/signin", json={"email": "pending@example.com", "password": PASSWORD}
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "EMAIL_NOT_VERIFIED"

    # One audit entry per attempt
    for email in ("jane@example.com", "ghost@example.com", "pending@example.com"):
        entries = await audit_entries(session_factory, email)
        assert [e.action for e in entries] == ["auth:signin:failure"]


@pytest.mark.asyncio
async def test_allow_listed_admin_signs_in_unverified(client: AsyncClient, db_session):
    await create_user(db_session, "owner@example.com", email_verified=False)

    response = await client.post(
        "/auth/signin", json={"email": "owner@example.com", "password": PASSWORD}
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["is_admin"] is True
    assert user["email_verified"] is True


@pytest.mark.asyncio
async def test_sign_in_rate_limit_blocks_ip(client: AsyncClient, db_session, session_factory):
    """Six sign-in attempts within 15 minutes block the IP"""
    await create_user(db_session, "jane@example.com")

    for remaining in (4, 3, 2, 1, 0):
        response = await client.post(
            "/auth/signin", json={"email": "jane@example.com", "password": "wrong-pass"}
        )
        assert response.status_code == 401
        assert response.headers["X-RateLimit-Remaining"] == str(remaining)

    response = await client.post(
        "/auth/signin", json={"email": "jane@example.com", "password": PASSWORD}
    )

    assert response.status_code == 429
    assert response.headers["X-RateLimit-Limit"] == "5"
    assert response.headers["X-RateLimit-Blocked-Until"].endswith("Z")

    entries = await audit_entries(session_factory)
    blocked = [e for e in entries if e.action == "auth:rate_limit:exceeded"]
    assert len(blocked) == 1
    assert blocked[0].details["endpoint"] == "signin"


@pytest.mark.asyncio
async def test_change_password_requires_csrf(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    token = await sign_in(client, "jane@example.com")
    body = {
        "current_password": PASSWORD,
        "new_password": "brand-new-pass",
        "confirm_password": "brand-new-pass",
    }

    response = await client.post("/auth/change-password", json=body, headers=bearer(token))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INVALID_CSRF_TOKEN"

    headers = await csrf_headers(client, token)
    response = await client.post("/auth/change-password", json=body, headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Password changed successfully"

    await sign_in(client, "jane@example.com", "brand-new-pass")


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")
    token = await sign_in(client, "jane@example.com")
    headers = await csrf_headers(client, token)

    response = await client.post(
        "/auth/change-password",
        json={
            "current_password": "guess",
            "new_password": "brand-new-pass",
            "confirm_password": "brand-new-pass",
        },
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CURRENT_PASSWORD"


@pytest.mark.asyncio
async def test_sign_in_with_over_long_password(client: AsyncClient, db_session):
    await create_user(db_session, "jane@example.com")

    response = await client.post(
        "/auth/signin", json={"email": "jane@example.com", "password": "a" * 100}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"
