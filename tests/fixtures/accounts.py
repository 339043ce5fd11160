from typing import Dict, List

from httpx import AsyncClient
from sqlmodel import col, select

from storefront_auth.app.services.passwords import hash_password
from storefront_auth.domain.entities import AuditEntry, User

PASSWORD = "secret123"


async def create_user(
    session,
    email: str,
    password: str = PASSWORD,
    name: str = "Test User",
    email_verified: bool = True,
    is_admin: bool = False,
) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        email_verified=email_verified,
        is_admin=is_admin,
    )
    session.add(user)
    await session.commit()
    return user


async def sign_in(client: AsyncClient, email: str, password: str = PASSWORD) -> str:
    response = await client.post("/auth/signin", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def csrf_headers(client: AsyncClient, token: str) -> Dict[str, str]:
    """Bearer header plus a CSRF token bound to the same session"""
    response = await client.get("/auth/csrf", headers=bearer(token))
    assert response.status_code == 200
    return {**bearer(token), "x-csrf-token": response.json()["csrf_token"]}


async def audit_entries(session_factory, email: str = None) -> List[AuditEntry]:
    """Read audit entries through a fresh session, oldest first"""
    async with session_factory() as session:
        stmt = select(AuditEntry).order_by(col(AuditEntry.timestamp))
        if email is not None:
            stmt = stmt.where(col(AuditEntry.email) == email)
        result = await session.exec(stmt)
        return list(result.all())
