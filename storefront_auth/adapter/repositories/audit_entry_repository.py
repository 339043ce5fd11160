from datetime import datetime
from typing import List, Sequence

from sqlalchemy import delete
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from storefront_auth.app.repositories.audit_entry_repository import IAuditEntryRepository
from storefront_auth.domain.entities import AuditEntry


class AuditEntryRepository(IAuditEntryRepository):
    """AuditEntry repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: AuditEntry) -> AuditEntry:
        """Create a new audit entry (immutable)"""
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list_by_user(
        self, user_id: str, limit: int = 50, skip: int = 0
    ) -> List[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .where(col(AuditEntry.user_id) == user_id)
            .order_by(col(AuditEntry.timestamp).desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_recent(self, limit: int = 50, skip: int = 0) -> List[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .order_by(col(AuditEntry.timestamp).desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_failures_for_email(
        self, email: str, actions: Sequence[str], since: datetime
    ) -> List[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .where(
                col(AuditEntry.email) == email,
                col(AuditEntry.action).in_(list(actions)),
                col(AuditEntry.success) == False,  # noqa: E712
                col(AuditEntry.timestamp) >= since,
            )
            .order_by(col(AuditEntry.timestamp).desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_failures_for_ip(
        self, ip_address: str, since: datetime, limit: int = 100
    ) -> List[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .where(
                col(AuditEntry.ip_address) == ip_address,
                col(AuditEntry.success) == False,  # noqa: E712
                col(AuditEntry.timestamp) >= since,
            )
            .order_by(col(AuditEntry.timestamp).desc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count(
        self, actions: Sequence[str], success: bool, since: datetime
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(AuditEntry)
            .where(
                col(AuditEntry.action).in_(list(actions)),
                col(AuditEntry.success) == success,
                col(AuditEntry.timestamp) >= since,
            )
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = delete(AuditEntry).where(col(AuditEntry.timestamp) < cutoff)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
