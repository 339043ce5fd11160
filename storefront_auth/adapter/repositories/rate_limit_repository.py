from datetime import datetime
from typing import Optional

from sqlalchemy import delete, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from storefront_auth.app.repositories.rate_limit_repository import IRateLimitRepository
from storefront_auth.domain.entities import RateLimitRecord


class RateLimitRepository(IRateLimitRepository):
    """RateLimitRecord repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_key(self, key: str) -> Optional[RateLimitRecord]:
        stmt = select(RateLimitRecord).where(RateLimitRecord.key == key)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def save(self, record: RateLimitRecord) -> RateLimitRecord:
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def delete_by_key(self, key: str) -> None:
        stmt = delete(RateLimitRecord).where(col(RateLimitRecord.key) == key)
        await self.session.execute(stmt)

    async def delete_stale(self, window_cutoff: datetime, now: datetime) -> int:
        stmt = delete(RateLimitRecord).where(
            col(RateLimitRecord.window_start) < window_cutoff,
            or_(
                col(RateLimitRecord.blocked_until).is_(None),
                col(RateLimitRecord.blocked_until) < now,
            ),
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
