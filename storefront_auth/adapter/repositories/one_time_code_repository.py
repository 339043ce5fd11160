from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from storefront_auth.app.repositories.one_time_code_repository import IOneTimeCodeRepository
from storefront_auth.domain.entities import OneTimeCode, OtpPurpose


class OneTimeCodeRepository(IOneTimeCodeRepository):
    """OneTimeCode repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def delete_unused(self, email: str, purpose: OtpPurpose) -> int:
        stmt = delete(OneTimeCode).where(
            col(OneTimeCode.email) == email,
            col(OneTimeCode.purpose) == purpose,
            col(OneTimeCode.used) == False,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def create(self, code: OneTimeCode) -> OneTimeCode:
        """Create a new one-time code"""
        self.session.add(code)
        await self.session.flush()
        await self.session.refresh(code)
        return code

    async def find_valid(
        self, email: str, code: str, purpose: OtpPurpose, now: datetime
    ) -> Optional[OneTimeCode]:
        stmt = (
            select(OneTimeCode)
            .where(
                col(OneTimeCode.email) == email,
                col(OneTimeCode.code) == code,
                col(OneTimeCode.purpose) == purpose,
                col(OneTimeCode.used) == False,  # noqa: E712
                col(OneTimeCode.expires_at) > now,
            )
            .order_by(col(OneTimeCode.created_at).desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def mark_used(self, code_id: UUID, now: datetime) -> bool:
        # Single conditional UPDATE: the WHERE clause is the check, so two
        # concurrent verifiers cannot both see rowcount == 1.
        stmt = (
            update(OneTimeCode)
            .where(
                col(OneTimeCode.id) == code_id,
                col(OneTimeCode.used) == False,  # noqa: E712
                col(OneTimeCode.expires_at) > now,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(OneTimeCode).where(col(OneTimeCode.expires_at) <= now)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
