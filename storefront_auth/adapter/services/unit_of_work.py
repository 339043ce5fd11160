from sqlmodel.ext.asyncio.session import AsyncSession

from storefront_auth.adapter.repositories.audit_entry_repository import AuditEntryRepository
from storefront_auth.adapter.repositories.one_time_code_repository import OneTimeCodeRepository
from storefront_auth.adapter.repositories.rate_limit_repository import RateLimitRepository
from storefront_auth.adapter.repositories.user_repository import UserRepository
from storefront_auth.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession, owns_session: bool = False):
        self.session = session
        # Standalone units (audit writes, rate-limit counters) close their session on exit
        self.owns_session = owns_session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.one_time_codes = OneTimeCodeRepository(self.session)
        self.audit_entries = AuditEntryRepository(self.session)
        self.rate_limits = RateLimitRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()
        if self.owns_session:
            await self.session.close()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
