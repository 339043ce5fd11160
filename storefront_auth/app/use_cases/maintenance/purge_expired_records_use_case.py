"""
Purge Expired Records Use Case

Deletes one-time codes past expiry, audit entries past retention and idle
rate-limit counters.
"""

from datetime import timedelta

from pydantic import BaseModel

from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.base import utc_now
from storefront_auth.libs.result import Result, Return

DEFAULT_AUDIT_RETENTION = timedelta(days=90)
RATE_LIMIT_IDLE = timedelta(hours=24)


class PurgeReport(BaseModel):
    """Rows removed by one purge run"""

    one_time_codes: int
    audit_entries: int
    rate_limit_records: int


class PurgeExpiredRecordsUseCase:
    """
    Use case for periodic store cleanup.

    Business Rules:
    - Codes are deleted once expires_at has passed, used or not
    - Audit entries older than the retention window are deleted
    - Rate-limit counters idle for 24 hours and not blocked are deleted
    - All three deletes commit together
    """

    def __init__(self, uow: UnitOfWork, audit_retention: timedelta = DEFAULT_AUDIT_RETENTION):
        self.uow = uow
        self.audit_retention = audit_retention

    async def execute(self) -> Result[PurgeReport]:
        now = utc_now()
        async with self.uow:
            codes = await self.uow.one_time_codes.delete_expired(now)
            entries = await self.uow.audit_entries.delete_older_than(
                now - self.audit_retention
            )
            counters = await self.uow.rate_limits.delete_stale(
                now - RATE_LIMIT_IDLE, now
            )
            await self.uow.commit()

        return Return.ok(
            PurgeReport(
                one_time_codes=codes,
                audit_entries=entries,
                rate_limit_records=counters,
            )
        )
