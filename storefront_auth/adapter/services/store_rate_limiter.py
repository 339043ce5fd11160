import logging
from datetime import timedelta
from typing import Callable

from storefront_auth.app.services.rate_limiter import (
    Clock,
    IRateLimiter,
    RateLimitDecision,
    RateLimitPolicy,
)
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.base import utc_now
from storefront_auth.domain.entities import RateLimitRecord

logger = logging.getLogger(__name__)

STALE_AFTER = timedelta(hours=24)


class StoreRateLimiter(IRateLimiter):
    """
    Rate limiter backed by RateLimitRecord rows, shared across instances.

    Business Rules:
    - A lapsed window restarts the count at 1
    - A breach with a block duration rejects everything until blocked_until
    - Storage errors fail open: the attempt is allowed and the error logged
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock = utc_now):
        self.uow_factory = uow_factory
        self.clock = clock

    async def check(self, key: str, policy: RateLimitPolicy) -> RateLimitDecision:
        now = self.clock()
        try:
            async with self.uow_factory() as uow:
                record = await uow.rate_limits.get_by_key(key)

                if record and record.blocked_until and record.blocked_until > now:
                    return RateLimitDecision(
                        allowed=False,
                        limit=policy.max_attempts,
                        remaining=0,
                        reset_at=record.blocked_until,
                        blocked_until=record.blocked_until,
                    )

                if record is None:
                    record = RateLimitRecord(key=key, attempts=0, window_start=now)
                elif record.window_start + policy.window <= now or record.blocked_until:
                    record.attempts = 0
                    record.window_start = now
                    record.blocked_until = None

                reset_at = record.window_start + policy.window

                if record.attempts >= policy.max_attempts:
                    if policy.block_duration:
                        record.blocked_until = now + policy.block_duration
                        await uow.rate_limits.save(record)
                        await uow.commit()
                    return RateLimitDecision(
                        allowed=False,
                        limit=policy.max_attempts,
                        remaining=0,
                        reset_at=record.blocked_until or reset_at,
                        blocked_until=record.blocked_until,
                    )

                record.attempts += 1
                attempts = record.attempts
                await uow.rate_limits.save(record)
                await uow.commit()
        except Exception as e:
            logger.error(f"Rate limit check failed for {key}, allowing request: {e}")
            return RateLimitDecision(
                allowed=True,
                limit=policy.max_attempts,
                remaining=policy.max_attempts,
                reset_at=now + policy.window,
            )

        return RateLimitDecision(
            allowed=True,
            limit=policy.max_attempts,
            remaining=policy.max_attempts - attempts,
            reset_at=reset_at,
        )

    async def reset(self, key: str) -> None:
        try:
            async with self.uow_factory() as uow:
                await uow.rate_limits.delete_by_key(key)
                await uow.commit()
        except Exception as e:
            logger.error(f"Rate limit reset failed for {key}: {e}")

    async def sweep(self) -> int:
        now = self.clock()
        async with self.uow_factory() as uow:
            removed = await uow.rate_limits.delete_stale(now - STALE_AFTER, now)
            await uow.commit()
        return removed
