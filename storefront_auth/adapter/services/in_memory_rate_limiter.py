from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from storefront_auth.app.services.rate_limiter import (
    Clock,
    IRateLimiter,
    RateLimitDecision,
    RateLimitPolicy,
)
from storefront_auth.domain.base import utc_now


@dataclass
class _Counter:
    attempts: int
    reset_at: datetime
    blocked_until: Optional[datetime] = None


class InMemoryRateLimiter(IRateLimiter):
    """
    Per-process rate limiter.

    Counters live in this instance only; several workers each keep their own.
    """

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock
        self._counters: Dict[str, _Counter] = {}

    async def check(self, key: str, policy: RateLimitPolicy) -> RateLimitDecision:
        now = self.clock()
        counter = self._counters.get(key)

        if counter and counter.blocked_until:
            if counter.blocked_until > now:
                return RateLimitDecision(
                    allowed=False,
                    limit=policy.max_attempts,
                    remaining=0,
                    reset_at=counter.blocked_until,
                    blocked_until=counter.blocked_until,
                )
            counter = None

        if counter is None or counter.reset_at <= now:
            counter = _Counter(attempts=1, reset_at=now + policy.window)
            self._counters[key] = counter
            return RateLimitDecision(
                allowed=True,
                limit=policy.max_attempts,
                remaining=policy.max_attempts - 1,
                reset_at=counter.reset_at,
            )

        if counter.attempts >= policy.max_attempts:
            if policy.block_duration:
                counter.blocked_until = now + policy.block_duration
            return RateLimitDecision(
                allowed=False,
                limit=policy.max_attempts,
                remaining=0,
                reset_at=counter.blocked_until or counter.reset_at,
                blocked_until=counter.blocked_until,
            )

        counter.attempts += 1
        return RateLimitDecision(
            allowed=True,
            limit=policy.max_attempts,
            remaining=policy.max_attempts - counter.attempts,
            reset_at=counter.reset_at,
        )

    async def reset(self, key: str) -> None:
        self._counters.pop(key, None)

    async def sweep(self) -> int:
        now = self.clock()
        stale = [
            key
            for key, counter in self._counters.items()
            if counter.reset_at <= now
            and (counter.blocked_until is None or counter.blocked_until <= now)
        ]
        for key in stale:
            del self._counters[key]
        return len(stale)
