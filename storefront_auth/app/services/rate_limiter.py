"""
Rate Limiter

Attempt throttling keyed by endpoint and client. Implementations are
injected so tests can drive them with a deterministic clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from pydantic import BaseModel

Clock = Callable[[], datetime]


class RateLimitPolicy(BaseModel):
    """How many attempts a key gets per window, and how long a breach blocks"""

    max_attempts: int
    window: timedelta
    block_duration: Optional[timedelta] = None


class RateLimitDecision(BaseModel):
    """Outcome of a single check"""

    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime
    blocked_until: Optional[datetime] = None

    @property
    def blocked(self) -> bool:
        return self.blocked_until is not None


RATE_LIMIT_POLICIES: Dict[str, RateLimitPolicy] = {
    "signin": RateLimitPolicy(
        max_attempts=5,
        window=timedelta(minutes=15),
        block_duration=timedelta(minutes=30),
    ),
    "signup": RateLimitPolicy(
        max_attempts=3,
        window=timedelta(hours=1),
        block_duration=timedelta(hours=1),
    ),
    "password_reset": RateLimitPolicy(max_attempts=3, window=timedelta(hours=1)),
    "otp_generation": RateLimitPolicy(max_attempts=5, window=timedelta(hours=1)),
    "otp_verification": RateLimitPolicy(
        max_attempts=10,
        window=timedelta(minutes=10),
        block_duration=timedelta(minutes=10),
    ),
    "general": RateLimitPolicy(max_attempts=100, window=timedelta(minutes=15)),
}


class IRateLimiter(ABC):
    """Rate limiter interface - application layer"""

    @abstractmethod
    async def check(self, key: str, policy: RateLimitPolicy) -> RateLimitDecision:
        """Count one attempt for key and decide whether it may proceed"""
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget all attempts for key"""
        pass

    @abstractmethod
    async def sweep(self) -> int:
        """Drop expired counters, returning how many were removed"""
        pass
