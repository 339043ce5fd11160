from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from storefront_auth.domain.entities import RateLimitRecord


class IRateLimitRepository(ABC):
    """RateLimitRecord repository interface - application layer"""

    @abstractmethod
    async def get_by_key(self, key: str) -> Optional[RateLimitRecord]:
        """Get the counter for a key"""
        pass

    @abstractmethod
    async def save(self, record: RateLimitRecord) -> RateLimitRecord:
        """Create or update a counter"""
        pass

    @abstractmethod
    async def delete_by_key(self, key: str) -> None:
        """Forget the counter for a key"""
        pass

    @abstractmethod
    async def delete_stale(self, window_cutoff: datetime, now: datetime) -> int:
        """Purge counters whose window and block have both lapsed"""
        pass
