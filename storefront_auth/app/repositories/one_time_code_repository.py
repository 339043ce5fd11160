from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from storefront_auth.domain.entities import OneTimeCode, OtpPurpose


class IOneTimeCodeRepository(ABC):
    """OneTimeCode repository interface - application layer"""

    @abstractmethod
    async def delete_unused(self, email: str, purpose: OtpPurpose) -> int:
        """Delete every unused code for (email, purpose), returning the count"""
        pass

    @abstractmethod
    async def create(self, code: OneTimeCode) -> OneTimeCode:
        """Create a new one-time code"""
        pass

    @abstractmethod
    async def find_valid(
        self, email: str, code: str, purpose: OtpPurpose, now: datetime
    ) -> Optional[OneTimeCode]:
        """Newest unused, unexpired code matching (email, code, purpose)"""
        pass

    @abstractmethod
    async def mark_used(self, code_id: UUID, now: datetime) -> bool:
        """
        Atomically flip used=True if the code is still unused and unexpired.

        Returns:
            True only for the caller whose update matched the row
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Purge codes past their expiry, returning the count"""
        pass
