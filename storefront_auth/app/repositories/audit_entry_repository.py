from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from storefront_auth.domain.entities import AuditEntry


class IAuditEntryRepository(ABC):
    """AuditEntry repository interface - application layer"""

    @abstractmethod
    async def create(self, entry: AuditEntry) -> AuditEntry:
        """Create a new audit entry (immutable)"""
        pass

    @abstractmethod
    async def list_by_user(
        self, user_id: str, limit: int = 50, skip: int = 0
    ) -> List[AuditEntry]:
        """Entries for an actor, newest first"""
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 50, skip: int = 0) -> List[AuditEntry]:
        """All entries, newest first"""
        pass

    @abstractmethod
    async def list_failures_for_email(
        self, email: str, actions: Sequence[str], since: datetime
    ) -> List[AuditEntry]:
        """Failed entries of the given actions for an email since a moment"""
        pass

    @abstractmethod
    async def list_failures_for_ip(
        self, ip_address: str, since: datetime, limit: int = 100
    ) -> List[AuditEntry]:
        """Failed entries from an IP since a moment, newest first"""
        pass

    @abstractmethod
    async def count(
        self, actions: Sequence[str], success: bool, since: datetime
    ) -> int:
        """Count entries of the given actions and outcome since a moment"""
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Purge entries past the retention window, returning the count"""
        pass
