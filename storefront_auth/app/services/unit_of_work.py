from abc import ABC, abstractmethod

from storefront_auth.app.repositories.audit_entry_repository import IAuditEntryRepository
from storefront_auth.app.repositories.one_time_code_repository import IOneTimeCodeRepository
from storefront_auth.app.repositories.rate_limit_repository import IRateLimitRepository
from storefront_auth.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    one_time_codes: IOneTimeCodeRepository
    audit_entries: IAuditEntryRepository
    rate_limits: IRateLimitRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
