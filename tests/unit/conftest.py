import pytest
from unittest.mock import AsyncMock, MagicMock

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.request_context import RequestContext


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)

    uow.one_time_codes = MagicMock()
    uow.one_time_codes.delete_unused = AsyncMock(return_value=0)
    uow.one_time_codes.create = AsyncMock(side_effect=lambda code: code)
    uow.one_time_codes.find_valid = AsyncMock(return_value=None)
    uow.one_time_codes.mark_used = AsyncMock(return_value=True)
    uow.one_time_codes.delete_expired = AsyncMock(return_value=0)

    uow.audit_entries = MagicMock()
    uow.audit_entries.create = AsyncMock(side_effect=lambda entry: entry)
    uow.audit_entries.count = AsyncMock(return_value=0)
    uow.audit_entries.delete_older_than = AsyncMock(return_value=0)

    uow.rate_limits = MagicMock()
    uow.rate_limits.delete_stale = AsyncMock(return_value=0)

    return uow


@pytest.fixture
def audit_logger():
    """AuditLogger double; every log_* method is an AsyncMock"""
    return AsyncMock(spec=AuditLogger)


@pytest.fixture
def otp_service():
    from storefront_auth.app.services.otp_service import OtpService

    return AsyncMock(spec=OtpService)


@pytest.fixture
def context():
    return RequestContext(ip_address="203.0.113.7", user_agent="pytest", method="POST")
