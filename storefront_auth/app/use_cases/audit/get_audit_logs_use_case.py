"""
Get Audit Logs Use Case

Read-side reports over the audit trail for the admin console.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.base import utc_now
from storefront_auth.domain.entities import (
    FAILED_AUTH_ACTIONS,
    SIGNIN_SUCCESS_ACTIONS,
    AuditEntry,
    AuthAction,
)
from storefront_auth.libs.result import Result, Return
from .dtos import AuditEntryInfo, AuthStats

SUSPICIOUS_ACTIVITY_LIMIT = 100


def _values(actions) -> List[str]:
    return [action.value for action in actions]


def to_entry_info(entry: AuditEntry) -> AuditEntryInfo:
    return AuditEntryInfo(
        id=str(entry.id),
        user_id=entry.user_id,
        email=entry.email,
        action=entry.action,
        details=entry.details or {},
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        success=entry.success,
        error=entry.error,
        session_id=entry.session_id,
        timestamp=entry.timestamp.isoformat() + "Z",
    )


def compute_success_rate(successes: int, failures: int) -> float:
    total = successes + failures
    if total == 0:
        return 0
    return round(successes / total * 100, 2)


class GetAuditLogsUseCase:
    """
    Use case for audit trail reports.

    Business Rules:
    - Listings are newest first
    - Failed sign-ins cover credential failures and failed OTP checks
    - Suspicious activity returns at most 100 failures per IP
    - Windows default to 24 hours (failures) and 7 days (stats)
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def user_logs(
        self, user_id: str, limit: int = 50, skip: int = 0
    ) -> Result[List[AuditEntryInfo]]:
        async with self.uow:
            entries = await self.uow.audit_entries.list_by_user(user_id, limit, skip)
            return Return.ok([to_entry_info(e) for e in entries])

    async def recent_logs(
        self, limit: int = 50, skip: int = 0
    ) -> Result[List[AuditEntryInfo]]:
        async with self.uow:
            entries = await self.uow.audit_entries.list_recent(limit, skip)
            return Return.ok([to_entry_info(e) for e in entries])

    async def failed_sign_ins(
        self, email: str, since: Optional[datetime] = None
    ) -> Result[List[AuditEntryInfo]]:
        since = since or utc_now() - timedelta(hours=24)
        async with self.uow:
            entries = await self.uow.audit_entries.list_failures_for_email(
                email.strip().lower(), _values(FAILED_AUTH_ACTIONS), since
            )
            return Return.ok([to_entry_info(e) for e in entries])

    async def suspicious_activity(
        self, ip_address: str, since: Optional[datetime] = None
    ) -> Result[List[AuditEntryInfo]]:
        since = since or utc_now() - timedelta(hours=24)
        async with self.uow:
            entries = await self.uow.audit_entries.list_failures_for_ip(
                ip_address, since, SUSPICIOUS_ACTIVITY_LIMIT
            )
            return Return.ok([to_entry_info(e) for e in entries])

    async def auth_stats(self, since: Optional[datetime] = None) -> Result[AuthStats]:
        """
        Aggregate authentication counts since a moment (default: 7 days ago).

        Returns:
            Result with AuthStats; success_rate is 0 when nothing happened
        """
        since = since or utc_now() - timedelta(days=7)
        async with self.uow:
            entries = self.uow.audit_entries
            successful = await entries.count(
                _values(SIGNIN_SUCCESS_ACTIONS), True, since
            )
            failed = await entries.count(
                [AuthAction.SIGNIN_FAILURE.value], False, since
            )
            signups = await entries.count(
                [AuthAction.SIGNUP_SUCCESS.value], True, since
            )
            resets = await entries.count(
                [AuthAction.PASSWORD_RESET_SUCCESS.value], True, since
            )

        return Return.ok(
            AuthStats(
                successful_sign_ins=successful,
                failed_sign_ins=failed,
                new_sign_ups=signups,
                password_resets=resets,
                success_rate=compute_success_rate(successful, failed),
                since=since.isoformat() + "Z",
            )
        )
