"""
Audit Logger

Records every authentication-adjacent attempt, successful or not.

Writes run in their own unit of work so they survive a rollback of the
caller's transaction. A storage failure is reported to the module logger
and returned as an Error; record() never raises, and callers discard its
result.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.base import utc_now
from storefront_auth.domain.entities import AuditEntry, AuthAction, OtpPurpose
from storefront_auth.domain.entities.audit_entry import (
    EMAIL_MAX_LENGTH,
    ERROR_MAX_LENGTH,
    ID_MAX_LENGTH,
    IP_ADDRESS_MAX_LENGTH,
    USER_AGENT_MAX_LENGTH,
)
from storefront_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

AuditValue = Union[str, int, float, bool, None, Dict[str, "AuditValue"]]
AuditMetadata = Dict[str, AuditValue]


def sanitize_metadata(metadata: Optional[Mapping[str, Any]]) -> AuditMetadata:
    """Restrict details to strings, numbers, booleans and nested maps."""
    return {str(key): _coerce(value) for key, value in (metadata or {}).items()}


def _clip(value: Optional[str], limit: int) -> Optional[str]:
    """Fit request-supplied text into its column."""
    if value is None:
        return None
    return str(value)[:limit]


def _coerce(value: Any) -> AuditValue:
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Mapping):
        return sanitize_metadata(value)
    return str(value)


class AuditLogger:
    """Append-only writer for AuditEntry records"""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        environment: str = "development",
    ):
        self.uow_factory = uow_factory
        self.environment = environment

    async def record(
        self,
        action: AuthAction,
        *,
        success: bool,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        error: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        context: Optional[RequestContext] = None,
        session_id: Optional[str] = None,
    ) -> Result[AuditEntry]:
        """
        Persist one audit entry.

        Args:
            action: Audited event
            success: Outcome of the attempt being recorded
            user_id: Actor id when known
            email: Actor email when known
            error: Operator-facing failure reason
            metadata: Extra details (coerced to the permitted value kinds)
            context: Requester IP / user agent; "unknown" when absent
            session_id: Session the event belongs to

        Returns:
            Result with the stored entry, or AUDIT_WRITE_FAILED
        """
        context = context or RequestContext()
        now = utc_now()

        details = sanitize_metadata(metadata)
        details["timestamp"] = now.isoformat() + "Z"

        entry = AuditEntry(
            user_id=_clip(user_id, ID_MAX_LENGTH),
            email=_clip(email, EMAIL_MAX_LENGTH),
            action=action.value,
            details=details,
            ip_address=_clip(context.ip_address, IP_ADDRESS_MAX_LENGTH),
            user_agent=_clip(context.user_agent, USER_AGENT_MAX_LENGTH),
            success=success,
            error=_clip(error, ERROR_MAX_LENGTH),
            session_id=_clip(session_id, ID_MAX_LENGTH),
            timestamp=now,
        )

        try:
            async with self.uow_factory() as uow:
                entry = await uow.audit_entries.create(entry)
                await uow.commit()
        except Exception as e:
            logger.error(f"Audit log error for {action.value}: {e}")
            return Return.err(
                Error("AUDIT_WRITE_FAILED", "Audit entry could not be stored")
            )

        if self.environment != "production":
            logger.info(
                f"Audit log: action={action.value} success={success} "
                f"email={email} error={error}"
            )

        return Return.ok(entry)

    async def log_sign_in_attempt(
        self,
        email: str,
        success: bool,
        context: Optional[RequestContext] = None,
        error: Optional[str] = None,
        provider: Optional[str] = None,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Result[AuditEntry]:
        if provider == "oauth":
            action = AuthAction.OAUTH_SIGNIN
        elif provider == "magic":
            action = AuthAction.MAGIC_LINK_SIGNIN
        elif success:
            action = AuthAction.SIGNIN_SUCCESS
        else:
            action = AuthAction.SIGNIN_FAILURE

        return await self.record(
            action,
            success=success,
            user_id=user_id,
            email=email,
            error=error,
            metadata={"provider": provider or "credentials"},
            context=context,
            session_id=session_id,
        )

    async def log_sign_up_attempt(
        self,
        email: str,
        success: bool,
        context: Optional[RequestContext] = None,
        error: Optional[str] = None,
    ) -> Result[AuditEntry]:
        action = AuthAction.SIGNUP_SUCCESS if success else AuthAction.SIGNUP_FAILURE
        return await self.record(
            action, success=success, email=email, error=error, context=context
        )

    async def log_password_reset(
        self,
        email: str,
        success: bool,
        stage: str,
        context: Optional[RequestContext] = None,
        error: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Result[AuditEntry]:
        if stage == "request":
            action = AuthAction.PASSWORD_RESET_REQUEST
        elif success:
            action = AuthAction.PASSWORD_RESET_SUCCESS
        else:
            action = AuthAction.PASSWORD_RESET_FAILURE

        return await self.record(
            action,
            success=success,
            user_id=user_id,
            email=email,
            error=error,
            metadata={"stage": stage},
            context=context,
        )

    async def log_otp_event(
        self,
        email: str,
        success: bool,
        stage: str,
        purpose: OtpPurpose,
        context: Optional[RequestContext] = None,
        error: Optional[str] = None,
    ) -> Result[AuditEntry]:
        if stage == "generation":
            action = AuthAction.OTP_GENERATION
        elif success:
            action = AuthAction.OTP_VERIFICATION_SUCCESS
        else:
            action = AuthAction.OTP_VERIFICATION_FAILURE

        return await self.record(
            action,
            success=success,
            email=email,
            error=error,
            metadata={"stage": stage, "purpose": purpose},
            context=context,
        )

    async def log_rate_limit_exceeded(
        self,
        endpoint: str,
        context: Optional[RequestContext] = None,
        email: Optional[str] = None,
    ) -> Result[AuditEntry]:
        return await self.record(
            AuthAction.RATE_LIMIT_EXCEEDED,
            success=False,
            email=email,
            metadata={"endpoint": endpoint},
            context=context,
        )
