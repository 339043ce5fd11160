"""
Login Use Case

Handles credential sign-in and returns the session principal.
"""

import secrets
from datetime import timedelta
from typing import FrozenSet, Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import validate_email
from storefront_auth.app.services.passwords import burn_password_check, check_password
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.authorization import (
    apply_admin_allow_list,
    principal_from_user,
)
from storefront_auth.domain.base import utc_now
from storefront_auth.libs.result import Error, Result, Return
from .dtos import SignInResult, UserInfo

DEFAULT_SESSION_MAX_AGE = timedelta(days=30)

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")


class LoginUseCase:
    """
    Use case for credential sign-in.

    Business Rules:
    - Constant-time password comparison; a dummy bcrypt check runs for
      unknown emails
    - Unknown email, OAuth-only account and wrong password all fail as
      INVALID_CREDENTIALS
    - Allow-listed emails are promoted (admin + verified) before the check
    - Unverified, non-admin accounts fail as EMAIL_NOT_VERIFIED
    - Exactly one audit entry per attempt
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit_logger: AuditLogger,
        admin_allow_list: FrozenSet[str] = frozenset(),
        session_max_age: timedelta = DEFAULT_SESSION_MAX_AGE,
    ):
        self.uow = uow
        self.audit_logger = audit_logger
        self.admin_allow_list = admin_allow_list
        self.session_max_age = session_max_age

    async def execute(
        self,
        email: Optional[str],
        password: Optional[str],
        context: Optional[RequestContext] = None,
    ) -> Result[SignInResult]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password
            context: Requester identity for the audit trail

        Returns:
            Result with SignInResult, or Error(VALIDATION_ERROR |
            INVALID_CREDENTIALS | EMAIL_NOT_VERIFIED)
        """
        email_result = validate_email(email)
        if email_result.is_err() or not password:
            error = (
                email_result.error
                if email_result.is_err()
                else Error("VALIDATION_ERROR", "Password is required")
            )
            await self.audit_logger.log_sign_in_attempt(
                email or "unknown", False, context, error.message
            )
            return Return.err(error)
        email = email_result.value

        error: Optional[Error] = None
        result: Optional[SignInResult] = None

        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            user_id = str(user.id) if user else None

            if user is None or not user.password_hash:
                burn_password_check(password)
                error = INVALID_CREDENTIALS
            elif not check_password(password, user.password_hash):
                error = INVALID_CREDENTIALS
            else:
                if apply_admin_allow_list(user, self.admin_allow_list):
                    user = await self.uow.users.update(user)
                    await self.uow.commit()

                if not (user.email_verified or user.is_admin):
                    error = Error(
                        "EMAIL_NOT_VERIFIED", "Please verify your email before signing in"
                    )
                else:
                    principal = principal_from_user(
                        user,
                        session_id=secrets.token_urlsafe(16),
                        expires_at=utc_now() + self.session_max_age,
                    )
                    result = SignInResult(principal=principal, user=UserInfo.from_user(user))

        if error is not None:
            await self.audit_logger.log_sign_in_attempt(
                email,
                False,
                context,
                error.message,
                user_id=user_id,
            )
            return Return.err(error)

        await self.audit_logger.log_sign_in_attempt(
            email,
            True,
            context,
            user_id=result.principal.user_id,
            session_id=result.principal.session_id,
        )
        return Return.ok(result)
