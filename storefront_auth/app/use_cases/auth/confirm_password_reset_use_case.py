"""
Confirm Password Reset Use Case

Sets a new password once the emailed reset code is verified.
"""

from typing import FrozenSet, Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import OtpService, validate_email
from storefront_auth.app.services.passwords import hash_password
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.authorization import apply_admin_allow_list
from storefront_auth.domain.entities import OtpPurpose
from storefront_auth.libs.result import Error, Result, Return
from .dtos import MessageResponse
from .validation import validate_password


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - New password must be 6 characters to 72 bytes
    - The password_reset code is consumed (single-use, 10 minute expiry)
    - Password hashed with bcrypt cost factor 12
    - Audits auth:password_reset:success or auth:password_reset:failure
    """

    def __init__(
        self,
        uow: UnitOfWork,
        otp_service: OtpService,
        audit_logger: AuditLogger,
        admin_allow_list: FrozenSet[str] = frozenset(),
    ):
        self.uow = uow
        self.otp_service = otp_service
        self.audit_logger = audit_logger
        self.admin_allow_list = admin_allow_list

    async def execute(
        self,
        email: Optional[str],
        code: Optional[str],
        new_password: Optional[str],
        context: Optional[RequestContext] = None,
    ) -> Result[MessageResponse]:
        """
        Execute confirm password reset use case.

        Returns:
            Result with acknowledgement, or Error(VALIDATION_ERROR |
            INVALID_OR_EXPIRED_CODE | USER_NOT_FOUND)
        """
        if not email or not code or not new_password:
            return Return.err(
                Error(
                    "VALIDATION_ERROR",
                    "Email, verification code, and new password are required",
                )
            )

        for check in (validate_email(email), validate_password(new_password)):
            if check.is_err():
                return check

        verified = await self.otp_service.verify(
            email, code, OtpPurpose.password_reset, context
        )
        if verified.is_err():
            await self.audit_logger.log_password_reset(
                email.strip().lower(),
                False,
                "completion",
                context,
                verified.error.message,
            )
            return verified

        email = verified.value.email

        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            if user is not None:
                user.password_hash = hash_password(new_password)
                apply_admin_allow_list(user, self.admin_allow_list)
                await self.uow.users.update(user)
                await self.uow.commit()
                user_id = str(user.id)

        if user is None:
            await self.audit_logger.log_password_reset(
                email, False, "completion", context, "User not found"
            )
            return Return.err(Error("USER_NOT_FOUND", "User not found"))

        await self.audit_logger.log_password_reset(
            email, True, "completion", context, user_id=user_id
        )

        return Return.ok(
            MessageResponse(email=email, message="Password updated successfully")
        )
