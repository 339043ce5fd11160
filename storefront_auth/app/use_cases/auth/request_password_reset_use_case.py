"""
Request Password Reset Use Case

Emails a password_reset code to registered addresses.
"""

from typing import Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import OtpService, validate_email
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.entities import OtpPurpose
from storefront_auth.libs.result import Result, Return
from .dtos import MessageResponse

RESET_REQUESTED_MESSAGE = (
    "If an account exists with this email, you will receive a password reset code."
)


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - No email enumeration (same response for known and unknown emails)
    - A code is only issued when the account exists
    - Unknown emails are still audited (success=false, "Unknown email")
    - Rate limiting is handled at the API layer
    """

    def __init__(self, uow: UnitOfWork, otp_service: OtpService, audit_logger: AuditLogger):
        self.uow = uow
        self.otp_service = otp_service
        self.audit_logger = audit_logger

    async def execute(
        self, email: Optional[str], context: Optional[RequestContext] = None
    ) -> Result[MessageResponse]:
        """
        Execute request password reset use case.

        Args:
            email: Address the reset is requested for
            context: Requester identity for the audit trail

        Returns:
            Result with the generic acknowledgement, or Error(VALIDATION_ERROR |
            EMAIL_DELIVERY_FAILED)
        """
        email_result = validate_email(email)
        if email_result.is_err():
            return email_result
        email = email_result.value

        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            user_id = str(user.id) if user else None

        if user_id is None:
            await self.audit_logger.log_password_reset(
                email, False, "request", context, "Unknown email"
            )
            return Return.ok(MessageResponse(email=email, message=RESET_REQUESTED_MESSAGE))

        issued = await self.otp_service.issue(email, OtpPurpose.password_reset, context)
        if issued.is_err():
            await self.audit_logger.log_password_reset(
                email, False, "request", context, issued.error.message, user_id
            )
            return issued

        await self.audit_logger.log_password_reset(
            email, True, "request", context, user_id=user_id
        )

        return Return.ok(MessageResponse(email=email, message=RESET_REQUESTED_MESSAGE))
