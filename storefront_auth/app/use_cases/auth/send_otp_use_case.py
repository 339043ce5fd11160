"""
Send OTP Use Case

(Re)sends a one-time code for sign-up verification or password reset.
"""

from typing import Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import OtpService, validate_email
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.entities import OtpPurpose
from storefront_auth.libs.result import Error, Result, Return
from .dtos import MessageResponse

UNKNOWN_ACCOUNT_MESSAGE = (
    "If an account exists with this email, you will receive a verification code."
)


class SendOtpUseCase:
    """
    Use case for sending a fresh code.

    Business Rules:
    - email_verification is refused for emails that already have an account
    - password_reset for an unknown email answers the generic success
      without issuing (no enumeration)
    - Any earlier unused code for the same purpose stops working
    """

    def __init__(self, uow: UnitOfWork, otp_service: OtpService, audit_logger: AuditLogger):
        self.uow = uow
        self.otp_service = otp_service
        self.audit_logger = audit_logger

    async def execute(
        self,
        email: Optional[str],
        purpose: OtpPurpose = OtpPurpose.email_verification,
        context: Optional[RequestContext] = None,
    ) -> Result[MessageResponse]:
        email_result = validate_email(email)
        if email_result.is_err():
            await self.audit_logger.log_otp_event(
                email or "invalid",
                False,
                "generation",
                purpose,
                context,
                "Invalid email format",
            )
            return email_result
        email = email_result.value

        async with self.uow:
            existing_user = await self.uow.users.get_by_email(email)

        if purpose == OtpPurpose.email_verification and existing_user:
            await self.audit_logger.log_otp_event(
                email, False, "generation", purpose, context, "User already exists"
            )
            return Return.err(
                Error("USER_ALREADY_EXISTS", "User with this email already exists")
            )

        if purpose == OtpPurpose.password_reset and existing_user is None:
            return Return.ok(MessageResponse(email=email, message=UNKNOWN_ACCOUNT_MESSAGE))

        issued = await self.otp_service.issue(email, purpose, context)
        if issued.is_err():
            return issued

        return Return.ok(
            MessageResponse(email=email, message=f"Verification code sent to {email}")
        )
