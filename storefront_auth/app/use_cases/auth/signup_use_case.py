from typing import Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import OtpService, validate_email
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.entities import OtpPurpose
from storefront_auth.libs.result import Error, Result, Return
from .dtos import OtpSentResponse, SignupCommand
from .validation import validate_name, validate_password


class SignupUseCase:
    """
    Signup Use Case

    Command/Response Pattern:
    - Input: SignupCommand (name, email, password)
    - Output: Result[OtpSentResponse]

    Business Logic:
    1. Validate name (2-50 letters/spaces), email and password (6 chars to 72 bytes)
    2. Reject emails that already have an account (EMAIL_ALREADY_EXISTS)
    3. Issue an email_verification code; the account itself is created by
       VerifyEmailUseCase once the code comes back
    4. Audit auth:signup:success or auth:signup:failure
    """

    def __init__(self, uow: UnitOfWork, otp_service: OtpService, audit_logger: AuditLogger):
        self.uow = uow
        self.otp_service = otp_service
        self.audit_logger = audit_logger

    async def execute(
        self, command: SignupCommand, context: Optional[RequestContext] = None
    ) -> Result[OtpSentResponse]:
        """
        Execute signup use case

        Args:
            command: SignupCommand with raw name, email, password
            context: Requester identity for the audit trail

        Returns:
            Result[OtpSentResponse], or Error(VALIDATION_ERROR |
            EMAIL_ALREADY_EXISTS | EMAIL_DELIVERY_FAILED)
        """
        for check in (
            validate_name(command.name),
            validate_email(command.email),
            validate_password(command.password),
        ):
            if check.is_err():
                await self.audit_logger.log_sign_up_attempt(
                    command.email or "unknown", False, context, check.error.message
                )
                return check

        email = validate_email(command.email).value

        async with self.uow:
            existing_user = await self.uow.users.get_by_email(email)

        if existing_user:
            await self.audit_logger.log_sign_up_attempt(
                email, False, context, "User already exists"
            )
            return Return.err(
                Error("EMAIL_ALREADY_EXISTS", "User with this email already exists")
            )

        issued = await self.otp_service.issue(
            email, OtpPurpose.email_verification, context
        )
        if issued.is_err():
            await self.audit_logger.log_sign_up_attempt(
                email, False, context, issued.error.message
            )
            return issued

        await self.audit_logger.log_sign_up_attempt(email, True, context)

        return Return.ok(
            OtpSentResponse(
                email=email,
                message="Verification code sent to your email",
            )
        )
