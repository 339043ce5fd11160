"""
Verify Email Use Case

Consumes a submitted code. For email_verification this completes sign-up
by creating the verified account.
"""

from typing import FrozenSet, Optional

from storefront_auth.app.repositories.user_repository import DuplicateEmailError
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import OtpService, validate_code, validate_email
from storefront_auth.app.services.passwords import hash_password
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.authorization import is_admin_email
from storefront_auth.domain.entities import AuthAction, AuthProvider, OtpPurpose, User
from storefront_auth.libs.result import Error, Result, Return
from .dtos import UserInfo, VerifyOtpCommand, VerifyOtpResponse
from .validation import validate_name, validate_password


class VerifyEmailUseCase:
    """
    Use case for code verification and sign-up completion.

    Business Rules:
    - Name and password are required (and validated) for email_verification
    - The code is consumed before the account is created
    - The new account is email_verified; allow-listed emails are also admin
    - A password_reset code can be checked here too; it is consumed and
      nothing else changes
    - Audits auth:email_verification:success or auth:email_verification:failure
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
        self, command: VerifyOtpCommand, context: Optional[RequestContext] = None
    ) -> Result[VerifyOtpResponse]:
        """
        Execute verify email use case.

        Args:
            command: VerifyOtpCommand with email, code, purpose and, for
                email_verification, name and password
            context: Requester identity for the audit trail

        Returns:
            Result with VerifyOtpResponse, or Error(VALIDATION_ERROR |
            INVALID_OR_EXPIRED_CODE | USER_ALREADY_EXISTS)
        """
        if not command.email or not command.code:
            return Return.err(
                Error("VALIDATION_ERROR", "Email and verification code are required")
            )

        creating_account = command.purpose == OtpPurpose.email_verification
        name = password = None

        if creating_account:
            if not command.name or not command.password:
                return Return.err(
                    Error(
                        "VALIDATION_ERROR",
                        "Name and password are required for account creation",
                    )
                )
            for check in (
                validate_email(command.email),
                validate_code(command.code),
                validate_name(command.name),
                validate_password(command.password),
            ):
                if check.is_err():
                    return check
            name = validate_name(command.name).value
            password = command.password

        verified = await self.otp_service.verify(
            command.email, command.code, command.purpose, context
        )
        if verified.is_err():
            if creating_account:
                await self.audit_logger.record(
                    AuthAction.EMAIL_VERIFICATION_FAILURE,
                    success=False,
                    email=command.email.strip().lower(),
                    error=verified.error.message,
                    context=context,
                )
            return verified

        email = verified.value.email

        if not creating_account:
            return Return.ok(
                VerifyOtpResponse(email=email, message="OTP verified successfully")
            )

        async with self.uow:
            duplicate = await self.uow.users.get_by_email(email) is not None
            if not duplicate:
                is_admin = is_admin_email(email, self.admin_allow_list)
                try:
                    user = await self.uow.users.create(
                        User(
                            name=name,
                            email=email,
                            password_hash=hash_password(password),
                            email_verified=True,
                            is_admin=is_admin,
                            provider=AuthProvider.credentials,
                        )
                    )
                except DuplicateEmailError:
                    # Registered by a concurrent request after the lookup
                    duplicate = True
                else:
                    await self.uow.commit()
                    user_info = UserInfo.from_user(user)

        if duplicate:
            await self.audit_logger.record(
                AuthAction.EMAIL_VERIFICATION_FAILURE,
                success=False,
                email=email,
                error="User already exists",
                context=context,
            )
            return Return.err(
                Error("USER_ALREADY_EXISTS", "User with this email already exists")
            )

        await self.audit_logger.record(
            AuthAction.EMAIL_VERIFICATION_SUCCESS,
            success=True,
            user_id=user_info.id,
            email=email,
            context=context,
        )

        return Return.ok(
            VerifyOtpResponse(
                email=email,
                message="Email verified and account created successfully",
                user=user_info,
            )
        )
