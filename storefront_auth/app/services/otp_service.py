"""
OTP Service

Issues and verifies one-time codes proving control of an email address.

Business Rules:
- Codes are 6 digits drawn from a cryptographically strong source
- Issuing replaces any unused code for the same (email, purpose)
- Codes expire 10 minutes after issue and are consumed exactly once
- Wrong, expired and already-used codes fail identically
- Delivery failure is reported but the stored code stays valid
- Every issue and verify attempt is audited
- A delivered verification code is also audited as auth:email_verification:sent
"""

import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_syntax
from pydantic import BaseModel

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.email_sender import IEmailSender
from storefront_auth.app.services.email_templates import render_otp_email
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.base import normalize_email, utc_now
from storefront_auth.domain.entities import (
    DEFAULT_OTP_TTL,
    AuthAction,
    OneTimeCode,
    OtpPurpose,
)
from storefront_auth.libs.result import Error, Result, Return

CODE_PATTERN = re.compile(r"^\d{6}$")

INVALID_OR_EXPIRED_CODE = Error("INVALID_OR_EXPIRED_CODE", "Invalid or expired code")


class OtpIssued(BaseModel):
    """Outcome of a successful issue"""

    email: str
    purpose: OtpPurpose
    expires_at: datetime


def generate_code() -> str:
    """Uniform over 100000-999999, always six characters."""
    return str(100000 + secrets.randbelow(900000))


def validate_email(email: Optional[str]) -> Result[str]:
    normalized = normalize_email(email or "")
    try:
        check_email_syntax(normalized, check_deliverability=False)
    except EmailNotValidError:
        return Return.err(
            Error("VALIDATION_ERROR", "Please enter a valid email address")
        )
    return Return.ok(normalized)


def validate_code(code: Optional[str]) -> Result[str]:
    if not code or not CODE_PATTERN.match(code):
        return Return.err(Error("VALIDATION_ERROR", "OTP must be exactly 6 digits"))
    return Return.ok(code)


class OtpService:
    """OTP issuance and verification"""

    def __init__(
        self,
        uow: UnitOfWork,
        email_sender: IEmailSender,
        audit_logger: AuditLogger,
        ttl: timedelta = DEFAULT_OTP_TTL,
        brand: str = "Storefront",
    ):
        self.uow = uow
        self.email_sender = email_sender
        self.audit_logger = audit_logger
        self.ttl = ttl
        self.brand = brand

    async def issue(
        self,
        email: str,
        purpose: OtpPurpose,
        context: Optional[RequestContext] = None,
    ) -> Result[OtpIssued]:
        """
        Store a fresh code for (email, purpose) and email it.

        Returns:
            Result with OtpIssued when the transport accepted the message,
            EMAIL_DELIVERY_FAILED when it did not. Storage errors propagate.
        """
        email_result = validate_email(email)
        if email_result.is_err():
            await self.audit_logger.log_otp_event(
                email or "invalid",
                False,
                "generation",
                purpose,
                context,
                email_result.error.message,
            )
            return email_result
        email = email_result.value

        code = generate_code()
        expires_at = utc_now() + self.ttl

        async with self.uow:
            # Replace-then-insert in one transaction keeps a single outstanding code
            await self.uow.one_time_codes.delete_unused(email, purpose)
            await self.uow.one_time_codes.create(
                OneTimeCode(
                    email=email,
                    code=code,
                    purpose=purpose,
                    expires_at=expires_at,
                )
            )
            await self.uow.commit()

        subject, html = render_otp_email(
            code, purpose, self.brand, int(self.ttl.total_seconds() // 60)
        )
        delivered = await self.email_sender.send(email, subject, html)

        await self.audit_logger.log_otp_event(
            email,
            delivered,
            "generation",
            purpose,
            context,
            None if delivered else "Failed to send email",
        )

        if not delivered:
            return Return.err(
                Error("EMAIL_DELIVERY_FAILED", "Failed to send verification email")
            )

        if purpose == OtpPurpose.email_verification:
            await self.audit_logger.record(
                AuthAction.EMAIL_VERIFICATION_SENT,
                success=True,
                email=email,
                context=context,
            )

        return Return.ok(OtpIssued(email=email, purpose=purpose, expires_at=expires_at))

    async def verify(
        self,
        email: str,
        code: str,
        purpose: OtpPurpose,
        context: Optional[RequestContext] = None,
    ) -> Result[OneTimeCode]:
        """
        Consume a submitted code.

        Returns:
            Result with the consumed OneTimeCode, VALIDATION_ERROR for
            malformed input, or INVALID_OR_EXPIRED_CODE
        """
        email_result = validate_email(email)
        code_result = validate_code(code)
        for check in (email_result, code_result):
            if check.is_err():
                await self.audit_logger.log_otp_event(
                    normalize_email(email or "") or "invalid",
                    False,
                    "verification",
                    purpose,
                    context,
                    check.error.message,
                )
                return check
        email = email_result.value

        now = utc_now()
        async with self.uow:
            record = await self.uow.one_time_codes.find_valid(email, code, purpose, now)
            consumed = record is not None and await self.uow.one_time_codes.mark_used(
                record.id, now
            )
            if consumed:
                await self.uow.commit()

        if not consumed:
            await self.audit_logger.log_otp_event(
                email,
                False,
                "verification",
                purpose,
                context,
                INVALID_OR_EXPIRED_CODE.message,
            )
            return Return.err(INVALID_OR_EXPIRED_CODE)

        record.used = True
        await self.audit_logger.log_otp_event(
            email, True, "verification", purpose, context
        )
        return Return.ok(record)
