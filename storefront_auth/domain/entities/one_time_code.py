"""
OneTimeCode Entity

Short-lived numeric codes proving control of an email address.
"""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from storefront_auth.domain.base import utc_now
from .enums import OtpPurpose

DEFAULT_OTP_TTL = timedelta(minutes=10)


class OneTimeCode(SQLModel, table=True):
    """
    OneTimeCode entity - one per outstanding verification attempt.

    Business Rules:
    - 6-digit numeric code, expires 10 minutes after issue
    - At most one unused code per (email, purpose)
    - Consumed exactly once (used flips true by conditional update)
    - Past expires_at the code is never valid, used or not
    - Expired rows are purged by the maintenance task
    """

    __tablename__ = "one_time_codes"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    email: str = Field(max_length=255)
    code: str = Field(min_length=6, max_length=6)
    purpose: OtpPurpose = Field(default=OtpPurpose.email_verification)

    used: bool = Field(default=False)

    # Timestamps
    expires_at: datetime = Field(
        default_factory=lambda: utc_now() + DEFAULT_OTP_TTL,
        sa_column=Column(DateTime, nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_otp_email_purpose", "email", "purpose"),
        Index("idx_otp_expires_at", "expires_at"),
    )
