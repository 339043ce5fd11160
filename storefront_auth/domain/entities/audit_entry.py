"""
AuditEntry Entity

Immutable log of all authentication-adjacent events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from storefront_auth.domain.base import utc_now

ID_MAX_LENGTH = 64
EMAIL_MAX_LENGTH = 255
IP_ADDRESS_MAX_LENGTH = 64
USER_AGENT_MAX_LENGTH = 512
ERROR_MAX_LENGTH = 500


class AuditEntry(SQLModel, table=True):
    """
    AuditEntry entity - one per security-relevant event.

    Business Rules:
    - Immutable (never updated)
    - Written for failures as well as successes
    - Retained for 90 days, then purged
    - user_id/email are soft references, no cascade
    """

    __tablename__ = "audit_entries"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: Optional[str] = Field(default=None, max_length=ID_MAX_LENGTH)
    email: Optional[str] = Field(default=None, max_length=EMAIL_MAX_LENGTH)

    action: str = Field(max_length=64)  # AuthAction value
    details: dict = Field(default_factory=dict, sa_column=Column(JSON))

    ip_address: str = Field(default="unknown", max_length=IP_ADDRESS_MAX_LENGTH)
    user_agent: str = Field(default="unknown", max_length=USER_AGENT_MAX_LENGTH)

    success: bool
    error: Optional[str] = Field(default=None, max_length=ERROR_MAX_LENGTH)
    session_id: Optional[str] = Field(default=None, max_length=ID_MAX_LENGTH)

    timestamp: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_user_timestamp", "user_id", "timestamp"),
        Index("idx_audit_email_timestamp", "email", "timestamp"),
        Index("idx_audit_action_timestamp", "action", "timestamp"),
        Index("idx_audit_success_timestamp", "success", "timestamp"),
        Index("idx_audit_ip_address", "ip_address"),
    )
