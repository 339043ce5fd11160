"""
RateLimitRecord Entity

Shared attempt counters for the store-backed rate limiter.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from storefront_auth.domain.base import utc_now


class RateLimitRecord(SQLModel, table=True):
    """
    RateLimitRecord entity - one per (endpoint, client) key.

    Business Rules:
    - Window restarts once window_start is older than the policy window
    - blocked_until rejects every attempt until it passes
    - Records idle for 24 hours are purged
    """

    __tablename__ = "rate_limit_records"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    key: str = Field(unique=True, index=True, max_length=255)

    attempts: int = Field(default=1)
    window_start: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    blocked_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_rate_limit_window_start", "window_start"),)
