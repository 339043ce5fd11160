"""
User Entity

Represents a registered storefront identity.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from storefront_auth.domain.base import utc_now
from .enums import AuthProvider


class User(SQLModel, table=True):
    """
    User entity - one per registered identity.

    Business Rules:
    - Email is unique and stored lowercased
    - Password stored as bcrypt hash (cost factor 12), absent for OAuth users
    - Admin allow-listed emails are always admin and verified
    - Promotion to admin marks the account verified
    - Never hard-deleted by this service
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str = Field(max_length=100)
    password_hash: Optional[str] = Field(default=None, max_length=60)
    image: Optional[str] = Field(default=None, max_length=2048)

    is_admin: bool = Field(default=False)
    email_verified: bool = Field(default=False)
    provider: AuthProvider = Field(default=AuthProvider.credentials)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_user_is_admin", "is_admin"),
        Index("idx_user_email_verified", "email_verified"),
    )
