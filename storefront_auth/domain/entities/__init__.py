"""
Storefront Auth Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuthAction,
    AuthProvider,
    OtpPurpose,
    FAILED_AUTH_ACTIONS,
    SIGNIN_SUCCESS_ACTIONS,
)

# Export all entities
from .user import User
from .one_time_code import OneTimeCode, DEFAULT_OTP_TTL
from .audit_entry import AuditEntry
from .rate_limit_record import RateLimitRecord

__all__ = [
    # Enums
    "AuthAction",
    "AuthProvider",
    "OtpPurpose",
    "FAILED_AUTH_ACTIONS",
    "SIGNIN_SUCCESS_ACTIONS",
    # Entities
    "User",
    "OneTimeCode",
    "DEFAULT_OTP_TTL",
    "AuditEntry",
    "RateLimitRecord",
]
