"""
Audit Use Cases

All audit-related business logic.
"""

from .get_audit_logs_use_case import GetAuditLogsUseCase, compute_success_rate
from .dtos import AuditEntryInfo, AuthStats

__all__ = [
    "GetAuditLogsUseCase",
    "compute_success_rate",
    "AuditEntryInfo",
    "AuthStats",
]
