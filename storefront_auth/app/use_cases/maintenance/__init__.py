"""
Maintenance Use Cases

Housekeeping the store cannot do on its own (no TTL indexes in SQL).
"""

from .purge_expired_records_use_case import PurgeExpiredRecordsUseCase, PurgeReport

__all__ = [
    "PurgeExpiredRecordsUseCase",
    "PurgeReport",
]
