"""
Audit Use Case DTOs
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class AuditEntryInfo(BaseModel):
    """Audit entry as shown to administrators"""

    id: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    action: str
    details: Dict[str, Any]
    ip_address: str
    user_agent: str
    success: bool
    error: Optional[str] = None
    session_id: Optional[str] = None
    timestamp: str


class AuthStats(BaseModel):
    """Aggregate authentication activity over a window"""

    successful_sign_ins: int
    failed_sign_ins: int
    new_sign_ups: int
    password_resets: int
    success_rate: float
    since: str
