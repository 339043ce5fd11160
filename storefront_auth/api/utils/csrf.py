"""
CSRF Protection

HMAC-SHA256 signed tokens bound to a session. State-changing requests carry
the token in the x-csrf-token header or the csrf-token cookie.
"""

import hashlib
import hmac
import time
import uuid
from typing import Optional

from fastapi import Depends, Request, status

from config import ApplicationConfig
from storefront_auth.api.error import ClientError
from storefront_auth.depends import get_optional_session
from storefront_auth.domain.authorization import SessionPrincipal
from storefront_auth.libs.result import Error

CSRF_TOKEN_HEADER = "x-csrf-token"
CSRF_COOKIE_NAME = "csrf-token"
CSRF_MAX_AGE_SECONDS = 3600

SAFE_METHODS = ("GET", "HEAD", "OPTIONS")


def _sign(payload: str) -> str:
    return hmac.new(
        ApplicationConfig.JWT_SECRET.encode(), payload.encode(), hashlib.sha256
    ).hexdigest()


def generate_csrf_token(session_id: Optional[str] = None) -> str:
    timestamp = str(int(time.time() * 1000))
    nonce = uuid.uuid4().hex
    signature = _sign(f"{timestamp}:{nonce}:{session_id or 'anonymous'}")
    return f"{timestamp}:{nonce}:{signature}"


def validate_csrf_token(
    token: Optional[str],
    session_id: Optional[str] = None,
    max_age_seconds: int = CSRF_MAX_AGE_SECONDS,
) -> bool:
    if not token:
        return False
    try:
        timestamp, nonce, signature = token.split(":")
        issued_ms = int(timestamp)
    except ValueError:
        return False

    if time.time() * 1000 - issued_ms > max_age_seconds * 1000:
        return False

    expected = _sign(f"{timestamp}:{nonce}:{session_id or 'anonymous'}")
    return hmac.compare_digest(expected, signature)


async def verify_csrf(
    request: Request,
    principal: Optional[SessionPrincipal] = Depends(get_optional_session),
) -> None:
    """
    Reject state-changing requests without a valid CSRF token.

    Raises:
        ClientError: 403 INVALID_CSRF_TOKEN
    """
    if request.method.upper() in SAFE_METHODS:
        return

    token = request.headers.get(CSRF_TOKEN_HEADER) or request.cookies.get(
        CSRF_COOKIE_NAME
    )
    session_id = principal.session_id if principal else None

    if not validate_csrf_token(token, session_id):
        raise ClientError(
            Error("INVALID_CSRF_TOKEN", "Invalid or missing CSRF token"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
