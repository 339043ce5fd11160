"""
Session Authorization

Pure functions over session state: admin allow-list evaluation, the
anonymous -> authenticated -> verified -> admin ladder, and the guards
protected operations are gated on.
"""

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel

from storefront_auth.domain.entities import User
from storefront_auth.libs.result import Error, Result, Return


class SessionState(str, Enum):
    """Authentication status of a request"""

    anonymous = "anonymous"
    authenticated = "authenticated"
    verified = "verified"
    admin = "admin"


class AccessLevel(str, Enum):
    """Requirement a caller can place on a session"""

    user = "user"
    verified = "verified"
    admin = "admin"


class SessionPrincipal(BaseModel):
    """Identity carried by a signed session"""

    user_id: str
    email: str
    name: str
    image: Optional[str] = None
    is_admin: bool = False
    email_verified: bool = False
    session_id: str
    expires_at: datetime


def parse_admin_allow_list(raw: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    """Split the comma-separated ADMIN_EMAILS value into normalized emails."""
    if not raw:
        return frozenset()
    emails = raw.split(",") if isinstance(raw, str) else raw
    return frozenset(email.strip().lower() for email in emails if email.strip())


def is_admin_email(email: Optional[str], allow_list: Iterable[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in allow_list


def apply_admin_allow_list(user: User, allow_list: Iterable[str]) -> bool:
    """
    Force admin and verified flags for allow-listed emails.

    Returns:
        True if the user was changed and needs saving
    """
    if not is_admin_email(user.email, allow_list):
        return False
    if user.is_admin and user.email_verified:
        return False
    user.is_admin = True
    user.email_verified = True
    return True


def principal_from_user(
    user: User, session_id: str, expires_at: datetime
) -> SessionPrincipal:
    return SessionPrincipal(
        user_id=str(user.id),
        email=user.email,
        name=user.name,
        image=user.image,
        is_admin=user.is_admin,
        email_verified=user.email_verified,
        session_id=session_id,
        expires_at=expires_at,
    )


def resolve_session_state(principal: Optional[SessionPrincipal]) -> SessionState:
    if principal is None:
        return SessionState.anonymous
    if principal.is_admin:
        return SessionState.admin
    if principal.email_verified:
        return SessionState.verified
    return SessionState.authenticated


def require_auth(principal: Optional[SessionPrincipal]) -> Result[SessionPrincipal]:
    if principal is None:
        return Return.err(
            Error("AUTHENTICATION_REQUIRED", "Authentication required")
        )
    return Return.ok(principal)


def require_admin(principal: Optional[SessionPrincipal]) -> Result[SessionPrincipal]:
    result = require_auth(principal)
    if result.is_err():
        return result
    if not principal.is_admin:
        return Return.err(Error("ADMIN_REQUIRED", "Admin access required"))
    return result


def require_verified_user(
    principal: Optional[SessionPrincipal],
) -> Result[SessionPrincipal]:
    result = require_auth(principal)
    if result.is_err():
        return result
    # Admin accounts are verified at creation
    if not (principal.email_verified or principal.is_admin):
        return Return.err(
            Error("EMAIL_NOT_VERIFIED", "Please verify your email to continue")
        )
    return result


def can_access(
    principal: Optional[SessionPrincipal], required: Optional[AccessLevel] = None
) -> bool:
    if required == AccessLevel.admin:
        return require_admin(principal).is_ok()
    if required == AccessLevel.verified:
        return require_verified_user(principal).is_ok()
    return require_auth(principal).is_ok()


def mask_email(email: str) -> str:
    """Hide the local part of an address for display: j****e@example.com"""
    username, _, domain = email.partition("@")
    if len(username) <= 3:
        return f"{username[:1]}***@{domain}"
    return f"{username[0]}{'*' * (len(username) - 2)}{username[-1]}@{domain}"


def safe_redirect_path(
    original_url: Optional[str], app_origin: str, fallback: str = "/dashboard"
) -> str:
    """
    Reduce a post-sign-in callback URL to a same-origin path.

    Absolute URLs pointing anywhere other than app_origin fall back, which
    closes the open-redirect hole.
    """
    if not original_url:
        return fallback

    parts = urlsplit(original_url)
    if parts.scheme or parts.netloc:
        origin = f"{parts.scheme}://{parts.netloc}"
        if origin.rstrip("/") != app_origin.rstrip("/"):
            return fallback
    elif not original_url.startswith("/") or original_url.startswith("//"):
        return fallback

    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path
