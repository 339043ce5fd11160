from datetime import UTC, datetime
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from config import ApplicationConfig
from storefront_auth.domain.authorization import SessionPrincipal
from storefront_auth.domain.base import utc_now

ALGORITHM = "HS256"


def create_session_token(principal: SessionPrincipal) -> str:
    """
    Generate a signed session token

    Args:
        principal: Identity and flags to embed; expires_at becomes exp

    Returns:
        JWT token string (HS256)
    """
    payload = {
        "sub": principal.user_id,
        "email": principal.email,
        "name": principal.name,
        "image": principal.image,
        "is_admin": principal.is_admin,
        "email_verified": principal.email_verified,
        "sid": principal.session_id,
        "iat": utc_now().replace(tzinfo=UTC),
        "exp": principal.expires_at.replace(tzinfo=UTC),
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm=ALGORITHM)


def verify_session_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a session token

    Returns:
        Decoded claims, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None


def decode_expired_claims(token: str) -> Optional[Dict[str, Any]]:
    """
    Claims of a correctly signed token whose exp has passed.

    Returns:
        Decoded claims, or None when the token is valid, forged or malformed
    """
    try:
        jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=[ALGORITHM])
        return None
    except ExpiredSignatureError:
        return jwt.decode(
            token,
            ApplicationConfig.JWT_SECRET,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError:
        return None


def principal_from_claims(claims: Dict[str, Any]) -> Optional[SessionPrincipal]:
    try:
        return SessionPrincipal(
            user_id=claims["sub"],
            email=claims["email"],
            name=claims.get("name") or "",
            image=claims.get("image"),
            is_admin=bool(claims.get("is_admin", False)),
            email_verified=bool(claims.get("email_verified", False)),
            session_id=claims["sid"],
            expires_at=datetime.fromtimestamp(claims["exp"], UTC).replace(tzinfo=None),
        )
    except (KeyError, TypeError, ValueError):
        return None
