"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Password hashes never leave the use case layer: responses carry UserInfo.
"""

from typing import Optional

from pydantic import BaseModel

from storefront_auth.domain.authorization import SessionPrincipal
from storefront_auth.domain.entities import AuthProvider, OtpPurpose, User


# ============================================================================
# Command DTOs
# ============================================================================


class SignupCommand(BaseModel):
    """Sign-up intent; the account is created once the emailed code is verified"""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyOtpCommand(BaseModel):
    """Code submission; name and password are required for email_verification"""

    email: Optional[str] = None
    code: Optional[str] = None
    purpose: OtpPurpose = OtpPurpose.email_verification
    name: Optional[str] = None
    password: Optional[str] = None


class OAuthProfile(BaseModel):
    """Identity asserted by the auth gateway after an OAuth or magic-link sign-in"""

    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    provider: AuthProvider = AuthProvider.google


class ChangePasswordCommand(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class UserInfo(BaseModel):
    """Public view of a User"""

    id: str
    email: str
    name: str
    image: Optional[str] = None
    is_admin: bool
    email_verified: bool
    provider: AuthProvider
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name,
            image=user.image,
            is_admin=user.is_admin,
            email_verified=user.email_verified,
            provider=user.provider,
            created_at=user.created_at.isoformat() + "Z",
        )


class MessageResponse(BaseModel):
    """Generic acknowledgement"""

    message: str
    email: Optional[str] = None


class OtpSentResponse(BaseModel):
    """Response for flows that email a code"""

    email: str
    message: str
    requires_verification: bool = True


class VerifyOtpResponse(BaseModel):
    """Response for a verified code; user is set when an account was created"""

    email: str
    message: str
    user: Optional[UserInfo] = None


class SignInResult(BaseModel):
    """Authenticated principal and the account behind it"""

    principal: SessionPrincipal
    user: UserInfo
