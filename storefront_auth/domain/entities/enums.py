"""
Storefront Auth Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AuthProvider(str, Enum):
    """How a credential was first established"""

    credentials = "credentials"
    google = "google"
    email = "email"


class OtpPurpose(str, Enum):
    """What a one-time code proves"""

    email_verification = "email_verification"
    password_reset = "password_reset"


class AuthAction(str, Enum):
    """Closed set of audited security events"""

    SIGNIN_SUCCESS = "auth:signin:success"
    SIGNIN_FAILURE = "auth:signin:failure"
    SIGNUP_SUCCESS = "auth:signup:success"
    SIGNUP_FAILURE = "auth:signup:failure"
    SIGNOUT = "auth:signout"
    PASSWORD_RESET_REQUEST = "auth:password_reset:request"
    PASSWORD_RESET_SUCCESS = "auth:password_reset:success"
    PASSWORD_RESET_FAILURE = "auth:password_reset:failure"
    PASSWORD_CHANGE_SUCCESS = "auth:password_change:success"
    PASSWORD_CHANGE_FAILURE = "auth:password_change:failure"
    EMAIL_VERIFICATION_SENT = "auth:email_verification:sent"
    EMAIL_VERIFICATION_SUCCESS = "auth:email_verification:success"
    EMAIL_VERIFICATION_FAILURE = "auth:email_verification:failure"
    OTP_GENERATION = "auth:otp:generation"
    OTP_VERIFICATION_SUCCESS = "auth:otp:verification:success"
    OTP_VERIFICATION_FAILURE = "auth:otp:verification:failure"
    PROFILE_UPDATE = "user:profile:update"
    EMAIL_CHANGE = "user:email:change"
    ACCOUNT_DELETION = "user:account:deletion"
    ADMIN_ROLE_GRANTED = "admin:role:granted"
    ADMIN_ROLE_REVOKED = "admin:role:revoked"
    OAUTH_SIGNIN = "auth:oauth:signin"
    MAGIC_LINK_SIGNIN = "auth:magic_link:signin"
    SESSION_EXPIRED = "auth:session:expired"
    RATE_LIMIT_EXCEEDED = "auth:rate_limit:exceeded"


# Actions counted as a successful sign-in in reporting
SIGNIN_SUCCESS_ACTIONS = (
    AuthAction.SIGNIN_SUCCESS,
    AuthAction.OAUTH_SIGNIN,
    AuthAction.MAGIC_LINK_SIGNIN,
)

# Actions counted as a failed authentication attempt for an email
FAILED_AUTH_ACTIONS = (
    AuthAction.SIGNIN_FAILURE,
    AuthAction.OTP_VERIFICATION_FAILURE,
)
