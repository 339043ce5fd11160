"""
Authentication Use Cases

All authentication-related business logic.
"""

from .signup_use_case import SignupUseCase
from .send_otp_use_case import SendOtpUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .login_use_case import LoginUseCase
from .oauth_sign_in_use_case import OAuthSignInUseCase
from .load_session_use_case import LoadSessionUseCase
from .change_password_use_case import ChangePasswordUseCase
from .sign_out_use_case import SignOutUseCase
from .dtos import (
    ChangePasswordCommand,
    MessageResponse,
    OAuthProfile,
    OtpSentResponse,
    SignInResult,
    SignupCommand,
    UserInfo,
    VerifyOtpCommand,
    VerifyOtpResponse,
)

__all__ = [
    # Use Cases
    "SignupUseCase",
    "SendOtpUseCase",
    "VerifyEmailUseCase",
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    "LoginUseCase",
    "OAuthSignInUseCase",
    "LoadSessionUseCase",
    "ChangePasswordUseCase",
    "SignOutUseCase",
    # DTOs - Commands
    "SignupCommand",
    "VerifyOtpCommand",
    "OAuthProfile",
    "ChangePasswordCommand",
    # DTOs - Responses
    "OtpSentResponse",
    "VerifyOtpResponse",
    "MessageResponse",
    "SignInResult",
    "UserInfo",
]
