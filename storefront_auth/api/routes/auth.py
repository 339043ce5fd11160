from datetime import timedelta
from typing import FrozenSet, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from storefront_auth.api.error import to_http_error
from storefront_auth.api.utils.csrf import CSRF_COOKIE_NAME, generate_csrf_token, verify_csrf
from storefront_auth.api.utils.jwt import create_session_token
from storefront_auth.api.utils.rate_limit import rate_limited
from storefront_auth.api.utils.service_auth import verify_service_api_key
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import OtpService
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.app.use_cases.auth import (
    ChangePasswordCommand,
    ChangePasswordUseCase,
    ConfirmPasswordResetUseCase,
    LoginUseCase,
    MessageResponse,
    OAuthProfile,
    OAuthSignInUseCase,
    OtpSentResponse,
    RequestPasswordResetUseCase,
    SendOtpUseCase,
    SignInResult,
    SignOutUseCase,
    SignupCommand,
    SignupUseCase,
    UserInfo,
    VerifyEmailUseCase,
    VerifyOtpCommand,
    VerifyOtpResponse,
)
from storefront_auth.depends import (
    get_admin_allow_list,
    get_audit_logger,
    get_current_session,
    get_optional_session,
    get_otp_service,
    get_request_context,
    get_unit_of_work,
)
from storefront_auth.domain.authorization import (
    SessionPrincipal,
    SessionState,
    mask_email,
    resolve_session_state,
    safe_redirect_path,
)
from storefront_auth.domain.entities import AuthProvider, OtpPurpose

router = APIRouter(prefix="/auth", tags=["Authentication"])

SESSION_MAX_AGE = timedelta(days=ApplicationConfig.SESSION_MAX_AGE_DAYS)


class SignupRequest(BaseModel):
    """
    Signup HTTP request payload

    Field rules (name 2-50 letters, password 6 chars to 72 bytes) are enforced by the use
    case so that rejected attempts are audited.
    """

    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="Password (6 chars to 72 bytes)")


class SendOtpRequest(BaseModel):
    email: Optional[str] = Field(None, description="Address to send the code to")
    purpose: OtpPurpose = Field(OtpPurpose.email_verification)


class VerifyOtpRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = Field(None, description="6-digit code")
    purpose: OtpPurpose = OtpPurpose.email_verification
    name: Optional[str] = Field(None, description="Required for email_verification")
    password: Optional[str] = Field(None, description="Required for email_verification")


class ResetPasswordRequest(BaseModel):
    email: Optional[str] = None


class UpdatePasswordRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None
    new_password: Optional[str] = None


class SignInRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    callback_url: Optional[str] = Field(None, description="Where to go after sign-in")


class OAuthCallbackRequest(BaseModel):
    """Identity handed over by the auth gateway"""

    email: EmailStr
    name: Optional[str] = None
    image: Optional[str] = None
    provider: AuthProvider = AuthProvider.google
    callback_url: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    redirect_to: str
    user: UserInfo


class SessionResponse(BaseModel):
    authenticated: bool
    state: SessionState
    user: Optional[SessionPrincipal] = None
    masked_email: Optional[str] = None


class CsrfResponse(BaseModel):
    csrf_token: str


def _sign_in_response(result: SignInResult, callback_url: Optional[str]) -> SignInResponse:
    return SignInResponse(
        access_token=create_session_token(result.principal),
        expires_at=result.principal.expires_at.isoformat() + "Z",
        redirect_to=safe_redirect_path(callback_url, ApplicationConfig.APP_ORIGIN),
        user=result.user,
    )


@router.post(
    "/signup",
    status_code=status.HTTP_200_OK,
    response_model=OtpSentResponse,
    dependencies=[Depends(rate_limited("signup", "signup"))],
)
async def signup(
    request: SignupRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    otp_service: OtpService = Depends(get_otp_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    User Signup

    Validates the details and emails a verification code. The account is
    created by /auth/verify-otp.

    Raises:
        - 400 Bad Request: VALIDATION_ERROR
        - 409 Conflict: EMAIL_ALREADY_EXISTS
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
        - 502 Bad Gateway: EMAIL_DELIVERY_FAILED
    """
    command = SignupCommand(
        name=request.name, email=request.email, password=request.password
    )

    use_case = SignupUseCase(uow, otp_service, audit_logger)
    result = await use_case.execute(command, context)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/send-otp",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(rate_limited("otp_generation", "send-otp"))],
)
async def send_otp(
    request: SendOtpRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    otp_service: OtpService = Depends(get_otp_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Send (or resend) a one-time code

    Raises:
        - 400 Bad Request: VALIDATION_ERROR
        - 409 Conflict: USER_ALREADY_EXISTS (email_verification only)
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
        - 502 Bad Gateway: EMAIL_DELIVERY_FAILED
    """
    use_case = SendOtpUseCase(uow, otp_service, audit_logger)
    result = await use_case.execute(request.email, request.purpose, context)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/verify-otp",
    status_code=status.HTTP_200_OK,
    response_model=VerifyOtpResponse,
    dependencies=[Depends(rate_limited("otp_verification", "verify-otp"))],
)
async def verify_otp(
    request: VerifyOtpRequest,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    otp_service: OtpService = Depends(get_otp_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
):
    """
    Verify a one-time code

    For email_verification this completes sign-up and answers 201 with the
    new account.

    Raises:
        - 400 Bad Request: VALIDATION_ERROR, INVALID_OR_EXPIRED_CODE
        - 409 Conflict: USER_ALREADY_EXISTS
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
    """
    command = VerifyOtpCommand(**request.model_dump())

    use_case = VerifyEmailUseCase(uow, otp_service, audit_logger, admin_allow_list)
    result = await use_case.execute(command, context)

    if result.is_err():
        raise to_http_error(result.error)

    if result.value.user is not None:
        response.status_code = status.HTTP_201_CREATED
    return result.value


@router.post(
    "/reset-password",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(rate_limited("password_reset", "reset-password"))],
)
async def reset_password(
    request: ResetPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    otp_service: OtpService = Depends(get_otp_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Request Password Reset

    Same answer whether or not the email has an account.

    Raises:
        - 400 Bad Request: VALIDATION_ERROR
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
        - 502 Bad Gateway: EMAIL_DELIVERY_FAILED
    """
    use_case = RequestPasswordResetUseCase(uow, otp_service, audit_logger)
    result = await use_case.execute(request.email, context)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/update-password",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(rate_limited("otp_verification", "update-password"))],
)
async def update_password(
    request: UpdatePasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    otp_service: OtpService = Depends(get_otp_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
):
    """
    Confirm Password Reset

    Raises:
        - 400 Bad Request: VALIDATION_ERROR, INVALID_OR_EXPIRED_CODE
        - 404 Not Found: USER_NOT_FOUND
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
    """
    use_case = ConfirmPasswordResetUseCase(uow, otp_service, audit_logger, admin_allow_list)
    result = await use_case.execute(
        request.email, request.code, request.new_password, context
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/signin",
    status_code=status.HTTP_200_OK,
    response_model=SignInResponse,
    dependencies=[Depends(rate_limited("signin", "signin"))],
)
async def signin(
    request: SignInRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
):
    """
    Credential Sign-In

    Raises:
        - 400 Bad Request: VALIDATION_ERROR
        - 401 Unauthorized: INVALID_CREDENTIALS
        - 403 Forbidden: EMAIL_NOT_VERIFIED
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
    """
    use_case = LoginUseCase(uow, audit_logger, admin_allow_list, SESSION_MAX_AGE)
    result = await use_case.execute(request.email, request.password, context)

    if result.is_err():
        raise to_http_error(result.error)

    return _sign_in_response(result.value, request.callback_url)


@router.post(
    "/oauth/callback",
    status_code=status.HTTP_200_OK,
    response_model=SignInResponse,
    dependencies=[Depends(verify_service_api_key)],
)
async def oauth_callback(
    request: OAuthCallbackRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
):
    """
    OAuth / Magic-Link Sign-In

    Called by the auth gateway once the provider has authenticated the user.

    Requires: X-Service-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid service API key
    """
    profile = OAuthProfile(
        email=request.email,
        name=request.name,
        image=request.image,
        provider=request.provider,
    )

    use_case = OAuthSignInUseCase(uow, audit_logger, admin_allow_list, SESSION_MAX_AGE)
    result = await use_case.execute(profile, context)

    if result.is_err():
        raise to_http_error(result.error)

    return _sign_in_response(result.value, request.callback_url)


@router.get("/session", status_code=status.HTTP_200_OK, response_model=SessionResponse)
async def get_session(
    principal: Optional[SessionPrincipal] = Depends(get_optional_session),
):
    """Current session, refreshed from the store; anonymous when absent or expired"""
    return SessionResponse(
        authenticated=principal is not None,
        state=resolve_session_state(principal),
        user=principal,
        masked_email=mask_email(principal.email) if principal else None,
    )


@router.get("/csrf", status_code=status.HTTP_200_OK, response_model=CsrfResponse)
async def get_csrf_token(
    response: Response,
    principal: Optional[SessionPrincipal] = Depends(get_optional_session),
):
    """Issue a CSRF token bound to the current session (also set as a cookie)"""
    token = generate_csrf_token(principal.session_id if principal else None)
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        max_age=3600,
        httponly=False,
        samesite="strict",
        secure=ApplicationConfig.ENVIRONMENT == "production",
    )
    return CsrfResponse(csrf_token=token)


@router.post(
    "/signout",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(verify_csrf)],
)
async def signout(
    response: Response,
    principal: SessionPrincipal = Depends(get_current_session),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Sign Out

    Sessions are stateless; the client discards its token.

    Raises:
        - 401 Unauthorized: AUTHENTICATION_REQUIRED
        - 403 Forbidden: INVALID_CSRF_TOKEN
    """
    result = await SignOutUseCase(audit_logger).execute(principal, context)

    if result.is_err():
        raise to_http_error(result.error)

    response.delete_cookie(CSRF_COOKIE_NAME)
    return result.value


@router.post(
    "/change-password",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    dependencies=[Depends(verify_csrf), Depends(rate_limited("signin", "change-password"))],
)
async def change_password(
    request: ChangePasswordRequest,
    principal: SessionPrincipal = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Change Password

    Raises:
        - 400 Bad Request: VALIDATION_ERROR, INVALID_CURRENT_PASSWORD
        - 401 Unauthorized: AUTHENTICATION_REQUIRED
        - 403 Forbidden: INVALID_CSRF_TOKEN
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
    """
    command = ChangePasswordCommand(
        current_password=request.current_password,
        new_password=request.new_password,
        confirm_password=request.confirm_password,
    )

    use_case = ChangePasswordUseCase(uow, audit_logger)
    result = await use_case.execute(principal, command, context)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
