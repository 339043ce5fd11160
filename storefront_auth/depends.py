from datetime import timedelta
from typing import FrozenSet, Optional

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from storefront_auth.adapter.services.console_email_sender import ConsoleEmailSender
from storefront_auth.adapter.services.in_memory_rate_limiter import InMemoryRateLimiter
from storefront_auth.adapter.services.smtp_email_sender import SmtpEmailSender
from storefront_auth.adapter.services.store_rate_limiter import StoreRateLimiter
from storefront_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from storefront_auth.api.error import ClientError
from storefront_auth.api.utils.jwt import (
    decode_expired_claims,
    principal_from_claims,
    verify_session_token,
)
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.email_sender import IEmailSender
from storefront_auth.app.services.otp_service import OtpService
from storefront_auth.app.services.rate_limiter import IRateLimiter
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.app.use_cases.auth import LoadSessionUseCase
from storefront_auth.domain.authorization import (
    SessionPrincipal,
    parse_admin_allow_list,
    require_admin,
    require_auth,
    require_verified_user,
)
from storefront_auth.domain.entities import AuthAction

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

ADMIN_ALLOW_LIST = parse_admin_allow_list(ApplicationConfig.ADMIN_EMAILS)

security = HTTPBearer(auto_error=False)


async def create_schema(bind=None):
    """Create any missing tables on the configured (or given) engine"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def new_standalone_unit_of_work() -> UnitOfWork:
    """Unit of work on its own session, for writes outside the request transaction"""
    return SqlAlchemyUnitOfWork(AsyncSessionLocal(), owns_session=True)


def build_rate_limiter() -> IRateLimiter:
    if ApplicationConfig.RATE_LIMIT_BACKEND == "store":
        return StoreRateLimiter(new_standalone_unit_of_work)
    return InMemoryRateLimiter()


def build_email_sender() -> IEmailSender:
    if ApplicationConfig.EMAIL_BACKEND == "smtp":
        return SmtpEmailSender(
            host=ApplicationConfig.SMTP_HOST,
            port=ApplicationConfig.SMTP_PORT,
            from_address=ApplicationConfig.EMAIL_FROM,
            from_name=ApplicationConfig.EMAIL_FROM_NAME,
            username=ApplicationConfig.SMTP_USERNAME,
            password=ApplicationConfig.SMTP_PASSWORD,
            start_tls=ApplicationConfig.SMTP_START_TLS,
        )
    return ConsoleEmailSender()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_admin_allow_list() -> FrozenSet[str]:
    return ADMIN_ALLOW_LIST


def get_audit_logger() -> AuditLogger:
    return AuditLogger(new_standalone_unit_of_work, ApplicationConfig.ENVIRONMENT)


def get_email_sender() -> IEmailSender:
    return build_email_sender()


def get_rate_limiter(request: Request) -> IRateLimiter:
    return request.app.state.rate_limiter


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_headers(
        request.headers,
        client_host=request.client.host if request.client else None,
        method=request.method,
    )


def get_otp_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    email_sender: IEmailSender = Depends(get_email_sender),
    audit_logger: AuditLogger = Depends(get_audit_logger),
) -> OtpService:
    return OtpService(
        uow,
        email_sender,
        audit_logger,
        ttl=timedelta(minutes=ApplicationConfig.OTP_TTL_MINUTES),
        brand=ApplicationConfig.EMAIL_FROM_NAME,
    )


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
) -> Optional[SessionPrincipal]:
    """
    Resolve the session behind the Authorization header, if any.

    Expired tokens are treated as anonymous and recorded as
    auth:session:expired. Valid tokens are refreshed from the store.

    Returns:
        SessionPrincipal, or None for anonymous requests
    """
    if credentials is None:
        return None

    token = credentials.credentials
    claims = verify_session_token(token)

    if claims is None:
        expired = decode_expired_claims(token)
        if expired is not None:
            await audit_logger.record(
                AuthAction.SESSION_EXPIRED,
                success=False,
                user_id=expired.get("sub"),
                email=expired.get("email"),
                context=context,
                session_id=expired.get("sid"),
            )
        return None

    principal = principal_from_claims(claims)
    if principal is None:
        return None

    result = await LoadSessionUseCase(uow, admin_allow_list).execute(principal)
    if result.is_err():
        return None
    return result.value


async def get_current_session(
    principal: Optional[SessionPrincipal] = Depends(get_optional_session),
) -> SessionPrincipal:
    """
    Dependency requiring a signed-in user.

    Raises:
        ClientError: 401 AUTHENTICATION_REQUIRED
    """
    result = require_auth(principal)
    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_401_UNAUTHORIZED)
    return result.value


async def get_verified_session(
    principal: Optional[SessionPrincipal] = Depends(get_optional_session),
) -> SessionPrincipal:
    result = require_verified_user(principal)
    if result.is_err():
        if result.error.code == "AUTHENTICATION_REQUIRED":
            raise ClientError(result.error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ClientError(result.error, status_code=status.HTTP_403_FORBIDDEN)
    return result.value


async def get_admin_session(
    principal: Optional[SessionPrincipal] = Depends(get_optional_session),
) -> SessionPrincipal:
    """
    Dependency requiring an admin session.

    Raises:
        ClientError: 401 AUTHENTICATION_REQUIRED, 403 ADMIN_REQUIRED
    """
    result = require_admin(principal)
    if result.is_err():
        if result.error.code == "AUTHENTICATION_REQUIRED":
            raise ClientError(result.error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ClientError(result.error, status_code=status.HTTP_403_FORBIDDEN)
    return result.value
