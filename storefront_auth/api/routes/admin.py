"""
Admin API Routes - Account Administration Endpoints

Authentication is via an admin session (allow-listed or promoted account).
"""

from enum import Enum
from typing import FrozenSet, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr

from storefront_auth.api.error import ClientError, to_http_error
from storefront_auth.api.utils.csrf import verify_csrf
from storefront_auth.api.utils.rate_limit import rate_limited
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.app.use_cases.admin import ChangeAdminRoleUseCase
from storefront_auth.app.use_cases.audit import AuditEntryInfo, AuthStats, GetAuditLogsUseCase
from storefront_auth.app.use_cases.auth import UserInfo
from storefront_auth.depends import (
    get_admin_allow_list,
    get_admin_session,
    get_audit_logger,
    get_request_context,
    get_unit_of_work,
)
from storefront_auth.domain.authorization import SessionPrincipal
from storefront_auth.libs.result import Error

router = APIRouter(prefix="/admin", tags=["Admin"])


class AuditLogType(str, Enum):
    recent = "recent"
    stats = "stats"
    user = "user"
    failed = "failed"
    suspicious = "suspicious"


class AuditLogsResponse(BaseModel):
    type: AuditLogType
    logs: Optional[List[AuditEntryInfo]] = None
    stats: Optional[AuthStats] = None


class AdminRoleRequest(BaseModel):
    email: EmailStr


class AdminRoleResponse(BaseModel):
    message: str
    user: UserInfo


def _missing(parameter: str) -> ClientError:
    return ClientError(
        Error("VALIDATION_ERROR", f"{parameter} parameter required"),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@router.get(
    "/auth/logs",
    status_code=status.HTTP_200_OK,
    response_model=AuditLogsResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("general", "admin-logs"))],
)
async def get_auth_logs(
    type: AuditLogType = Query(AuditLogType.recent),
    user_id: Optional[str] = Query(None, alias="userId"),
    email: Optional[str] = Query(None),
    ip: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    _admin: SessionPrincipal = Depends(get_admin_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Authentication Audit Logs

    type=recent|user|failed|suspicious returns entries, type=stats returns
    aggregate counts for the last 7 days.

    Raises:
        - 400 Bad Request: VALIDATION_ERROR (missing userId / email / ip)
        - 401 Unauthorized: AUTHENTICATION_REQUIRED
        - 403 Forbidden: ADMIN_REQUIRED
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
    """
    use_case = GetAuditLogsUseCase(uow)

    if type == AuditLogType.stats:
        result = await use_case.auth_stats()
    elif type == AuditLogType.user:
        if not user_id:
            raise _missing("userId")
        result = await use_case.user_logs(user_id, limit, skip)
    elif type == AuditLogType.failed:
        if not email:
            raise _missing("email")
        result = await use_case.failed_sign_ins(email)
    elif type == AuditLogType.suspicious:
        if not ip:
            raise _missing("ip")
        result = await use_case.suspicious_activity(ip)
    else:
        result = await use_case.recent_logs(limit, skip)

    if result.is_err():
        raise to_http_error(result.error)

    if type == AuditLogType.stats:
        return AuditLogsResponse(type=type, stats=result.value)
    return AuditLogsResponse(type=type, logs=result.value)


async def _change_admin_role(
    grant: bool,
    request: AdminRoleRequest,
    admin: SessionPrincipal,
    uow: UnitOfWork,
    audit_logger: AuditLogger,
    context: RequestContext,
    admin_allow_list: FrozenSet[str],
) -> AdminRoleResponse:
    use_case = ChangeAdminRoleUseCase(uow, audit_logger, admin_allow_list)
    result = await use_case.execute(admin, request.email, grant, context)

    if result.is_err():
        raise to_http_error(result.error)

    user = result.value
    message = (
        f"Successfully made {user.email} an admin"
        if grant
        else f"Revoked admin access for {user.email}"
    )
    return AdminRoleResponse(message=message, user=user)


@router.post(
    "/users/promote",
    status_code=status.HTTP_200_OK,
    response_model=AdminRoleResponse,
    dependencies=[Depends(verify_csrf)],
)
async def promote_user(
    request: AdminRoleRequest,
    admin: SessionPrincipal = Depends(get_admin_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
):
    """
    Grant Admin Role

    Raises:
        - 401 Unauthorized: AUTHENTICATION_REQUIRED
        - 403 Forbidden: ADMIN_REQUIRED, INVALID_CSRF_TOKEN
        - 404 Not Found: USER_NOT_FOUND
    """
    return await _change_admin_role(
        True, request, admin, uow, audit_logger, context, admin_allow_list
    )


@router.post(
    "/users/revoke-admin",
    status_code=status.HTTP_200_OK,
    response_model=AdminRoleResponse,
    dependencies=[Depends(verify_csrf)],
)
async def revoke_admin(
    request: AdminRoleRequest,
    admin: SessionPrincipal = Depends(get_admin_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    admin_allow_list: FrozenSet[str] = Depends(get_admin_allow_list),
):
    """
    Revoke Admin Role

    Raises:
        - 400 Bad Request: CANNOT_DEMOTE_SELF
        - 401 Unauthorized: AUTHENTICATION_REQUIRED
        - 403 Forbidden: ADMIN_REQUIRED, INVALID_CSRF_TOKEN
        - 404 Not Found: USER_NOT_FOUND
        - 409 Conflict: ADMIN_ALLOW_LISTED
    """
    return await _change_admin_role(
        False, request, admin, uow, audit_logger, context, admin_allow_list
    )
