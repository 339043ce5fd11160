from typing import Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.domain.authorization import SessionPrincipal, require_auth
from storefront_auth.domain.entities import AuthAction
from storefront_auth.libs.result import Result, Return
from .dtos import MessageResponse


class SignOutUseCase:
    """
    Use case for sign-out.

    Sessions are stateless tokens: the client discards its token and this
    only records auth:signout.
    """

    def __init__(self, audit_logger: AuditLogger):
        self.audit_logger = audit_logger

    async def execute(
        self,
        principal: Optional[SessionPrincipal],
        context: Optional[RequestContext] = None,
    ) -> Result[MessageResponse]:
        auth = require_auth(principal)
        if auth.is_err():
            return auth

        await self.audit_logger.record(
            AuthAction.SIGNOUT,
            success=True,
            user_id=principal.user_id,
            email=principal.email,
            context=context,
            session_id=principal.session_id,
        )
        return Return.ok(MessageResponse(message="Signed out successfully"))
