"""
Change Password Use Case

Password change for a signed-in user.
"""

from typing import Optional
from uuid import UUID

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.passwords import check_password, hash_password
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.authorization import SessionPrincipal, require_auth
from storefront_auth.domain.entities import AuthAction
from storefront_auth.libs.result import Error, Result, Return
from .dtos import ChangePasswordCommand, MessageResponse
from .validation import validate_password


class ChangePasswordUseCase:
    """
    Use case for changing a password.

    Business Rules:
    - Caller must be signed in
    - Current password must match the stored hash
    - New password must be 6 characters to 72 bytes and match its confirmation
    - Audits auth:password_change:success or auth:password_change:failure
    """

    def __init__(self, uow: UnitOfWork, audit_logger: AuditLogger):
        self.uow = uow
        self.audit_logger = audit_logger

    async def execute(
        self,
        principal: Optional[SessionPrincipal],
        command: ChangePasswordCommand,
        context: Optional[RequestContext] = None,
    ) -> Result[MessageResponse]:
        auth = require_auth(principal)
        if auth.is_err():
            return auth

        if not command.current_password:
            return Return.err(Error("VALIDATION_ERROR", "Current password is required"))
        new_password = validate_password(command.new_password)
        if new_password.is_err():
            return new_password
        if command.new_password != command.confirm_password:
            return Return.err(Error("VALIDATION_ERROR", "Passwords don't match"))

        error: Optional[Error] = None
        async with self.uow:
            user = await self.uow.users.get_by_id(UUID(principal.user_id))
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            if not user.password_hash or not check_password(
                command.current_password, user.password_hash
            ):
                error = Error("INVALID_CURRENT_PASSWORD", "Current password is incorrect")
            else:
                user.password_hash = hash_password(new_password.value)
                await self.uow.users.update(user)
                await self.uow.commit()

        if error is not None:
            await self.audit_logger.record(
                AuthAction.PASSWORD_CHANGE_FAILURE,
                success=False,
                user_id=principal.user_id,
                email=principal.email,
                error="Invalid current password",
                context=context,
                session_id=principal.session_id,
            )
            return Return.err(error)

        await self.audit_logger.record(
            AuthAction.PASSWORD_CHANGE_SUCCESS,
            success=True,
            user_id=principal.user_id,
            email=principal.email,
            context=context,
            session_id=principal.session_id,
        )
        return Return.ok(MessageResponse(message="Password changed successfully"))
