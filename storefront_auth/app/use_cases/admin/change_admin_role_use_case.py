"""
Change Admin Role Use Case

Grants or revokes the admin flag on an account.
"""

from typing import FrozenSet, Optional

from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import validate_email
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.app.use_cases.auth.dtos import UserInfo
from storefront_auth.domain.authorization import (
    SessionPrincipal,
    is_admin_email,
    require_admin,
)
from storefront_auth.domain.entities import AuthAction
from storefront_auth.libs.result import Error, Result, Return


class ChangeAdminRoleUseCase:
    """
    Use case for promoting and demoting administrators.

    Business Rules:
    - Only admins can change admin roles
    - Target user must exist
    - Promotion also marks the account verified
    - Allow-listed admins cannot be revoked (the allow-list would restore them)
    - Admins cannot revoke themselves
    - Audits admin:role:granted or admin:role:revoked
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit_logger: AuditLogger,
        admin_allow_list: FrozenSet[str] = frozenset(),
    ):
        self.uow = uow
        self.audit_logger = audit_logger
        self.admin_allow_list = admin_allow_list

    async def execute(
        self,
        actor: Optional[SessionPrincipal],
        target_email: Optional[str],
        grant: bool,
        context: Optional[RequestContext] = None,
    ) -> Result[UserInfo]:
        """
        Execute change admin role use case.

        Args:
            actor: Session of the administrator making the change
            target_email: Account to promote or demote
            grant: True to grant admin, False to revoke
            context: Requester identity for the audit trail

        Returns:
            Result with the updated UserInfo, or Error
        """
        admin = require_admin(actor)
        if admin.is_err():
            return admin

        email_result = validate_email(target_email)
        if email_result.is_err():
            return email_result
        email = email_result.value

        if not grant and is_admin_email(email, self.admin_allow_list):
            return Return.err(
                Error(
                    "ADMIN_ALLOW_LISTED",
                    "This admin is configured in ADMIN_EMAILS and cannot be revoked",
                )
            )

        if not grant and email == actor.email.strip().lower():
            return Return.err(
                Error("CANNOT_DEMOTE_SELF", "Admins cannot revoke their own admin role")
            )

        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            if user is None:
                return Return.err(
                    Error(
                        "USER_NOT_FOUND",
                        "User not found. Make sure the user has signed in at least once.",
                    )
                )

            user.is_admin = grant
            if grant:
                user.email_verified = True
            user = await self.uow.users.update(user)
            await self.uow.commit()
            user_info = UserInfo.from_user(user)

        await self.audit_logger.record(
            AuthAction.ADMIN_ROLE_GRANTED if grant else AuthAction.ADMIN_ROLE_REVOKED,
            success=True,
            user_id=actor.user_id,
            email=actor.email,
            metadata={"target_user_id": user_info.id, "target_email": email},
            context=context,
            session_id=actor.session_id,
        )

        return Return.ok(user_info)
