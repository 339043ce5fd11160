"""
Load Session Use Case

Refreshes a session principal from the store on each authenticated request.
"""

import logging
from typing import FrozenSet
from uuid import UUID

from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.authorization import (
    SessionPrincipal,
    apply_admin_allow_list,
    is_admin_email,
)
from storefront_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class LoadSessionUseCase:
    """
    Use case for session refresh.

    Business Rules:
    - Flags, name and image are reloaded from the stored user
    - The admin allow-list is re-applied (and persisted) on every refresh
    - If the store cannot be read, the token's own claims are used
    - A session whose user no longer exists is rejected
    """

    def __init__(self, uow: UnitOfWork, admin_allow_list: FrozenSet[str] = frozenset()):
        self.uow = uow
        self.admin_allow_list = admin_allow_list

    async def execute(self, principal: SessionPrincipal) -> Result[SessionPrincipal]:
        try:
            async with self.uow:
                user = await self.uow.users.get_by_id(UUID(principal.user_id))
                if user is None:
                    return Return.err(
                        Error("AUTHENTICATION_REQUIRED", "Authentication required")
                    )
                if apply_admin_allow_list(user, self.admin_allow_list):
                    user = await self.uow.users.update(user)
                    await self.uow.commit()

                refreshed = principal.model_copy(
                    update={
                        "email": user.email,
                        "name": user.name,
                        "image": user.image,
                        "is_admin": user.is_admin,
                        "email_verified": user.email_verified,
                    }
                )
        except Exception as e:
            logger.warning(
                f"Session refresh failed for user {principal.user_id}, using token claims: {e}"
            )
            if is_admin_email(principal.email, self.admin_allow_list):
                return Return.ok(
                    principal.model_copy(update={"is_admin": True, "email_verified": True})
                )
            return Return.ok(principal)

        return Return.ok(refreshed)
