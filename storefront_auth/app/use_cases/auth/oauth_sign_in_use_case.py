"""
OAuth Sign-In Use Case

Completes a sign-in already authenticated by the auth gateway (Google OAuth
or an emailed magic link).
"""

import secrets
from datetime import timedelta
from typing import FrozenSet, Optional

from storefront_auth.app.repositories.user_repository import DuplicateEmailError
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.otp_service import validate_email
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.domain.authorization import (
    apply_admin_allow_list,
    is_admin_email,
    principal_from_user,
)
from storefront_auth.domain.base import utc_now
from storefront_auth.domain.entities import AuthProvider, User
from storefront_auth.libs.result import Error, Result, Return
from .dtos import OAuthProfile, SignInResult, UserInfo
from .login_use_case import DEFAULT_SESSION_MAX_AGE


class OAuthSignInUseCase:
    """
    Use case for gateway-authenticated sign-in.

    Business Rules:
    - Unknown emails get a new verified account (admin if allow-listed)
    - Known allow-listed emails are promoted and verified on every sign-in
    - A missing profile image is filled from the provider
    - Audited as auth:oauth:signin or auth:magic_link:signin
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit_logger: AuditLogger,
        admin_allow_list: FrozenSet[str] = frozenset(),
        session_max_age: timedelta = DEFAULT_SESSION_MAX_AGE,
    ):
        self.uow = uow
        self.audit_logger = audit_logger
        self.admin_allow_list = admin_allow_list
        self.session_max_age = session_max_age

    async def execute(
        self, profile: OAuthProfile, context: Optional[RequestContext] = None
    ) -> Result[SignInResult]:
        provider = "magic" if profile.provider == AuthProvider.email else "oauth"

        email_result = validate_email(profile.email)
        if email_result.is_err():
            await self.audit_logger.log_sign_in_attempt(
                profile.email or "unknown",
                False,
                context,
                email_result.error.message,
                provider=provider,
            )
            return email_result
        email = email_result.value

        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            if user is None:
                try:
                    user = await self.uow.users.create(
                        User(
                            email=email,
                            name=(profile.name or email.split("@")[0]).strip(),
                            image=profile.image,
                            email_verified=True,
                            is_admin=is_admin_email(email, self.admin_allow_list),
                            provider=profile.provider,
                        )
                    )
                except DuplicateEmailError:
                    # A concurrent first sign-in created the account
                    await self.uow.rollback()
                    user = await self.uow.users.get_by_email(email)
                    if user is None:
                        return Return.err(
                            Error(
                                "USER_ALREADY_EXISTS",
                                "User with this email already exists",
                            )
                        )
            else:
                changed = apply_admin_allow_list(user, self.admin_allow_list)
                if profile.image and not user.image:
                    user.image = profile.image
                    changed = True
                if changed:
                    user = await self.uow.users.update(user)
            await self.uow.commit()

            principal = principal_from_user(
                user,
                session_id=secrets.token_urlsafe(16),
                expires_at=utc_now() + self.session_max_age,
            )
            result = SignInResult(principal=principal, user=UserInfo.from_user(user))

        await self.audit_logger.log_sign_in_attempt(
            email,
            True,
            context,
            provider=provider,
            user_id=principal.user_id,
            session_id=principal.session_id,
        )
        return Return.ok(result)
