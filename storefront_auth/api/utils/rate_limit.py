"""
Rate Limit Dependency

Counts one attempt per request against a named policy, keyed by endpoint
and client IP. Rejected requests get 429; every response carries the
X-RateLimit-* headers.
"""

from datetime import UTC, datetime
from typing import Dict

from fastapi import Depends, Request, Response, status

from storefront_auth.api.error import ClientError
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.app.services.rate_limiter import (
    RATE_LIMIT_POLICIES,
    IRateLimiter,
    RateLimitDecision,
)
from storefront_auth.app.services.request_context import RequestContext
from storefront_auth.depends import get_audit_logger, get_rate_limiter, get_request_context
from storefront_auth.libs.result import Error


def _epoch_ms(moment: datetime) -> str:
    # Stored timestamps are naive UTC
    return str(int(moment.replace(tzinfo=UTC).timestamp() * 1000))


def rate_limit_headers(decision: RateLimitDecision) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": _epoch_ms(decision.reset_at),
    }
    if decision.blocked_until:
        headers["X-RateLimit-Blocked-Until"] = decision.blocked_until.isoformat() + "Z"
    return headers


def rate_limited(policy_name: str, endpoint: str):
    """
    Build a dependency enforcing RATE_LIMIT_POLICIES[policy_name].

    Args:
        policy_name: Key into RATE_LIMIT_POLICIES
        endpoint: Prefix of the counter key ("{endpoint}:{ip}")
    """
    policy = RATE_LIMIT_POLICIES[policy_name]

    async def dependency(
        request: Request,
        response: Response,
        rate_limiter: IRateLimiter = Depends(get_rate_limiter),
        audit_logger: AuditLogger = Depends(get_audit_logger),
        context: RequestContext = Depends(get_request_context),
    ) -> RateLimitDecision:
        decision = await rate_limiter.check(f"{endpoint}:{context.ip_address}", policy)
        headers = rate_limit_headers(decision)
        # Picked up by the error handlers when the route answers with an error
        request.state.rate_limit_headers = headers

        if not decision.allowed:
            await audit_logger.log_rate_limit_exceeded(endpoint, context)
            message = (
                "Too many attempts. Your IP has been temporarily blocked."
                if decision.blocked
                else "Too many attempts. Please try again later."
            )
            raise ClientError(
                Error("RATE_LIMIT_EXCEEDED", message),
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                headers=headers,
            )

        response.headers.update(headers)
        return decision

    return dependency
