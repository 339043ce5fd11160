"""
Service API Key Authentication

Validates the internal key the auth gateway presents when it hands over an
OAuth or magic-link sign-in.
"""

import hmac

from fastapi import Header, status

from config import ApplicationConfig
from storefront_auth.api.error import ClientError
from storefront_auth.libs.result import Error


async def verify_service_api_key(x_service_api_key: str = Header(None)):
    """
    Verify service API key from X-Service-API-Key header.

    Service-to-service auth, separate from user sessions.

    Raises:
        ClientError: 401 if key is missing or invalid

    Returns:
        True if valid
    """
    if not x_service_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Service API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not hmac.compare_digest(x_service_api_key, ApplicationConfig.SERVICE_API_KEY):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid service API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
