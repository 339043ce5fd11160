from typing import Dict, Optional

from fastapi import status

from storefront_auth.libs.result import Error


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Use case error codes answered as client errors; anything else is a 500
ERROR_STATUS: Dict[str, int] = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_OR_EXPIRED_CODE": status.HTTP_400_BAD_REQUEST,
    "INVALID_CURRENT_PASSWORD": status.HTTP_400_BAD_REQUEST,
    "CANNOT_DEMOTE_SELF": status.HTTP_400_BAD_REQUEST,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "AUTHENTICATION_REQUIRED": status.HTTP_401_UNAUTHORIZED,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_API_KEY": status.HTTP_401_UNAUTHORIZED,
    "EMAIL_NOT_VERIFIED": status.HTTP_403_FORBIDDEN,
    "ADMIN_REQUIRED": status.HTTP_403_FORBIDDEN,
    "INVALID_CSRF_TOKEN": status.HTTP_403_FORBIDDEN,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "EMAIL_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "USER_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "ADMIN_ALLOW_LISTED": status.HTTP_409_CONFLICT,
    "RATE_LIMIT_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
    "EMAIL_DELIVERY_FAILED": status.HTTP_502_BAD_GATEWAY,
}


def to_http_error(error: Error) -> Exception:
    status_code = ERROR_STATUS.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
