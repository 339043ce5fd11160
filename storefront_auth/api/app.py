from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(self), payment=(self)",
}
HSTS_HEADER = "max-age=31536000; includeSubDomains; preload"


def _response_headers(request: Request, headers=None):
    merged = dict(getattr(request.state, "rate_limit_headers", None) or {})
    merged.update(headers or {})
    return merged or None


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error_dict},
        headers=_response_headers(request, exc.headers),
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    error_dict = {"code": "VALIDATION_ERROR", "message": message}
    logger.warning(f"Validation error: {error_dict}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": error_dict},
        headers=_response_headers(request),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )


def create_app(ApplicationConfig) -> FastAPI:
    from storefront_auth.adapter.services.maintenance import MaintenanceScheduler
    from storefront_auth.depends import (
        build_rate_limiter,
        create_schema,
        new_standalone_unit_of_work,
    )

    rate_limiter = build_rate_limiter()
    scheduler = MaintenanceScheduler(
        rate_limiter,
        new_standalone_unit_of_work,
        purge_interval_seconds=ApplicationConfig.MAINTENANCE_INTERVAL_SECONDS,
        audit_retention=timedelta(days=ApplicationConfig.AUDIT_RETENTION_DAYS),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_schema()
        if ApplicationConfig.ENABLE_MAINTENANCE:
            await scheduler.start()
        yield
        await scheduler.stop()

    app = FastAPI(title="Storefront Auth API", version="0.1.0", lifespan=lifespan)
    app.state.rate_limiter = rate_limiter
    app.state.maintenance = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def apply_security_headers(request: Request, call_next):
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers[key] = value
        if ApplicationConfig.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = HSTS_HEADER
        return response

    from storefront_auth.api.routes import admin, auth

    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app
