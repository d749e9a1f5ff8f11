"""
Hot Takes Backend Application

Anonymous opinion board with agree/disagree voting, abuse reports and
controversy ranking. No accounts: every write is attributed to a device
fingerprint and a salted IP hash.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.v1 import router as api_v1_router
from core.config import settings
from core.events import create_start_app_handler, create_stop_app_handler
from core.exceptions import ApiError, DatabaseError, ErrorCode
from core.logging import configure_logging
from core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from services.content_filter import DenylistContentPolicy
from services.ip_hash import TrustedProxyPolicy
from services.rate_limiter import RateLimiter, create_rate_limit_store

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    await create_start_app_handler(app)()
    yield
    # Shutdown
    await create_stop_app_handler(app)()


def register_exception_handlers(application: FastAPI) -> None:
    """Render every failure as {"error", "code", "details"}."""

    @application.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers,
        )

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": message,
                "code": ErrorCode.VALIDATION_ERROR.value,
                "details": [
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in errors
                ],
            },
        )

    @application.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "database_error",
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        error = DatabaseError()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Unhandled exceptions never leak details to the client."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "An unexpected error occurred",
                "code": ErrorCode.UNEXPECTED_ERROR.value,
                "details": None,
            },
        )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    application = FastAPI(
        title=settings.APP_NAME,
        description="Anonymous hot takes with controversy ranking",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # One instance of each per process; request handlers reach them through api.deps
    application.state.rate_limiter = RateLimiter(
        create_rate_limit_store(settings.RATE_LIMIT_BACKEND, settings.REDIS_URL),
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    application.state.content_policy = DenylistContentPolicy(extra_terms=settings.denylist_extra_list)
    application.state.trusted_proxy_policy = TrustedProxyPolicy(settings.trusted_proxies_list)

    # Add middleware (order matters - processed in reverse)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(RequestContextMiddleware)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "X-Admin-Token",
            "X-Device-Fingerprint",
            "X-Request-ID",
        ],
        expose_headers=["Retry-After", "X-Request-ID"],
    )

    application.add_middleware(GZipMiddleware, minimum_size=1000)

    application.include_router(api_v1_router, prefix="/api/v1")

    register_exception_handlers(application)

    return application


app = create_application()


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": "hot-takes-api"}


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }
