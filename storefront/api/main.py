"""
FastAPI Application Entry Point
===============================

Main FastAPI application with health check, middleware,
error mapping and lifecycle management.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront import __version__
from storefront.config.settings import get_settings
from storefront.db.connection import DatabaseManager, close_database, init_database
from storefront.db.connection import health_check as db_health_check
from storefront.services.cache import close_redis, get_redis_client, init_redis
from storefront.utils.errors import StorefrontError, ValidationError
from storefront.utils.logger import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

# Configure logging at module load
configure_logging()
logger = get_logger(__name__)

HTTP_ERROR_KINDS = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for:
    - Database connection pool and schema
    - Redis connection for the product cache
    """
    settings = get_settings()
    logger.info(
        "storefront service starting",
        version=__version__,
        environment=settings.environment,
        port=settings.fastapi_port,
    )

    try:
        await init_database(settings)
        await DatabaseManager.create_schema()
        logger.info("Database ready")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        # Continue startup - /health reports degraded

    # Cache is optional; a missing Redis only disables it
    await init_redis(settings)

    yield

    logger.info("storefront service shutting down")

    try:
        await close_database()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))

    await close_redis()


def create_app() -> FastAPI:
    """
    FastAPI application factory.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Storefront API",
        description=(
            "Storefront core: catalog with variant-derived product fields, "
            "per-user carts with frozen pricing, checkout and order lifecycle."
        ),
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Request Logging Middleware
    # -------------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        """
        Log all incoming requests with timing and correlation ID.

        The request id (incoming X-Request-ID or a fresh UUID) and the
        caller's user id are bound to the logging context for the whole
        request. The id is returned in X-Request-ID next to X-Process-Time.
        """
        request_id = request.headers.get("x-request-id") or str(uuid4())
        bind_request_context(request_id, user_id=request.headers.get("x-user-id"))
        start_time = time.perf_counter()

        try:
            logger.info(
                "Request received",
                method=request.method,
                path=str(request.url.path),
                query=str(request.query_params) if request.query_params else None,
            )

            response = await call_next(request)

            process_time = time.perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                duration_ms=round(process_time * 1000, 2),
            )
            return response
        finally:
            clear_request_context()

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(
        request: Request, exc: StorefrontError
    ) -> JSONResponse:
        """Map application errors to their HTTP status."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Application error",
            error_type=type(exc).__name__,
            kind=exc.kind,
            message=exc.message,
            details=exc.details,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, **exc.to_dict()},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request input is reported like any other validation failure."""
        errors = jsonable_encoder(exc.errors())
        logger.warning("Request validation failed", path=str(request.url.path), errors=errors)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": ValidationError.kind,
                "message": "Request validation failed",
                "details": {"errors": errors},
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Identity and routing errors in the common error body."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": HTTP_ERROR_KINDS.get(exc.status_code, "http_error"),
                "message": str(exc.detail),
                "details": {},
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.exception(
            "Unexpected error",
            error_type=type(exc).__name__,
            message=str(exc),
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "internal",
                "message": "An unexpected error occurred",
                "details": {},
            },
        )

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check endpoint",
        response_model=dict[str, Any],
    )
    async def health_check() -> dict[str, Any]:
        """
        Check service health status.

        The database is required; Redis is optional and only reported.
        """
        health_status: dict[str, Any] = {
            "status": "healthy",
            "version": __version__,
            "service": "storefront",
            "checks": {},
        }

        db_status = await db_health_check()
        health_status["checks"]["database"] = db_status
        if db_status.get("status") != "healthy":
            health_status["status"] = "degraded"

        redis_client = get_redis_client()
        if redis_client is not None:
            try:
                start = time.perf_counter()
                await redis_client.ping()
                latency = (time.perf_counter() - start) * 1000
                health_status["checks"]["redis"] = {
                    "status": "healthy",
                    "latency_ms": round(latency, 2),
                }
            except Exception as e:
                health_status["checks"]["redis"] = {
                    "status": "unhealthy",
                    "error": str(e),
                }
        else:
            health_status["checks"]["redis"] = {"status": "disabled"}

        return health_status

    # -------------------------------------------------------------------------
    # API Info Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/",
        tags=["Info"],
        summary="API information",
    )
    async def api_info() -> dict[str, str]:
        """Return basic API information."""
        return {
            "service": "storefront",
            "version": __version__,
            "description": "Catalog, cart and order API",
            "docs": "/docs",
        }

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    from storefront.api.routes import cart_router, orders_router, products_router

    app.include_router(cart_router, prefix="/cart", tags=["Cart"])
    app.include_router(products_router, prefix="/products", tags=["Products"])
    app.include_router(orders_router, prefix="/orders", tags=["Orders"])

    return app


# Create application instance
app = create_app()
