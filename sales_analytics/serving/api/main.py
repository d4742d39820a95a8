"""
FastAPI Application Factory

Creates and configures the main API application.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import structlog

from sales_analytics.config import get_settings
from sales_analytics.ingestion import ConfigurationError, DashboardError, UpstreamError
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from .routes import dashboard_router, health_router, orders_router, stock_router

logger = structlog.get_logger(__name__)


def error_status(exc: DashboardError) -> int:
    """HTTP status for a failed refresh: bad gateway for feed failures, 500 otherwise"""
    if isinstance(exc, UpstreamError):
        return 502
    return 500


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    status_code = error_status(exc)
    logger.error(
        "Dashboard request failed",
        path=request.url.path,
        status_code=status_code,
        upstream_status=exc.status_code,
        error=exc.message,
        configuration=isinstance(exc, ConfigurationError),
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.summary, "details": exc.message},
    )


def create_api_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Optional lifespan context manager

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Sales Dashboard Analytics API",
        description="Order and stock aggregation for the sales dashboard",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Add CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_exception_handler(DashboardError, dashboard_error_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(stock_router, prefix="/api/v1/stock", tags=["Stock"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "timezone": settings.dashboard.timezone,
            "locale": settings.dashboard.locale,
            "documentation": "/docs" if settings.is_development else None,
        }

    # Prometheus scrape endpoint
    app.mount("/metrics", make_asgi_app())

    return app
