"""
FastAPI Production Application

Main entry point for the Sales Dashboard Analytics API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from sales_analytics.config import get_settings
from sales_analytics.config.logging import configure_logging
from sales_analytics.ingestion.refresher import close_refresher, init_refresher
from sales_analytics.serving.api.main import create_api_app

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    settings = get_settings()
    logger.info(
        "Starting Sales Dashboard Analytics API",
        environment=settings.app_env,
        upstream_configured=bool(settings.upstream.url),
        background_refresh=settings.dashboard.background_refresh,
    )

    await init_refresher()

    yield

    logger.info("Shutting down...")
    await close_refresher()


app = create_api_app(lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
