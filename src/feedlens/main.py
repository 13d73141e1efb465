"""FastAPI application entry point for feedlens."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from feedlens import __version__
from feedlens.api.routes import router
from feedlens.config import get_settings
from feedlens.utils.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)
    logger = get_logger(__name__)
    logger.info("feedlens starting", version=__version__)
    yield
    logger.info("feedlens shutting down")


app = FastAPI(
    title="feedlens",
    description="Normalized, deduplicated article content and reader-view variants",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic info."""
    return {
        "name": "feedlens",
        "version": __version__,
        "docs": "/docs",
    }
