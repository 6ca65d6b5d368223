from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from api.handlers.exceptions import register_exception_handlers
from api.middleware.request_id import register_request_id_middleware
from api.routes.posts import router as posts_router
from api.routes.system import router as system_router
from core.config import get_settings
from core.logging import setup_logging
from db.database import check_db_connection, close_db_connections

# Initialize global logging configuration early
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info("Starting up %s", settings.api_title)

    if settings.server.check_db_on_start:
        if not await check_db_connection():
            logger.error("Database connection failed")
            raise RuntimeError("Database connection failed")
        logger.info("Database connection verified")
    else:
        logger.debug("Skipping DB connection check on startup (DB_CHECK_ON_START=false)")

    logger.info("Application startup completed")

    yield

    logger.info("Shutting down %s", settings.api_title)
    await close_db_connections()
    logger.info("Application shutdown completed")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        openapi_url="/openapi.json" if settings.environment != "production" else None,
    )

    # Routers
    app.include_router(posts_router)
    app.include_router(system_router)

    # Middlewares
    register_request_id_middleware(app)

    # Exception handlers
    register_exception_handlers(app)

    return app
