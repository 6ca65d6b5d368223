from __future__ import annotations

from collections.abc import AsyncGenerator
import inspect
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from core.config import get_settings
from core.config_models import DatabaseConfig

logger = logging.getLogger(__name__)

Base = declarative_base()

# Lazy engine/sessionmaker to avoid creating pools at import time.
# Public alias for tests: unit tests monkeypatch `db.database.engine`.
engine: AsyncEngine | None = None
_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def _database_config() -> DatabaseConfig:
    cfg = get_settings().database
    if cfg is None:
        raise RuntimeError("Database configuration not initialized")
    return cfg


def _engine_options(cfg: DatabaseConfig) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": cfg.echo, "pool_pre_ping": cfg.pool_pre_ping}
    if not cfg.url.startswith("sqlite"):
        options.update(
            pool_size=cfg.pool_size,
            max_overflow=cfg.max_overflow,
            pool_timeout=cfg.pool_timeout,
            pool_recycle=3600,
        )
    return options


def get_engine() -> AsyncEngine:
    global _engine
    # If a test has monkeypatched the public `engine`, use it.
    if engine is not None:
        return engine
    if _engine is None:
        cfg = _database_config()
        _engine = create_async_engine(cfg.url, **_engine_options(cfg))
        logger.debug("AsyncEngine created")
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
        logger.debug("Async sessionmaker created")
    return _session_maker


async def get_db() -> AsyncGenerator[AsyncSession]:
    async with get_session_maker()() as session:
        try:
            logger.debug("Async database session created")
            yield session
        except Exception as e:
            await session.rollback()
            logger.error("Error in async DB session: %s", e)
            raise
        finally:
            logger.debug("Async database session closed")


async def check_db_connection() -> bool:
    try:
        engine = get_engine()
        ctx = engine.begin()
        # Support both real AsyncEngine (returns async context manager)
        # and test mocks that return a coroutine yielding a context manager
        if inspect.isawaitable(ctx):
            ctx = await ctx  # type: ignore[assignment]
        async with ctx as conn:  # type: ignore[func-returns-value]
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection is healthy")
        return True
    except Exception as e:
        logger.error("Database connection check failed: %s", e)
        return False


async def close_db_connections() -> None:
    global engine, _engine, _session_maker
    try:
        if _engine is not None:
            await _engine.dispose()
            logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections: %s", e)
    finally:
        engine = None
        _engine = None
        _session_maker = None
