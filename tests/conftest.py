# ruff: noqa: E402
# IMPORTANT:
# 1) Set environment variables (DATABASE_URL etc.) first, then import application modules.
# 2) Every async fixture is function-scoped so each test owns its event loop and engine.

from collections.abc import AsyncGenerator
import os
import tempfile

from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool


# --- Function for early test environment setup ---
# Must be called before any application imports
def _setup_test_environment() -> str:
    """Sets up environment variables for tests and returns the final DATABASE_URL."""
    os.environ.setdefault("DB_CHECK_ON_START", "false")
    os.environ.setdefault("ENVIRONMENT", "development")

    # Priority: TEST_DATABASE_URL (e.g. a local Postgres) -> temporary SQLite file
    raw_test_dsn = os.getenv("TEST_DATABASE_URL")
    if not raw_test_dsn:
        db_dir = tempfile.mkdtemp(prefix="posts-api-tests-")
        raw_test_dsn = f"sqlite+aiosqlite:///{os.path.join(db_dir, 'posts_test.db')}"

    from core.config import to_async_dsn

    test_database_url = to_async_dsn(raw_test_dsn)

    # --- CRITICAL: Set DATABASE_URL before importing application modules ---
    os.environ["DATABASE_URL"] = test_database_url
    return test_database_url


# --- EARLY ENVIRONMENT INITIALIZATION ---
TEST_DATABASE_URL = _setup_test_environment()


# --- Now safely import the application and dependencies ---
# isort: off
from app import create_app
from db.database import Base, get_db
import db.models.post  # noqa: F401  register the posts table on Base

# isort: on


# --- Pytest Fixtures ---


@pytest.fixture(scope="session")
def app():
    """FastAPI application instance for tests, created by factory."""
    return create_app()


@pytest.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """Engine bound to the test database with a freshly created schema."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        # Dispose the per-test engine to ensure no connections leak across loops
        await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Provide a fresh AsyncSession for seeding and inspecting rows."""
    async with session_maker() as session:
        yield session


@pytest.fixture(scope="function")
def override_get_db(app, session_maker: async_sessionmaker[AsyncSession]):
    """
    Override FastAPI dependency to provide a fresh AsyncSession per request,
    mirroring the one-session-per-request behaviour of get_db.
    """

    async def _get_db_test() -> AsyncGenerator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db_test
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="function")
async def client(app, override_get_db: None) -> AsyncGenerator[AsyncClient]:
    """
    Async HTTP client with app lifespan management for integration tests.
    """
    async with LifespanManager(app):
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver.local",
        ) as ac:
            yield ac


@pytest.fixture(scope="function")
async def unit_client(app) -> AsyncGenerator[AsyncClient]:
    """
    Lightweight HTTP client for unit tests without lifespan management or a database.
    Service functions are expected to be monkeypatched by the test.
    """

    async def _no_db() -> AsyncGenerator[None]:
        yield None

    app.dependency_overrides[get_db] = _no_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver.local",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)
