import pytest

from db import database


@pytest.mark.unit
async def test_check_db_connection_success(monkeypatch):
    class MockConnection:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *args):
            pass

        async def execute(self, *args, **kwargs):
            pass

    class MockEngine:
        async def begin(self):
            return MockConnection()

    monkeypatch.setattr(database, "engine", MockEngine())

    assert await database.check_db_connection() is True


@pytest.mark.unit
async def test_check_db_connection_failure(monkeypatch):
    class MockEngine:
        async def begin(self):
            raise Exception("Database connection failed")

    monkeypatch.setattr(database, "engine", MockEngine())

    assert await database.check_db_connection() is False


@pytest.mark.unit
def test_sqlite_engine_skips_pool_sizing():
    cfg = database.DatabaseConfig(url="sqlite+aiosqlite:///x.db")
    options = database._engine_options(cfg)
    assert "pool_size" not in options
    assert options["pool_pre_ping"] is True


@pytest.mark.unit
def test_postgres_engine_uses_pool_sizing():
    cfg = database.DatabaseConfig(url="postgresql+asyncpg://u@h/db", pool_size=5)
    options = database._engine_options(cfg)
    assert options["pool_size"] == 5
    assert options["pool_timeout"] == 30
