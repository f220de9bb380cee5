"""Shared fixtures for Gift Box backend tests.

Uses SQLite (aiosqlite) by default, no PostgreSQL required.
Set TEST_DATABASE_URL to override (e.g. for CI with real PostgreSQL).
Redis is replaced by an in-memory fake for every test.
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Ensure settings can be loaded without .env
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

from giftbox.database import Base  # noqa: E402
from tests.helpers import register_parent  # noqa: E402

# ---------------------------------------------------------------------------
# Engine: SQLite in-memory with StaticPool (shared across connections)
# ---------------------------------------------------------------------------

_engine_kwargs = {}
if TEST_DATABASE_URL.startswith("sqlite"):
    _engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }

_engine = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_kwargs)

if TEST_DATABASE_URL.startswith("sqlite"):
    from sqlalchemy import event

    # pysqlite defers BEGIN on its own; emit it ourselves so the per-test
    # outer transaction and its savepoints actually roll back.
    @event.listens_for(_engine.sync_engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(_engine.sync_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")
_TestSession = async_sessionmaker(
    bind=_engine, class_=AsyncSession, expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Session-scoped: create / drop tables
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="session", autouse=True)
async def _setup_tables():
    import giftbox.models  # noqa: F401 (populates Base.metadata)

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await _engine.dispose()


# ---------------------------------------------------------------------------
# Reset rate-limiter counters before every test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Clear in-memory rate-limit counters so tests never block each other."""
    from giftbox.core.rate_limit import limiter

    storage = getattr(limiter, "_storage", None)
    if storage is not None and hasattr(storage, "reset"):
        storage.reset()


# ---------------------------------------------------------------------------
# Redis: in-memory fake with the hash commands the preference store uses
# ---------------------------------------------------------------------------

class FakeRedis:
    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}

    async def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    async def hset(self, name, key, value):
        self.hashes.setdefault(name, {})[key] = str(value)
        return 1

    async def hdel(self, name, *keys):
        bucket = self.hashes.get(name, {})
        return sum(1 for key in keys if bucket.pop(key, None) is not None)

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture(autouse=True)
def _patch_redis(monkeypatch, fake_redis):
    monkeypatch.setattr("giftbox.core.redis_client._redis", fake_redis)


# ---------------------------------------------------------------------------
# Per-test session with rollback
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def db_session():
    # Bind the session to an outer transaction; commits inside the code under
    # test only release savepoints, so everything is rolled back afterwards.
    async with _engine.connect() as conn:
        outer = await conn.begin()
        async with AsyncSession(
            bind=conn,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        ) as session:
            yield session
        await outer.rollback()


# ---------------------------------------------------------------------------
# HTTP test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def client(db_session: AsyncSession):
    from giftbox.database import get_db
    from giftbox.main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience: parents with tokens, a parent profile and a family code
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def registered_parent(client: AsyncClient):
    """Parent with tokens, a parent profile and a family code.

    Keys: headers, user_id, email, tokens, family_code
    """
    return await register_parent(client)


@pytest_asyncio.fixture()
async def other_parent(client: AsyncClient):
    return await register_parent(client)


@pytest_asyncio.fixture()
async def parent_user(db_session: AsyncSession):
    """A parent account created directly in the database, without a profile."""
    from giftbox.models.user import User

    user = User(email=f"direct-{uuid.uuid4().hex[:8]}@test.de", display_name="아빠")
    db_session.add(user)
    await db_session.flush()
    return user
