import os

os.environ.setdefault("TELEMETRY_ENABLED", "false")
os.environ.setdefault("MODERATOR_KEY", "test-moderator-key")

import pytest
import pytest_asyncio
import httpx

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import event

# Import Base + all models so metadata is complete
import designhub.models  # noqa: F401
from designhub.models.base import Base

from designhub.main import app
from designhub.core.db import get_db
from designhub.services.storage import LocalArtworkStore, get_artwork_store


def _test_db_url(tmp_path) -> str:
    # Postgres when provided, otherwise a throwaway SQLite file per test
    return os.getenv("DATABASE_URL_TEST") or f"sqlite+aiosqlite:///{tmp_path / 'designhub-test.db'}"


def _sqlite_savepoints(engine) -> None:
    # let SQLAlchemy own BEGIN so SAVEPOINT/ROLLBACK TO behave like Postgres
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    url = _test_db_url(tmp_path)
    engine = create_async_engine(url, pool_pre_ping=True)
    if url.startswith("sqlite"):
        _sqlite_savepoints(engine)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)
    async with session_factory() as session:
        yield session


@pytest.fixture
def artwork_store(tmp_path) -> LocalArtworkStore:
    return LocalArtworkStore(str(tmp_path / "artwork"))


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, artwork_store: LocalArtworkStore):
    """
    HTTP client that uses the test DB session via dependency override.
    """
    async def _override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_artwork_store] = lambda: artwork_store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
