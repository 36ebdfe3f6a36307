from contextlib import contextmanager
from typing import AsyncIterator, Iterator

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from designhub.core.config import settings
from designhub.core.errors import StorageUnavailable


engine = create_async_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """
    Convert connectivity failures into StorageUnavailable.

    IntegrityError and friends pass through untouched: unique violations are
    part of the store contracts and are handled by the callers.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        raise StorageUnavailable(f"{operation} failed: storage unavailable", details=[{"error": type(e).__name__}]) from e
