"""
Database engines and session factories.

Celery workers and alembic use the synchronous psycopg2 engine; FastAPI
handlers use the asyncpg engine through get_db.
"""
import uuid
from typing import AsyncGenerator
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from oeconomia.config import settings


def to_async_url(url: str) -> str:
    """Rewrite a postgres URL, with or without an explicit driver, to use asyncpg."""
    scheme, separator, rest = url.partition("://")
    backend = scheme.split("+", 1)[0]
    if separator and backend in ("postgresql", "postgres"):
        return f"postgresql+asyncpg://{rest}"
    return url


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def generate_uuid() -> str:
    """Primary key factory; ids are UUID4 strings."""
    return str(uuid.uuid4())


_engine_options = {
    "echo": settings.db_echo,
    "pool_pre_ping": True,
    "pool_size": settings.db_pool_size,
    "max_overflow": settings.db_max_overflow,
}

sync_engine = create_engine(settings.database_url, **_engine_options)

SyncSessionLocal = sessionmaker(bind=sync_engine, autoflush=False)

async_engine = create_async_engine(to_async_url(settings.database_url), **_engine_options)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session for one request.

    Handlers commit their own unit of work; anything left pending when the
    request fails is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
