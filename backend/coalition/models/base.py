"""Base database configuration and mixins."""

import uuid
from typing import AsyncGenerator

from sqlalchemy import JSON, Column, DateTime, Uuid, func, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, declared_attr, sessionmaker
from sqlalchemy.pool import NullPool

from coalition.config import get_settings

settings = get_settings()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _engine_options(url: str, pool_size: int, max_overflow: int) -> dict:
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_timeout": 30,
    }


def sync_url_for(async_url: str) -> str:
    """Derive the worker (sync driver) URL from the API's async URL."""
    return (
        async_url
        .replace("postgresql+asyncpg://", "postgresql://")
        .replace("sqlite+aiosqlite://", "sqlite://")
    )


# Async engine for FastAPI
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url, pool_size=10, max_overflow=20),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Sync engine for Celery tasks
sync_database_url = sync_url_for(settings.database_url)
sync_engine = create_engine(
    sync_database_url,
    echo=settings.debug,
    **_engine_options(sync_database_url, pool_size=5, max_overflow=10),
)

SyncSessionLocal = sessionmaker(
    bind=sync_engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
