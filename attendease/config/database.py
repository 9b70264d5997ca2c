"""
Database connection settings for the attendance backend.
Provides async SQLAlchemy engine construction, session management and
schema bootstrap.
"""

import time
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager
from functools import lru_cache

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from attendease.config.settings import settings
from attendease.config.logging import get_logger

logger = get_logger(__name__)


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - start timer"""
    conn.info.setdefault('query_start_time', []).append(time.time())


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - stop timer and log if slow query"""
    total_time = time.time() - conn.info['query_start_time'].pop()

    if total_time > settings.DB_SLOW_QUERY_SECONDS:
        logger.warning(
            f"Slow query detected ({total_time:.4f}s): "
            f"{statement[:100]}... with params {parameters}"
        )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: Optional[str] = None, **kwargs) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL (asyncpg) gets the pooled configuration from settings;
    SQLite (aiosqlite) gets foreign keys on, and an in-memory database is
    kept on a single shared connection.
    """
    url = url or settings.get_database_url()

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if ":memory:" in url or url.endswith("://"):
            kwargs.setdefault("poolclass", StaticPool)
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)
        kwargs.setdefault("max_overflow", settings.DB_POOL_OVERFLOW)
        kwargs.setdefault("pool_recycle", 3600)

    engine = create_async_engine(url, echo=settings.DB_ECHO, **kwargs)

    sync_engine: Engine = engine.sync_engine
    event.listen(sync_engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(sync_engine, "after_cursor_execute", _after_cursor_execute)
    if sync_engine.dialect.name == "sqlite":
        event.listen(sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory shared by request handlers and the notification fan-out."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@lru_cache()
def get_engine() -> AsyncEngine:
    """Process-wide engine built from settings"""
    return build_engine()


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return build_session_factory(get_engine())


@asynccontextmanager
async def get_db_context(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for database sessions, committing on success"""
    factory = session_factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Database context error: {str(e)}")
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (development and tests; use migrations in production)"""
    from attendease.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialized")


async def drop_db(engine: AsyncEngine) -> None:
    from attendease.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
