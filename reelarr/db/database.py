"""
Reelarr Database Management
Handles database initialization and sessions
"""

import asyncio
from pathlib import Path
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import event

from reelarr.db.models import Base
from reelarr.utils.config import get_settings

import structlog

logger = structlog.get_logger(__name__)

# Database engine and session factory (initialized lazily)
_engine = None
_async_session_factory = None
_lock = asyncio.Lock()


def get_db_path() -> Path:
    """Get the path to the SQLite database file."""
    settings = get_settings()
    return settings.data_dir / "reelarr.db"


def get_database_url() -> str:
    """Get the database URL; ``DATABASE_URL`` overrides the data dir default."""
    settings = get_settings()
    if settings.database_url:
        return settings.database_url
    return f"sqlite+aiosqlite:///{get_db_path()}"


def create_engine(url: str):
    """Create an async engine with the SQLite pragmas applied on connect."""
    engine = create_async_engine(
        url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False},
    )

    # Enable WAL mode for better concurrent access
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def create_session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def get_engine():
    """Get or create the database engine."""
    global _engine

    async with _lock:
        if _engine is None:
            _engine = create_engine(get_database_url())
            logger.info("Database engine created", url=get_database_url())

    return _engine


async def get_session_factory():
    """Get or create the async session factory."""
    global _async_session_factory

    if _async_session_factory is None:
        engine = await get_engine()
        async with _lock:
            if _async_session_factory is None:
                _async_session_factory = create_session_factory(engine)
                logger.info("Session factory created")

    return _async_session_factory


async def init_db() -> None:
    """Initialize the database, creating tables if they don't exist."""
    if not get_settings().database_url:
        get_db_path().parent.mkdir(parents=True, exist_ok=True)

    engine = await get_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized", url=get_database_url())


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.

    This does NOT auto-commit; callers must ``await db.commit()``.
    """
    session_factory = await get_session_factory()
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Close the database engine."""
    global _engine, _async_session_factory

    async with _lock:
        if _engine:
            await _engine.dispose()
            _engine = None
            _async_session_factory = None
            logger.info("Database connection closed")
