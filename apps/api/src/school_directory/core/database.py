"""
Database Configuration

Async SQLAlchemy engine and session management.

The engine is not a module-level singleton. `init_db()` builds a `Database`
handle during application startup; the handle is stored on `app.state` and
handed to request dependencies and background jobs explicitly.
"""

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from school_directory.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


@dataclass
class Database:
    """Connection pool handle shared by requests and background jobs."""

    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]

    def session(self) -> AsyncSession:
        """Open a new session. Use as `async with database.session() as db:`."""
        return self.session_maker()

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True


def create_database(url: str | None = None, **engine_kwargs) -> Database:
    """
    Build a Database handle without touching the network.

    Args:
        url: SQLAlchemy async URL (defaults to settings.database_url)
        **engine_kwargs: Extra arguments for create_async_engine

    Returns:
        Database handle
    """
    url = url or settings.database_url
    if not url.startswith("sqlite"):
        engine_kwargs.setdefault("pool_size", settings.database_pool_size)
        engine_kwargs.setdefault("max_overflow", settings.database_max_overflow)
        engine_kwargs.setdefault("pool_pre_ping", True)

    engine = create_async_engine(url, echo=settings.database_echo, **engine_kwargs)
    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return Database(engine=engine, session_maker=session_maker)


async def init_db(url: str | None = None, create_tables: bool = False) -> Database:
    """
    Create the Database handle and verify the connection.

    Call this on application startup.

    Args:
        url: SQLAlchemy async URL (defaults to settings.database_url)
        create_tables: Create all tables from model metadata (development only)

    Returns:
        Connected Database handle
    """
    database = create_database(url)

    if create_tables:
        # Import models so they are registered on Base.metadata
        from school_directory.modules.auth import models as _auth_models  # noqa: F401
        from school_directory.modules.schools import models as _school_models  # noqa: F401
        from school_directory.modules.users import models as _user_models  # noqa: F401

        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created from model metadata")
    else:
        await database.ping()

    return database


async def close_db(database: Database | None) -> None:
    """Dispose the connection pool."""
    if database is not None:
        await database.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    The session is committed when the request handler returns and rolled
    back if it raises.

    Usage:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
