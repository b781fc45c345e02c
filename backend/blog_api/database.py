"""
Modern Blog API — Database Engine & Session Management
========================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI dependency that hands one session to each request.
How:   `Database` owns the engine and session factory. One instance is created
       in the app lifespan, stored on `app.state.database`, and disposed on
       shutdown. Handlers reach it only through `get_db_session`.

Connection Pooling (PostgreSQL):
    pool_size / max_overflow come from settings.
    pool_pre_ping validates connections before use.
    pool_recycle=3600 recycles connections every hour.

SQLite (tests, local experiments) uses SQLAlchemy's default pool, which
rejects the sizing arguments, so they are only passed for server databases.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from blog_api.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Shares one metadata object, which Alembic reads for autogenerate and the
    test suite uses to create the schema.
    """
    pass


class Database:
    """
    Process-scoped handle on the store.

    Lifecycle:
        db = Database(url)       # engine created, no connection yet
        await db.ping()          # optional connectivity check
        ...                      # sessions handed out per request
        await db.dispose()       # close pooled connections on shutdown
    """

    def __init__(self, url: str, config: Optional[Settings] = None):
        config = config or default_settings
        engine_kwargs = {"echo": config.log_level == "DEBUG"}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=config.db_pool_size,
                max_overflow=config.db_max_overflow,
                pool_pre_ping=config.db_pool_pre_ping,
                pool_recycle=3600,
            )
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False keeps loaded attributes usable after commit,
        # when lazy loading is no longer possible
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create every table known to Base.metadata (tests and first runs)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        """Run SELECT 1; False when the database cannot be reached."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session that commits on success and rolls back on any error.

        Errors are re-raised so the global handlers can respond.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency providing one AsyncSession per request.

    Example:
        @router.get("/posts")
        async def list_posts(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
