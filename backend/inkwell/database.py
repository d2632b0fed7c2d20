"""
Inkwell Backend: Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory, declarative base,
       FastAPI session dependency and table provisioning.
How:   Creates an async engine (aiosqlite by default), provides a session
       dependency that commits on success and rolls back on error, and a
       check-then-create helper run once at startup.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by the lifespan handler in main.py.
When:  Engine is created at module import; sessions are created per-request.

Schema management:
    There are no migrations. The `posts` table is created on startup if it
    does not exist yet and is never altered afterwards.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from inkwell.config import settings

logger = logging.getLogger(__name__)


def _engine_options() -> dict:
    """
    Connection pool options for the configured database.

    SQLite files run with the driver's default pool; server databases get
    the sizing from settings.
    """
    options = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after the explicit commits
# done by PostService
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/post")
        async def read_posts(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
def _create_missing_tables(connection: Connection) -> list:
    """Creates every mapped table absent from the database; returns their names."""
    inspector = inspect(connection)
    missing = [
        table
        for table in Base.metadata.sorted_tables
        if not inspector.has_table(table.name)
    ]
    if missing:
        Base.metadata.create_all(connection, tables=missing)
    return [table.name for table in missing]


async def create_tables_if_missing(bind: AsyncEngine = None) -> list:
    """
    What:  Idempotent check-then-create of the application tables.
    When:  Called once during application startup (lifespan handler).
    How:   Runs the synchronous inspector inside `run_sync` and creates only
           the tables that are not there yet. Existing tables are untouched.

    Returns:
        Names of the tables that were created (empty when all existed).
    """
    # Registers the Post model on Base.metadata
    from inkwell.models import post  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        created = await conn.run_sync(_create_missing_tables)

    if created:
        logger.info("Created missing tables: %s", ", ".join(created))
    else:
        logger.info("All tables present; nothing to create")
    return created


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
