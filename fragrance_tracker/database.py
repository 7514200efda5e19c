"""
Fragrance Tracker Backend: Database Session Management
======================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine over aiosqlite, provides a session dependency
       that auto-commits on success and auto-rolls-back on error.
Who:   Route handlers via FastAPI's dependency injection; the sweep scheduler
       via the session factory.
When:  Engine is created at module import; sessions are created per-request
       (or per sweep item).

SQLite specifics:
    - Foreign keys are OFF by default in SQLite. A connect listener issues
      `PRAGMA foreign_keys=ON` on every new DBAPI connection so that
      `ON DELETE CASCADE` from fragrances reaches inventory, usage events and
      wear entries.
    - Pool sizing arguments are only passed for server databases; the
      aiosqlite dialect picks its own pool class.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from starlette.requests import Request

from fragrance_tracker.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    For SQLite URLs the foreign-key pragma listener is attached to the
    underlying sync engine. Extra keyword arguments go to create_async_engine.
    """
    new_engine = create_async_engine(database_url, **kwargs)
    if database_url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


# ── Engine Configuration ──────────────────────────────────────────────────
_engine_options = {
    # Echo SQL queries in DEBUG mode for development visibility
    "echo": settings.log_level == "DEBUG",
}
if not settings.is_sqlite:
    _engine_options.update(pool_pre_ping=True, pool_recycle=3600)

engine = build_engine(settings.database_url, **_engine_options)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# response builders rely on outside the session context
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model on a single metadata object, which Alembic reads
    for autogenerate and `init_models()` uses for local table creation.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory on `app.state`
           (create_app() stores it there; falls back to the module factory)
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Raises:
        Any database exceptions are propagated to the global error handler,
        which returns appropriate HTTP status codes.
    """
    factory = getattr(request.app.state, "session_factory", async_session_factory)
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(target_engine: AsyncEngine = engine) -> None:
    """
    Create any missing tables from the ORM metadata.

    When:  Called during startup if settings.db_auto_create is set, and by
           the test suite against a temporary database.
    """
    # Import models so every table is registered on Base.metadata
    from fragrance_tracker import models  # noqa: F401

    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def engine_for(factory: async_sessionmaker[AsyncSession]) -> AsyncEngine:
    """The engine a session factory is bound to."""
    return factory.kw["bind"]


async def dispose_engine(target_engine: AsyncEngine = engine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await target_engine.dispose()
