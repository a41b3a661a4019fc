"""
Sprint Planning Backend — Database Engine Management
======================================================

What:  Async SQLAlchemy engine, session factory, declarative base and
       lifecycle helpers for the document table.
How:   Creates an async engine at import time; the store adapter opens one
       short-lived session per operation and commits immediately, so every
       read/create/replace is atomic on its own like a document store call.
Who:   Used by SqlDocumentStore, the health route and the app lifespan.

Connection Pooling Strategy:
    PostgreSQL (asyncpg):
        pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600
    SQLite (aiosqlite):
        NullPool — a connection per session, nothing bound to an event loop
        outlives the session.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from sprintplanning.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool arguments appropriate for the driver behind `database_url`."""
    if database_url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(
        database_url,
        echo=settings.log_level == "DEBUG",
        **engine_options(database_url),
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: rows are read after the commit that wrote them
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)
async_session_factory = build_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates the document table if it does not exist.
    When:  Application startup, and per test against a temporary database.
    """
    # Registers the models with Base.metadata
    from sprintplanning.models import sprint_planning_item  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Closes all pooled connections on application shutdown."""
    await engine.dispose()
