"""Database engine and session factory construction for the SQL mapping store.

This module provides SQLAlchemy async engine setup and schema lifecycle
operations using PostgreSQL as the backend. Nothing is created at import
time; the service manager builds the engine at startup and passes the
session factory to :class:`~shortlinks.store.sql.SQLMappingStore`.

Flow Diagram — Database Operations
=================================
::
    ┌─────────────┐
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ engine()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ init_db()   │
    │ (tables)    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ store opens │
    │ a session   │
    │ per call    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ close_db()  │
    │ (dispose)   │
    └─────────────┘

How to Use
===========
**Step 1 — Build the engine**::
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

**Step 2 — Create tables**::
    await init_db(engine)

**Step 3 — Cleanup on shutdown**::
    await close_db(engine)

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    create_engine():  Builds a pooled async engine from settings.
    create_session_factory():  Session factory bound to an engine.
    init_db():  Creates all tables.
    close_db():  Disposes the engine.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlinks.config import Settings

__all__ = ["Base", "close_db", "create_engine", "create_session_factory", "init_db"]


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.DATABASE_URL,
        echo=(settings.APP_ENV == "development"),
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    # Import registers the table on Base.metadata.
    from shortlinks import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
