"""Async SQLAlchemy engine management.

The engine is the relational handle handed to the rate limiter and the
contacts repository; nothing here holds module-level state, so tests can
build an isolated in-memory database per app instance.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


def create_engine_from_url(database_url: str) -> AsyncEngine:
    """Create an async engine for ``database_url``.

    In-memory SQLite databases live inside a single connection, so they get a
    ``StaticPool`` that shares it across sessions.
    """

    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(database_url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create the rate_limits and contacts tables if they do not exist."""

    # Import models so their tables are registered on Base.metadata.
    from app.models import contact, rate_limit  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
