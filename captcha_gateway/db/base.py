"""Declarative base and the process-wide async engine for the options table."""
from __future__ import annotations

from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Bind the store to ``database_url``; later calls reuse the first engine."""

    global _engine, _session_factory

    if _engine is None:
        _engine = create_async_engine(database_url, **kwargs)
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


async def create_all() -> None:
    if _engine is None:
        raise RuntimeError("Database engine has not been initialised")
    async with _engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


def create_session() -> AsyncSession:
    if _session_factory is None:
        raise RuntimeError("Database engine has not been initialised")
    return _session_factory()


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""

    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "Base",
    "create_all",
    "create_engine",
    "create_session",
    "dispose_engine",
]
