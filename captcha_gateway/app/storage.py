"""Key-value option storage for the persisted settings record."""
from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.base import create_all, create_engine, create_session
from ..db.models import Option
from .logging import get_logger


LOGGER = get_logger("captcha_gateway.storage")


class OptionStore:
    """Minimal option interface; every write replaces the whole value."""

    async def get(self, name: str) -> Optional[dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    async def set(self, name: str, value: dict[str, Any]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def delete(self, name: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class MemoryOptionStore(OptionStore):
    """In-process option store used by tests and single-process tooling."""

    def __init__(self, initial: Optional[dict[str, dict[str, Any]]] = None) -> None:
        self._store: dict[str, dict[str, Any]] = copy.deepcopy(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, name: str) -> Optional[dict[str, Any]]:
        async with self._lock:
            value = self._store.get(name)
            return copy.deepcopy(value) if value is not None else None

    async def set(self, name: str, value: dict[str, Any]) -> None:
        async with self._lock:
            self._store[name] = copy.deepcopy(value)

    async def delete(self, name: str) -> None:
        async with self._lock:
            self._store.pop(name, None)


class DatabaseOptionStore(OptionStore):
    """Options persisted as JSON rows through async SQLAlchemy."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = create_session) -> None:
        self._session_factory = session_factory

    async def get(self, name: str) -> Optional[dict[str, Any]]:
        async with self._session_factory() as session:
            option = await session.get(Option, name)
            if option is None:
                return None
            return dict(option.value or {})

    async def set(self, name: str, value: dict[str, Any]) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                option = await session.get(Option, name)
                if option is None:
                    session.add(Option(name=name, value=dict(value)))
                else:
                    option.value = dict(value)
        LOGGER.debug("option_written", name=name)

    async def delete(self, name: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(Option).where(Option.name == name))
        LOGGER.debug("option_deleted", name=name)


async def build_store(database_url: str | None, *, echo: bool = False) -> OptionStore:
    """Return a database-backed store, or an in-memory one when no URL is given."""

    if not database_url:
        return MemoryOptionStore()
    create_engine(database_url, echo=echo)
    await create_all()
    return DatabaseOptionStore()


__all__ = [
    "DatabaseOptionStore",
    "MemoryOptionStore",
    "OptionStore",
    "build_store",
]
