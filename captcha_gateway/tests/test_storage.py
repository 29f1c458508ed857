"""Tests for option storage backends."""

from __future__ import annotations

import pytest

from captcha_gateway.app.storage import DatabaseOptionStore, MemoryOptionStore, build_store
from captcha_gateway.db.base import create_all, dispose_engine

from .utils import OPTION_NAME


@pytest.mark.asyncio
async def test_memory_store_returns_copies() -> None:
    store = MemoryOptionStore()
    value = {"api_key": "a", "nested": {"x": 1}}

    await store.set(OPTION_NAME, value)
    value["nested"]["x"] = 2
    loaded = await store.get(OPTION_NAME)
    loaded["api_key"] = "changed"

    assert await store.get(OPTION_NAME) == {"api_key": "a", "nested": {"x": 1}}


@pytest.mark.asyncio
async def test_memory_store_delete_is_idempotent() -> None:
    store = MemoryOptionStore({OPTION_NAME: {"api_key": "a"}})

    await store.delete(OPTION_NAME)
    await store.delete(OPTION_NAME)

    assert await store.get(OPTION_NAME) is None


@pytest.mark.asyncio
async def test_build_store_without_url_is_in_memory() -> None:
    assert isinstance(await build_store(None), MemoryOptionStore)


@pytest.mark.asyncio
async def test_database_store_round_trip(sqlite_url) -> None:
    store = await build_store(sqlite_url)
    assert isinstance(store, DatabaseOptionStore)

    assert await store.get(OPTION_NAME) is None

    await store.set(OPTION_NAME, {"api_key": "a", "wordpress_core_enable_login": False})
    await store.set(OPTION_NAME, {"api_key": "b", "wordpress_core_enable_login": True})

    assert await store.get(OPTION_NAME) == {"api_key": "b", "wordpress_core_enable_login": True}

    await store.delete(OPTION_NAME)
    assert await store.get(OPTION_NAME) is None


@pytest.mark.asyncio
async def test_database_store_requires_engine() -> None:
    await dispose_engine()

    with pytest.raises(RuntimeError):
        await DatabaseOptionStore().get(OPTION_NAME)
    with pytest.raises(RuntimeError):
        await create_all()
