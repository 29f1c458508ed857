"""Common test fixtures for captcha gateway unit tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from captcha_gateway.app.config import Settings
from captcha_gateway.app.context import PluginContext, make_client_factory
from captcha_gateway.app.main import create_app
from captcha_gateway.app.storage import MemoryOptionStore
from captcha_gateway.db.base import dispose_engine

from .utils import ADMIN_TOKEN, FakeCaptchaApi, make_config


@pytest.fixture
def fake_api() -> FakeCaptchaApi:
    return FakeCaptchaApi()


@pytest.fixture
def gateway_config() -> Settings:
    return make_config()


@pytest.fixture
def option_store() -> MemoryOptionStore:
    return MemoryOptionStore()


@pytest_asyncio.fixture
async def plugin_context(
    gateway_config: Settings,
    option_store: MemoryOptionStore,
    fake_api: FakeCaptchaApi,
) -> PluginContext:
    context = PluginContext(
        config=gateway_config,
        store=option_store,
        client_factory=make_client_factory(gateway_config, fake_api.transport),
    )
    await context.bootstrap()
    return context


@pytest_asyncio.fixture
async def api_client(plugin_context: PluginContext) -> AsyncIterator[AsyncClient]:
    app = create_app(context=plugin_context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest_asyncio.fixture
async def sqlite_url(tmp_path) -> AsyncIterator[str]:
    yield f"sqlite+aiosqlite:///{tmp_path / 'captcha_gateway.db'}"
    await dispose_engine()
