"""FastAPI application factory for the captcha gateway."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..db.base import dispose_engine
from .config import settings
from .context import PluginContext
from .logging import get_logger, setup_logging
from .routes import forms
from .routes import settings as settings_routes
from .storage import build_store

setup_logging(level=settings.log_level)

logger = get_logger("captcha_gateway.main")


@asynccontextmanager
async def _lifespan(app: FastAPI):  # pragma: no cover - exercised via integration tests
    """Build the application context unless one was injected."""

    owns_context = getattr(app.state, "context", None) is None
    if owns_context:
        store = await build_store(settings.database_url, echo=settings.sqlalchemy_echo)
        context = PluginContext(config=settings, store=store)
        await context.bootstrap()
        app.state.context = context
        logger.info("captcha_gateway_started", env=settings.env)
    try:
        yield
    finally:
        if owns_context:
            app.state.context = None
            await dispose_engine()


def create_app(*, context: PluginContext | None = None, api_prefix: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Parameters
    ----------
    context:
        Optional pre-built :class:`PluginContext`. Tests pass one wired to an
        in-memory store and a mocked HTTP transport; production leaves it
        ``None`` and the lifespan builds it from configuration.
    api_prefix:
        Optional path prefix under which the routers are mounted.
    """

    app = FastAPI(title="Private Captcha Gateway", version="1.0", lifespan=_lifespan)
    app.state.context = context

    router_prefix = api_prefix.rstrip("/") if api_prefix else ""
    if router_prefix and not router_prefix.startswith("/"):
        router_prefix = f"/{router_prefix}"

    app.include_router(settings_routes.router, prefix=router_prefix)
    app.include_router(forms.router, prefix=router_prefix)

    return app


app = create_app(api_prefix="/api")
