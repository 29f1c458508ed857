"""Common FastAPI dependency helpers."""
from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from .context import PluginContext


_admin_token_header = APIKeyHeader(name="X-Admin-Token", auto_error=False)


def get_context(request: Request) -> PluginContext:
    """Return the application context created during startup."""

    context = getattr(request.app.state, "context", None)
    if context is None:  # pragma: no cover - lifespan always sets it
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Gateway is starting")
    return context


async def require_admin(
    token: str | None = Security(_admin_token_header),
    context: PluginContext = Depends(get_context),
) -> None:
    """Guard administrative endpoints with the configured shared token."""

    expected = context.config.admin.token
    if not expected:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Administrative access is not configured",
        )
    if not token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Invalid admin token")


__all__ = ["get_context", "require_admin"]
