"""Public endpoints consumed by the form integrations."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..context import PluginContext
from ..dependencies import get_context
from ..schemas.settings import VerifyFormRequest, VerifyFormResponse, WidgetResponse
from ..widget import script_url

router = APIRouter(prefix="/forms", tags=["forms"])


def _ensure_surface(context: PluginContext, surface: str) -> None:
    if context.registry.field_for_surface(surface) is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Unknown form surface")


@router.get("/widget", response_model=WidgetResponse)
async def get_widget(context: PluginContext = Depends(get_context)) -> WidgetResponse:
    """Return the widget markup for the current configuration."""

    html = context.render_widget()
    return WidgetResponse(html=html, script_url=script_url(context.record) if html else None)


@router.get("/{surface}/widget", response_model=WidgetResponse)
async def get_surface_widget(
    surface: str,
    context: PluginContext = Depends(get_context),
) -> WidgetResponse:
    """Return the markup to inject into ``surface``; empty when it is not protected."""

    _ensure_surface(context, surface)
    html = await context.render_surface(surface)
    return WidgetResponse(html=html, script_url=script_url(context.record) if html else None)


@router.post("/{surface}/verify", response_model=VerifyFormResponse)
async def verify_form(
    surface: str,
    payload: VerifyFormRequest,
    context: PluginContext = Depends(get_context),
) -> VerifyFormResponse:
    _ensure_surface(context, surface)
    verdict = await context.verify_form(surface, payload.form)
    return VerifyFormResponse(allowed=verdict.allowed, code=verdict.code, message=verdict.message)
