"""Administrative endpoints for the Private Captcha settings record."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..context import PluginContext
from ..dependencies import get_context, require_admin
from ..schemas.settings import (
    IntegrationListResponse,
    IntegrationResource,
    SettingsResponse,
    SettingsSaveResponse,
)

router = APIRouter(prefix="/settings", tags=["settings"], dependencies=[Depends(require_admin)])


@router.get("", response_model=SettingsResponse)
async def read_settings(context: PluginContext = Depends(get_context)) -> SettingsResponse:
    record = await context.settings.get_all_settings()
    return SettingsResponse(configured=record.is_configured, settings=record)


@router.post("", response_model=SettingsSaveResponse)
async def save_settings(
    raw_input: Dict[str, Any] = Body(...),
    context: PluginContext = Depends(get_context),
) -> SettingsSaveResponse:
    """Sanitize, self-test and persist a settings form submission.

    The record is always saved; problems are reported through ``diagnostics``
    rather than an error status so the operator keeps their other edits.
    """

    diagnostics = await context.settings.validate_and_persist(raw_input)
    record = await context.settings.get_all_settings()
    return SettingsSaveResponse(
        configured=record.is_configured,
        settings=record,
        diagnostics=diagnostics,
    )


@router.post("/reset", response_model=SettingsResponse)
async def reset_settings(context: PluginContext = Depends(get_context)) -> SettingsResponse:
    record = await context.settings.reset()
    return SettingsResponse(configured=record.is_configured, settings=record)


@router.get("/integrations", response_model=IntegrationListResponse)
async def list_integrations(context: PluginContext = Depends(get_context)) -> IntegrationListResponse:
    record = await context.settings.get_all_settings()
    return IntegrationListResponse(
        integrations=[
            IntegrationResource.model_validate(integration.describe(record))
            for integration in context.registry
        ]
    )
