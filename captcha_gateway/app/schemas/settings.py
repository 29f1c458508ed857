"""Pydantic models for the settings and forms endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..models import ConfigurationRecord, Diagnostic


class SettingsResponse(BaseModel):
    """Response schema for ``GET /settings``."""

    configured: bool
    settings: ConfigurationRecord


class SettingsSaveResponse(SettingsResponse):
    """Response schema for ``POST /settings``."""

    diagnostics: List[Diagnostic]


class IntegrationField(BaseModel):
    setting_name: str
    label: str
    description: str
    checkbox_text: str
    gating: bool
    enabled: bool


class IntegrationResource(BaseModel):
    """Descriptor of one integration and its checkboxes."""

    name: str
    plugin_name: str
    plugin_url: str
    available: bool
    fields: List[IntegrationField]


class IntegrationListResponse(BaseModel):
    integrations: List[IntegrationResource]


class WidgetResponse(BaseModel):
    html: str
    script_url: Optional[str] = None


class VerifyFormRequest(BaseModel):
    """Submitted form fields; the solution travels under ``private-captcha-solution``."""

    form: Dict[str, Any]

    model_config = ConfigDict(extra="ignore")


class VerifyFormResponse(BaseModel):
    allowed: bool
    code: Optional[str] = None
    message: Optional[str] = None
