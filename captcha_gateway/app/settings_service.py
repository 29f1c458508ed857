"""Settings save pipeline and read accessors for the configuration record."""
from __future__ import annotations

from typing import Any, Mapping

from .hooks import HookRegistry
from .integrations import IntegrationRegistry
from .lockout import apply_lockout_guard
from .logging import get_logger
from .models import ConfigurationRecord, Diagnostic, default_record
from .sanitizer import clean_text, sanitize
from .self_test import SelfTestGate
from .storage import OptionStore


logger = get_logger("captcha_gateway.settings")

SETTINGS_UPDATED = "settings_updated"
SETTINGS_RESET = "settings_reset"


class UnknownSettingError(KeyError):
    """Raised when an override names a setting that does not exist."""


class SettingsService:
    """Owns the persisted :class:`ConfigurationRecord`.

    The record is always read and written as a whole under ``option_name``.
    ``settings_updated`` fires only after a write succeeded.
    """

    def __init__(
        self,
        *,
        store: OptionStore,
        registry: IntegrationRegistry,
        gate: SelfTestGate,
        hooks: HookRegistry,
        option_name: str = "private_captcha_settings",
        clamp_without_credentials: bool = True,
    ) -> None:
        self._store = store
        self._registry = registry
        self._gate = gate
        self._hooks = hooks
        self._option_name = option_name
        self._clamp_without_credentials = clamp_without_credentials

    @property
    def registry(self) -> IntegrationRegistry:
        return self._registry

    async def get_all_settings(self) -> ConfigurationRecord:
        payload = await self._store.get(self._option_name)
        return ConfigurationRecord.from_option(payload, self._registry.field_names())

    async def get_setting(self, name: str, default: Any = None) -> Any:
        record = await self.get_all_settings()
        return record.get(name, default)

    async def is_configured(self) -> bool:
        record = await self.get_all_settings()
        return record.is_configured

    async def _persist(self, record: ConfigurationRecord) -> None:
        await self._store.set(self._option_name, record.to_option())
        await self._hooks.dispatch(SETTINGS_UPDATED, record)

    async def validate_and_persist(self, raw_input: Mapping[str, Any] | None) -> list[Diagnostic]:
        """Sanitize, self-test and persist a settings form submission."""

        previous = await self.get_all_settings()
        sanitized = sanitize(raw_input, self._registry, previous)
        outcome = await self._gate.run(sanitized.record, self._registry)
        guarded = apply_lockout_guard(
            sanitized.record,
            outcome,
            self._registry,
            clamp_without_credentials=self._clamp_without_credentials,
        )

        await self._persist(guarded.record)

        diagnostics = [*sanitized.diagnostics, *guarded.diagnostics]
        logger.info(
            "settings_saved",
            self_test=outcome.value,
            configured=guarded.record.is_configured,
            enabled=guarded.record.enabled_flags(),
            errors=[item.code for item in diagnostics if item.is_error],
        )
        return diagnostics

    async def ensure_defaults(self) -> ConfigurationRecord:
        """Write the default record when nothing has been stored yet."""

        payload = await self._store.get(self._option_name)
        if payload:
            return ConfigurationRecord.from_option(payload, self._registry.field_names())
        record = default_record(self._registry)
        await self._store.set(self._option_name, record.to_option())
        return record

    async def reset(self) -> ConfigurationRecord:
        """Delete the stored record and write back a fresh default."""

        await self._store.delete(self._option_name)
        await self._hooks.dispatch(SETTINGS_RESET)
        record = default_record(self._registry)
        await self._persist(record)
        logger.info("settings_reset")
        return record

    # Emergency overrides below skip the self-test on purpose: they exist to
    # recover a site that is already locked out.

    async def update_api_key(self, api_key: str) -> ConfigurationRecord:
        cleaned = clean_text(api_key)
        if not cleaned:
            raise ValueError("API key must be a non-empty string")
        record = await self.get_all_settings()
        record = record.model_copy(update={"api_key": cleaned})
        await self._persist(record)
        logger.warning("settings_override", field="api_key")
        return record

    async def set_integration_flag(self, setting_name: str, enabled: bool) -> ConfigurationRecord:
        if setting_name not in self._registry.field_names():
            raise UnknownSettingError(setting_name)
        record = await self.get_all_settings()
        record = record.with_flags({setting_name: enabled})
        await self._persist(record)
        logger.warning("settings_override", field=setting_name, enabled=enabled)
        return record


__all__ = [
    "SETTINGS_RESET",
    "SETTINGS_UPDATED",
    "SettingsService",
    "UnknownSettingError",
]
