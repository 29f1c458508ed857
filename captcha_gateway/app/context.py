"""Application context wiring storage, the verification client and integrations."""
from __future__ import annotations

from typing import Any, Mapping

import httpx

from .captcha import ApiKeyError, VerificationClient
from .config import Settings
from .hooks import HookRegistry
from .integrations import (
    FormVerdict,
    IntegrationRegistry,
    build_registry,
    render_event,
    verify_event,
)
from .logging import get_logger
from .models import ConfigurationRecord
from .self_test import ClientFactory, SelfTestGate
from .settings_service import SETTINGS_RESET, SETTINGS_UPDATED, SettingsService
from .storage import OptionStore
from .widget import render_widget


logger = get_logger("captcha_gateway.context")


def make_client_factory(
    config: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientFactory:
    captcha = config.captcha

    def factory(record: ConfigurationRecord) -> VerificationClient:
        return VerificationClient(
            record.api_key,
            record.custom_domain,
            record.eu_isolation,
            timeout_seconds=captcha.request_timeout_seconds,
            max_redirects=captcha.max_redirects,
            verify_attempts=captcha.verify_attempts,
            transport=transport,
        )

    return factory


class PluginContext:
    """Explicitly constructed replacement for a process-wide plugin singleton."""

    def __init__(
        self,
        *,
        config: Settings,
        store: OptionStore,
        registry: IntegrationRegistry | None = None,
        hooks: HookRegistry | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.config = config
        self.hooks = hooks or HookRegistry()
        self.registry = registry or build_registry(config.captcha.active_plugins)
        self._client_factory = client_factory or make_client_factory(config)
        self._client: VerificationClient | None = None
        self._record = ConfigurationRecord()
        self.settings = SettingsService(
            store=store,
            registry=self.registry,
            gate=SelfTestGate(self._client_factory),
            hooks=self.hooks,
            option_name=config.storage.option_name,
            clamp_without_credentials=config.captcha.clamp_without_credentials,
        )
        self.hooks.add(SETTINGS_UPDATED, self.rebuild, owner="context")
        self.hooks.add(SETTINGS_RESET, self.reset_client, owner="context")

    @property
    def client(self) -> VerificationClient | None:
        return self._client

    @property
    def record(self) -> ConfigurationRecord:
        return self._record

    async def bootstrap(self) -> None:
        """Load (or seed) the stored record and wire everything from it."""

        record = await self.settings.ensure_defaults()
        self.rebuild(record)

    def reset_client(self) -> None:
        self._client = None

    def rebuild(self, record: ConfigurationRecord) -> None:
        """Replace the client and re-run integration wiring for ``record``."""

        self._record = record
        self._client = None
        if record.is_configured:
            try:
                self._client = self._client_factory(record)
            except ApiKeyError:
                logger.warning("captcha_client_unavailable", reason="empty_api_key")
        self.registry.init_enabled(self, record)
        logger.info(
            "captcha_context_rebuilt",
            configured=record.is_configured,
            domain=self._client.domain if self._client else None,
        )

    def render_widget(self, **kwargs: Any) -> str:
        return render_widget(self._record, **kwargs)

    async def render_surface(self, surface: str) -> str:
        return await self.hooks.apply(render_event(surface), "")

    async def verify_form(self, surface: str, form: Mapping[str, Any]) -> FormVerdict:
        """Run the captcha checks registered for ``surface``; unprotected surfaces pass."""

        return await self.hooks.apply(verify_event(surface), FormVerdict.allow(), form)


__all__ = ["PluginContext", "make_client_factory"]
