"""Live credential self-test run before gating settings are persisted."""
from __future__ import annotations

import enum
from typing import Callable

from .captcha import VerificationClient
from .integrations import IntegrationRegistry
from .logging import get_logger
from .models import ConfigurationRecord


logger = get_logger("captcha_gateway.self_test")

ClientFactory = Callable[[ConfigurationRecord], VerificationClient]


class GateOutcome(str, enum.Enum):
    NOT_REQUESTED = "not_requested"
    MISSING_CREDENTIALS = "missing_credentials"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def triggered(self) -> bool:
        return self in (GateOutcome.PASSED, GateOutcome.FAILED)


class SelfTestGate:
    """Decide whether a candidate record's credentials work end to end."""

    def __init__(self, client_factory: ClientFactory) -> None:
        self._client_factory = client_factory

    @staticmethod
    def requested_gating(record: ConfigurationRecord, registry: IntegrationRegistry) -> list[str]:
        fields = registry.gating_fields(available_only=True)
        return record.enabled_flags(item.setting_name for item in fields)

    async def run(self, record: ConfigurationRecord, registry: IntegrationRegistry) -> GateOutcome:
        requested = self.requested_gating(record, registry)
        if not requested:
            return GateOutcome.NOT_REQUESTED
        if not record.api_key or not record.sitekey:
            return GateOutcome.MISSING_CREDENTIALS

        try:
            client = self._client_factory(record)
            passed = await client.test_current_settings(record.sitekey)
        except Exception:
            logger.warning("settings_self_test_error", exc_info=True)
            passed = False

        if passed:
            logger.info("settings_self_test_passed", integrations=requested)
            return GateOutcome.PASSED

        logger.warning("settings_self_test_failed", integrations=requested)
        return GateOutcome.FAILED


__all__ = ["ClientFactory", "GateOutcome", "SelfTestGate"]
