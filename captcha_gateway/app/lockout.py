"""Clamp gating integrations when their credentials were not proven."""
from __future__ import annotations

from dataclasses import dataclass, field

from .integrations import IntegrationRegistry
from .logging import get_logger
from .models import ConfigurationRecord, Diagnostic, DiagnosticLevel
from .self_test import GateOutcome


logger = get_logger("captcha_gateway.lockout")

SETTINGS_TEST_FAILED = Diagnostic(
    code="settings_test_failed",
    message=(
        "Private Captcha settings test failed. Please verify your API Key, Site Key, and "
        "domain settings. Form integrations have been disabled to prevent lockout."
    ),
)

MISSING_CREDENTIALS = Diagnostic(
    code="integrations_disabled_missing_credentials",
    message=(
        "Form integrations cannot be enabled without an API Key and Site Key and have "
        "been disabled to prevent lockout."
    ),
    level=DiagnosticLevel.WARNING,
)


@dataclass(slots=True)
class GuardResult:
    record: ConfigurationRecord
    diagnostics: list[Diagnostic] = field(default_factory=list)
    clamped: list[str] = field(default_factory=list)


def _clamp(record: ConfigurationRecord, registry: IntegrationRegistry) -> tuple[ConfigurationRecord, list[str]]:
    names = [item.setting_name for item in registry.gating_fields(available_only=True)]
    clamped = record.enabled_flags(names)
    return record.with_flags({name: False for name in names}), clamped


def apply_lockout_guard(
    record: ConfigurationRecord,
    outcome: GateOutcome,
    registry: IntegrationRegistry,
    *,
    clamp_without_credentials: bool = True,
) -> GuardResult:
    """Return the record to persist for the given self-test ``outcome``.

    Only gating flags are ever changed.
    """

    if outcome is GateOutcome.FAILED:
        clamped_record, clamped = _clamp(record, registry)
        logger.warning("integrations_clamped", reason=outcome.value, integrations=clamped)
        return GuardResult(clamped_record, [SETTINGS_TEST_FAILED], clamped)

    if outcome is GateOutcome.MISSING_CREDENTIALS and clamp_without_credentials:
        clamped_record, clamped = _clamp(record, registry)
        logger.warning("integrations_clamped", reason=outcome.value, integrations=clamped)
        return GuardResult(clamped_record, [MISSING_CREDENTIALS], clamped)

    return GuardResult(record)


__all__ = [
    "GuardResult",
    "MISSING_CREDENTIALS",
    "SETTINGS_TEST_FAILED",
    "apply_lockout_guard",
]
