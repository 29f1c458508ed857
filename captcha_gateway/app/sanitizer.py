"""Normalisation of raw settings form input into a configuration record."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from .integrations import IntegrationRegistry
from .models import (
    DEMO_SITEKEY,
    ConfigurationRecord,
    Diagnostic,
    DiagnosticLevel,
    Language,
    StartMode,
    Theme,
)


TRUE_SENTINEL = "1"

_SCHEMES = ("https://", "http://")
_API_PREFIXES = ("api.", "cdn.", "portal.")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RUN = re.compile(r"\s+")
_TAGS = re.compile(r"<[^>]*>")


@dataclass(slots=True)
class SanitizeResult:
    record: ConfigurationRecord
    diagnostics: list[Diagnostic] = field(default_factory=list)


def clean_text(value: Any) -> str:
    """Single-line text: tags and control characters removed, whitespace collapsed."""

    if not isinstance(value, str):
        return ""
    cleaned = _TAGS.sub("", value)
    cleaned = _CONTROL_CHARS.sub(" ", cleaned)
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


def clean_textarea(value: Any) -> str:
    """Multi-line text: like :func:`clean_text` but line breaks and tabs survive."""

    if not isinstance(value, str):
        return ""
    cleaned = _TAGS.sub("", value)
    cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", cleaned)
    return cleaned.strip()


def normalize_custom_domain(value: Any) -> str:
    """Reduce a pasted endpoint URL to the bare root domain."""

    domain = clean_text(value)

    for scheme in _SCHEMES:
        if domain.startswith(scheme):
            domain = domain[len(scheme):]
            break

    for prefix in _API_PREFIXES:
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
            break

    return domain.lstrip().rstrip("/")


def normalize_custom_styles(value: Any) -> str:
    styles = clean_textarea(value)
    if not styles:
        return styles
    for char in ("\r", "\n", "\t"):
        styles = styles.replace(char, " ")
    while "  " in styles:
        styles = styles.replace("  ", " ")
    return styles.strip()


def parse_flag(raw: Mapping[str, Any], name: str) -> bool:
    """Checkbox semantics: only the exact sentinel string counts as checked."""

    return name in raw and raw[name] == TRUE_SENTINEL


def _choice(raw: Mapping[str, Any], name: str, enum_cls, default):
    value = raw.get(name)
    if isinstance(value, str):
        for member in enum_cls:
            if member.value == value:
                return member
    return default


def sanitize(
    raw: Mapping[str, Any] | None,
    registry: IntegrationRegistry,
    previous: ConfigurationRecord | None = None,
) -> SanitizeResult:
    """Build a candidate record from untrusted input.

    Every field is rebuilt from ``raw``; the only values carried over from
    ``previous`` are the flags of integrations that are currently unavailable.
    Never raises.
    """

    raw = raw if isinstance(raw, Mapping) else {}
    previous = previous or ConfigurationRecord()

    integrations: dict[str, bool] = {}
    for integration in registry:
        available = integration.is_available()
        for item in integration.fields:
            name = item.setting_name
            if available:
                integrations[name] = parse_flag(raw, name)
            else:
                integrations[name] = previous.flag(name)

    record = ConfigurationRecord(
        api_key=clean_text(raw.get("api_key")),
        sitekey=clean_text(raw.get("sitekey")),
        custom_domain=normalize_custom_domain(raw.get("custom_domain")),
        eu_isolation=parse_flag(raw, "eu_isolation"),
        theme=_choice(raw, "theme", Theme, Theme.LIGHT),
        language=_choice(raw, "language", Language, Language.AUTO),
        start_mode=_choice(raw, "start_mode", StartMode, StartMode.AUTO),
        debug_mode=parse_flag(raw, "debug_mode"),
        custom_styles=normalize_custom_styles(raw.get("custom_styles")),
        integrations=integrations,
    )

    diagnostics: list[Diagnostic] = []
    if not record.api_key:
        diagnostics.append(Diagnostic(code="api_key_required", message="API Key is required."))
    if not record.sitekey:
        diagnostics.append(Diagnostic(code="sitekey_required", message="Site Key is required."))
    if record.sitekey == DEMO_SITEKEY:
        diagnostics.append(
            Diagnostic(
                code="stub_sitekey_warning",
                message=(
                    "Demo site key is active. For live sites, please use a real site key "
                    "from the Private Captcha portal."
                ),
                level=DiagnosticLevel.WARNING,
            )
        )

    return SanitizeResult(record=record, diagnostics=diagnostics)


__all__ = [
    "SanitizeResult",
    "TRUE_SENTINEL",
    "clean_text",
    "clean_textarea",
    "normalize_custom_domain",
    "normalize_custom_styles",
    "parse_flag",
    "sanitize",
]
