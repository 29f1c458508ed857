"""Typed configuration record persisted for the Private Captcha integration."""
from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .integrations import IntegrationRegistry


RECORD_VERSION = 1

# Public demo key shipped in the Private Captcha documentation.
DEMO_SITEKEY = "aaaaaaaabbbbccccddddeeeeeeeeeeee"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class Language(str, enum.Enum):
    AUTO = "auto"
    EN = "en"
    DE = "de"
    ES = "es"
    FR = "fr"
    IT = "it"
    NL = "nl"
    SV = "sv"
    NO = "no"
    PL = "pl"
    FI = "fi"
    ET = "et"


class StartMode(str, enum.Enum):
    AUTO = "auto"
    CLICK = "click"


class DiagnosticLevel(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """Operator facing validation message produced while saving settings."""

    code: str
    message: str
    level: DiagnosticLevel = DiagnosticLevel.ERROR

    model_config = ConfigDict(frozen=True)

    @property
    def is_error(self) -> bool:
        return self.level is DiagnosticLevel.ERROR


_SCALAR_FIELDS = (
    "api_key",
    "sitekey",
    "custom_domain",
    "eu_isolation",
    "theme",
    "language",
    "start_mode",
    "debug_mode",
    "custom_styles",
)


class ConfigurationRecord(BaseModel):
    """Complete settings record, always rewritten as a whole."""

    version: int = RECORD_VERSION
    api_key: str = ""
    sitekey: str = ""
    custom_domain: str = ""
    eu_isolation: bool = False
    theme: Theme = Theme.LIGHT
    language: Language = Language.AUTO
    start_mode: StartMode = StartMode.AUTO
    debug_mode: bool = False
    custom_styles: str = ""
    integrations: dict[str, bool] = Field(default_factory=dict)

    model_config = ConfigDict(validate_assignment=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.sitekey)

    def flag(self, setting_name: str) -> bool:
        return bool(self.integrations.get(setting_name, False))

    def with_flags(self, flags: Mapping[str, bool]) -> "ConfigurationRecord":
        """Return a copy with the given integration flags overridden."""

        merged = dict(self.integrations)
        merged.update({name: bool(value) for name, value in flags.items()})
        return self.model_copy(update={"integrations": merged})

    def enabled_flags(self, names: Iterable[str] | None = None) -> list[str]:
        candidates = self.integrations.keys() if names is None else names
        return [name for name in candidates if self.flag(name)]

    def to_option(self) -> dict[str, Any]:
        """Flatten into the stored option layout (integration flags at top level)."""

        payload = self.model_dump(mode="json", exclude={"integrations"})
        payload.update({name: bool(value) for name, value in self.integrations.items()})
        return payload

    @classmethod
    def from_option(
        cls,
        payload: Mapping[str, Any] | None,
        field_names: Iterable[str] = (),
    ) -> "ConfigurationRecord":
        """Rebuild a record from the stored option, defaulting missing keys."""

        payload = dict(payload or {})
        known = set(cls.model_fields) - {"integrations"}
        clean: dict[str, Any] = {}
        for key in known:
            if key not in payload:
                continue
            try:
                cls.model_validate({key: payload[key]})
            except ValidationError:
                continue
            clean[key] = payload[key]

        integrations = {name: bool(payload.get(name, False)) for name in field_names}
        for key, value in payload.items():
            if key not in known and key not in integrations and isinstance(value, bool):
                integrations[key] = value
        clean["integrations"] = integrations
        return cls.model_validate(clean)

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a scalar field or an integration flag by its setting name."""

        if name in _SCALAR_FIELDS or name == "version":
            value = getattr(self, name)
            return value.value if isinstance(value, enum.Enum) else value
        if name in self.integrations:
            return self.integrations[name]
        return default


def default_record(registry: "IntegrationRegistry | None" = None) -> ConfigurationRecord:
    """Versioned default record with every known integration flag disabled."""

    names = registry.field_names() if registry is not None else []
    return ConfigurationRecord(integrations={name: False for name in names})


__all__ = [
    "ConfigurationRecord",
    "DEMO_SITEKEY",
    "Diagnostic",
    "DiagnosticLevel",
    "Language",
    "RECORD_VERSION",
    "StartMode",
    "Theme",
    "default_record",
]
