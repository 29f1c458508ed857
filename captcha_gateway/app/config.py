"""Centralized application configuration for the captcha gateway."""
from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ROOT_DIR = Path(__file__).resolve().parents[2]
_GATEWAY_DIR = _ROOT_DIR / "captcha_gateway"
_DEFAULT_ENV_FILES: tuple[Path, ...] = (
    _ROOT_DIR / ".env",
    _GATEWAY_DIR / ".env",
)


class CaptchaSettings(BaseModel):
    """Remote Private Captcha API and self-test configuration."""

    model_config = ConfigDict(populate_by_name=True)

    request_timeout_seconds: float = Field(
        default=10.0,
        ge=1,
        le=10,
        validation_alias=AliasChoices(
            "CAPTCHA_REQUEST_TIMEOUT_SECONDS",
            "CAPTCHA__REQUEST_TIMEOUT_SECONDS",
        ),
        description="Upper bound for every outbound call made by the self-test.",
    )
    max_redirects: int = Field(
        default=5,
        ge=0,
        le=5,
        validation_alias=AliasChoices("CAPTCHA_MAX_REDIRECTS", "CAPTCHA__MAX_REDIRECTS"),
    )
    verify_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        validation_alias=AliasChoices("CAPTCHA_VERIFY_ATTEMPTS", "CAPTCHA__VERIFY_ATTEMPTS"),
        description="Attempts for solution verification when the API answers 429 or 5xx.",
    )
    active_plugins: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("CAPTCHA_ACTIVE_PLUGINS", "CAPTCHA__ACTIVE_PLUGINS"),
        description="Slugs of host form plugins that are installed and active.",
    )
    clamp_without_credentials: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "CAPTCHA_CLAMP_WITHOUT_CREDENTIALS",
            "CAPTCHA__CLAMP_WITHOUT_CREDENTIALS",
        ),
        description=(
            "Disable gating integrations when they are requested without an API key "
            "and site key, since the self-test cannot run in that state."
        ),
    )

    @field_validator("active_plugins", mode="before")
    @classmethod
    def _normalise_plugins(cls, value: list[str] | str | None) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            candidates = value.replace(",", " ").split()
        else:
            candidates = [str(item) for item in value]
        cleaned: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            slug = candidate.strip().lower()
            if not slug or slug in seen:
                continue
            seen.add(slug)
            cleaned.append(slug)
        return cleaned


class StorageSettings(BaseModel):
    """Relational storage configuration for the persisted settings record."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./captcha_gateway.db",
        validation_alias=AliasChoices("DATABASE_URL", "STORAGE__DATABASE_URL"),
    )
    option_name: str = Field(
        default="private_captcha_settings",
        validation_alias=AliasChoices("OPTION_NAME", "STORAGE__OPTION_NAME"),
    )
    sqlalchemy_echo: bool | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "SQLALCHEMY_ECHO",
            "DATABASE_ECHO",
            "STORAGE__SQLALCHEMY_ECHO",
        ),
        description="When set, overrides the default behaviour for SQLAlchemy's echo flag.",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("database_url", mode="before")
    @classmethod
    def _ensure_database_url(cls, value: str | None) -> str:
        """Ensure that a usable database URL is provided."""

        if value is None:
            raise ValueError("DATABASE_URL must be configured")

        url = value.strip()
        if not url:
            raise ValueError("DATABASE_URL must be a non-empty string")
        return url

    @field_validator("option_name", mode="before")
    @classmethod
    def _normalise_option_name(cls, value: str | None) -> str:
        if value is None:
            return "private_captcha_settings"
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("OPTION_NAME must be a non-empty string")
        return cleaned


class AdminSettings(BaseModel):
    """Access control for the administrative settings endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ADMIN_TOKEN", "ADMIN__TOKEN"),
        description="Shared secret expected in the X-Admin-Token header.",
    )

    @field_validator("token", mode="before")
    @classmethod
    def _clean_token(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class Settings(BaseSettings):
    """Top level captcha gateway configuration."""

    env: str = Field(default="dev", validation_alias=AliasChoices("ENV", "APP_ENV"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    captcha: CaptchaSettings = Field(default_factory=CaptchaSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILES,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        return self.storage.database_url

    @property
    def sqlalchemy_echo(self) -> bool:
        if self.storage.sqlalchemy_echo is not None:
            return self.storage.sqlalchemy_echo
        return False


settings = Settings()

__all__ = [
    "AdminSettings",
    "CaptchaSettings",
    "Settings",
    "StorageSettings",
    "settings",
]
