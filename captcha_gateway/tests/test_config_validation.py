"""Validation tests for gateway configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from captcha_gateway.app.config import AdminSettings, CaptchaSettings, Settings, StorageSettings


def test_captcha_settings_defaults_within_bounds() -> None:
    settings = CaptchaSettings()

    assert settings.request_timeout_seconds == 10
    assert settings.max_redirects == 5
    assert settings.verify_attempts == 1
    assert settings.active_plugins == []
    assert settings.clamp_without_credentials is True


@pytest.mark.parametrize("value", [0, 0.5, 11])
def test_request_timeout_out_of_bounds(value: float) -> None:
    with pytest.raises(ValidationError):
        CaptchaSettings(request_timeout_seconds=value)


@pytest.mark.parametrize("value", [-1, 6])
def test_max_redirects_out_of_bounds(value: int) -> None:
    with pytest.raises(ValidationError):
        CaptchaSettings.model_validate({"CAPTCHA_MAX_REDIRECTS": value})


def test_active_plugins_accepts_comma_separated_string() -> None:
    settings = CaptchaSettings(active_plugins="WPForms-Lite, contact-form-7 wpforms-lite")

    assert settings.active_plugins == ["wpforms-lite", "contact-form-7"]


def test_blank_admin_token_is_treated_as_unset() -> None:
    assert AdminSettings(token="  ").token is None
    assert AdminSettings(token=" s3cret ").token == "s3cret"


@pytest.mark.parametrize("value", ["", "   "])
def test_database_url_must_not_be_blank(value: str) -> None:
    with pytest.raises(ValidationError):
        StorageSettings(database_url=value)


def test_nested_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CAPTCHA__VERIFY_ATTEMPTS", "3")
    monkeypatch.setenv("STORAGE__OPTION_NAME", "custom_option")
    monkeypatch.setenv("ADMIN__TOKEN", "from-env")
    monkeypatch.setenv("STORAGE__SQLALCHEMY_ECHO", "1")

    settings = Settings()

    assert settings.captcha.verify_attempts == 3
    assert settings.storage.option_name == "custom_option"
    assert settings.admin.token == "from-env"
    assert settings.sqlalchemy_echo is True
