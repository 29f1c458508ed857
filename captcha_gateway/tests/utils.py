"""Helpers shared by the captcha gateway test-suite."""

from __future__ import annotations

from typing import Any

import httpx

from captcha_gateway.app.config import AdminSettings, CaptchaSettings, Settings, StorageSettings

ADMIN_TOKEN = "secret-admin-token"
API_KEY = "pc-test-api-key"
SITEKEY = "0123456789abcdef0123456789abcdef"
OPTION_NAME = "private_captcha_settings"


class FakeCaptchaApi:
    """Scriptable stand-in for the remote ``/puzzle`` and ``/verify`` endpoints."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.puzzle_status = 200
        self.puzzle_body = "puzzle-payload"
        self.verify_status = 200
        self.verify_body: Any = {"success": True, "code": 10}
        self.verify_statuses: list[int] = []
        self.fail_with: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if request.url.path == "/puzzle":
            return httpx.Response(self.puzzle_status, text=self.puzzle_body)
        if request.url.path == "/verify":
            status = self.verify_statuses.pop(0) if self.verify_statuses else self.verify_status
            if isinstance(self.verify_body, (dict, list)):
                return httpx.Response(status, json=self.verify_body)
            return httpx.Response(status, text=str(self.verify_body))
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def accept_solutions(self) -> None:
        self.verify_body = {"success": True, "code": 0}

    def reject_credentials(self) -> None:
        self.verify_body = {"success": False, "code": 6}


def make_config(*, admin_token: str | None = ADMIN_TOKEN, active_plugins=("wpforms",)) -> Settings:
    return Settings(
        env="test",
        captcha=CaptchaSettings(active_plugins=list(active_plugins)),
        storage=StorageSettings(option_name=OPTION_NAME),
        admin=AdminSettings(token=admin_token),
    )


def valid_form(**overrides: str) -> dict[str, str]:
    form = {
        "api_key": API_KEY,
        "sitekey": SITEKEY,
        "custom_domain": "",
        "theme": "light",
        "language": "auto",
        "start_mode": "auto",
    }
    form.update(overrides)
    return form
