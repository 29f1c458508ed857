from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from captcha_gateway.app.context import PluginContext, make_client_factory
from captcha_gateway.app.main import create_app
from captcha_gateway.app.storage import MemoryOptionStore

from .utils import API_KEY, SITEKEY, make_config, valid_form


LOGIN = "wordpress_core_enable_login"


@pytest.mark.asyncio
async def test_settings_require_admin_token(api_client) -> None:
    missing = await api_client.get("/settings")
    wrong = await api_client.get("/settings", headers={"X-Admin-Token": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 403


@pytest.mark.asyncio
async def test_settings_refused_when_token_not_configured(fake_api) -> None:
    config = make_config(admin_token="   ")
    context = PluginContext(
        config=config,
        store=MemoryOptionStore(),
        client_factory=make_client_factory(config, fake_api.transport),
    )
    await context.bootstrap()
    app = create_app(context=context)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/settings", headers={"X-Admin-Token": ""})

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_read_default_settings(api_client, admin_headers) -> None:
    response = await api_client.get("/settings", headers=admin_headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["configured"] is False
    assert payload["settings"]["theme"] == "light"
    assert payload["settings"]["integrations"][LOGIN] is False


@pytest.mark.asyncio
async def test_save_settings_with_passing_self_test(api_client, admin_headers, fake_api) -> None:
    response = await api_client.post(
        "/settings",
        json=valid_form(**{LOGIN: "1"}),
        headers=admin_headers,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["configured"] is True
    assert payload["diagnostics"] == []
    assert payload["settings"]["integrations"][LOGIN] is True
    assert payload["settings"]["api_key"] == API_KEY


@pytest.mark.asyncio
async def test_save_settings_reports_failed_self_test(api_client, admin_headers, fake_api) -> None:
    fake_api.reject_credentials()

    response = await api_client.post(
        "/settings",
        json=valid_form(**{LOGIN: "1"}),
        headers=admin_headers,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["settings"]["integrations"][LOGIN] is False
    assert payload["settings"]["sitekey"] == SITEKEY
    assert payload["diagnostics"] == [
        {
            "code": "settings_test_failed",
            "message": payload["diagnostics"][0]["message"],
            "level": "error",
        }
    ]


@pytest.mark.asyncio
async def test_save_settings_rejects_non_object_body(api_client, admin_headers) -> None:
    response = await api_client.post("/settings", json=["api_key"], headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reset_settings(api_client, admin_headers) -> None:
    await api_client.post("/settings", json=valid_form(), headers=admin_headers)

    response = await api_client.post("/settings/reset", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["configured"] is False
    assert response.json()["settings"]["api_key"] == ""


@pytest.mark.asyncio
async def test_list_integrations(api_client, admin_headers) -> None:
    response = await api_client.get("/settings/integrations", headers=admin_headers)

    assert response.status_code == 200
    integrations = {item["name"]: item for item in response.json()["integrations"]}
    assert set(integrations) == {"wordpress_core", "wpforms", "contactform7"}
    assert integrations["wordpress_core"]["available"] is True
    assert integrations["wpforms"]["available"] is True
    assert integrations["contactform7"]["available"] is False

    login = integrations["wordpress_core"]["fields"][0]
    assert login["setting_name"] == LOGIN
    assert login["checkbox_text"] == "Add captcha to login form"
    assert login["enabled"] is False
