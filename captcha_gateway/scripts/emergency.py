#!/usr/bin/env python3
"""Emergency recovery commands for a site locked out by captcha settings.

These commands write the settings record directly and never run the live
self-test, so they keep working when the API key, site key or custom domain
is broken.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Awaitable, Callable, Optional, Sequence

from ..app.config import Settings, settings
from ..app.context import PluginContext
from ..app.logging import get_logger
from ..app.settings_service import UnknownSettingError
from ..app.storage import OptionStore, build_store
from ..db.base import dispose_engine


logger = get_logger("captcha_gateway.emergency")

LOGIN_SETTING = "wordpress_core_enable_login"

Handler = Callable[[PluginContext, argparse.Namespace], Awaitable[int]]


def _success(message: str) -> None:
    print(f"Success: {message}")


def _warning(message: str) -> None:
    print(f"Warning: {message}")


def _error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


async def _update_api_key(context: PluginContext, args: argparse.Namespace) -> int:
    try:
        await context.settings.update_api_key(args.api_key)
    except ValueError as exc:
        _error(str(exc))
        return 1
    _success("API key updated successfully.")
    return 0


async def _disable_login(context: PluginContext, args: argparse.Namespace) -> int:
    await context.settings.set_integration_flag(LOGIN_SETTING, False)
    _success("Login form protection disabled.")
    _warning("Fix the Private Captcha credentials before enabling login protection again.")
    return 0


async def _disable_integration(context: PluginContext, args: argparse.Namespace) -> int:
    try:
        await context.settings.set_integration_flag(args.setting_name, False)
    except UnknownSettingError:
        _error(f"Unknown integration setting: {args.setting_name}")
        known = ", ".join(context.registry.field_names())
        print(f"Known settings: {known}", file=sys.stderr)
        return 1
    _success(f"Integration setting {args.setting_name} disabled.")
    return 0


async def _reset(context: PluginContext, args: argparse.Namespace) -> int:
    await context.settings.reset()
    _success("Settings restored to defaults.")
    return 0


async def _status(context: PluginContext, args: argparse.Namespace) -> int:
    record = await context.settings.get_all_settings()
    print(f"configured: {'yes' if record.is_configured else 'no'}")
    print(f"custom_domain: {record.custom_domain or '-'}")
    print(f"eu_isolation: {'yes' if record.eu_isolation else 'no'}")
    enabled = record.enabled_flags(context.registry.field_names())
    print(f"enabled integrations: {', '.join(enabled) if enabled else 'none'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="captcha-gateway-emergency",
        description="Recover from a captcha configuration that blocks form submissions",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL holding the settings (defaults to configured application URL).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    update = commands.add_parser("update-api-key", help="Replace the stored API key")
    update.add_argument("api_key", help="New Private Captcha API key")
    update.set_defaults(handler=_update_api_key)

    login = commands.add_parser("disable-login", help="Turn off captcha on the login form")
    login.set_defaults(handler=_disable_login)

    integration = commands.add_parser(
        "disable-integration", help="Turn off one integration setting"
    )
    integration.add_argument("setting_name", help="Setting name, e.g. wpforms_enable_wpforms")
    integration.set_defaults(handler=_disable_integration)

    reset = commands.add_parser("reset", help="Restore default settings")
    reset.set_defaults(handler=_reset)

    status = commands.add_parser("status", help="Show the stored configuration state")
    status.set_defaults(handler=_status)

    return parser


async def run_command(
    args: argparse.Namespace,
    *,
    config: Settings = settings,
    store: Optional[OptionStore] = None,
) -> int:
    """Execute a parsed command against ``store`` (or the configured database)."""

    owns_store = store is None
    if store is None:
        store = await build_store(args.database_url or config.database_url)
    try:
        context = PluginContext(config=config, store=store)
        await context.bootstrap()
        handler: Handler = args.handler
        code = await handler(context, args)
        logger.warning("emergency_command_finished", command=args.command, exit_code=code)
        return code
    finally:
        if owns_store:
            await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return asyncio.run(run_command(args))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
