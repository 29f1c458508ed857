"""Form integrations that consume the shared captcha verification client."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from .logging import get_logger
from .models import ConfigurationRecord

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .context import PluginContext


logger = get_logger("captcha_gateway.integrations")


@dataclass(frozen=True, slots=True)
class SettingsField:
    """A single checkbox on the settings form, keyed by a stable setting name."""

    setting_name: str
    label: str
    surface: str
    description: str = ""
    checkbox_text: str = ""
    priority: int = 10
    gating: bool = True
    required_inputs: tuple[str, ...] = ()

    def get_checkbox_text(self) -> str:
        if self.checkbox_text:
            return self.checkbox_text
        return f"Add captcha to {self.label}"

    def is_enabled(self, record: ConfigurationRecord) -> bool:
        return record.flag(self.setting_name)


@dataclass(frozen=True, slots=True)
class FormVerdict:
    """Outcome of a captcha check on a submitted form."""

    allowed: bool = True
    code: str | None = None
    message: str | None = None

    @classmethod
    def allow(cls) -> "FormVerdict":
        return cls()

    @classmethod
    def reject(cls, code: str, message: str) -> "FormVerdict":
        return cls(allowed=False, code=code, message=message)


UNAVAILABLE = FormVerdict.reject(
    "private_captcha_unavailable", "Captcha service is currently unavailable."
)
FAILED = FormVerdict.reject(
    "private_captcha_failed", "Captcha verification failed. Please try again."
)


def verify_event(surface: str) -> str:
    return f"verify:{surface}"


def render_event(surface: str) -> str:
    return f"render:{surface}"


class Integration:
    """Base class for a group of settings fields backed by one host feature."""

    name: str = ""
    plugin_name: str = ""
    plugin_url: str = ""

    def __init__(self, fields: Iterable[SettingsField]) -> None:
        self._fields = tuple(fields)

    @property
    def fields(self) -> tuple[SettingsField, ...]:
        return self._fields

    def is_available(self) -> bool:
        raise NotImplementedError

    def is_enabled(self, record: ConfigurationRecord) -> bool:
        return any(item.is_enabled(record) for item in self._fields)

    def without_client(self, verdict: FormVerdict) -> FormVerdict:
        """Verdict for an enabled surface when no verification client exists."""

        return UNAVAILABLE

    def describe(self, record: ConfigurationRecord) -> dict[str, Any]:
        return {
            "name": self.name,
            "plugin_name": self.plugin_name,
            "plugin_url": self.plugin_url,
            "available": self.is_available(),
            "fields": [
                {
                    "setting_name": item.setting_name,
                    "label": item.label,
                    "description": item.description,
                    "checkbox_text": item.get_checkbox_text(),
                    "gating": item.gating,
                    "enabled": item.is_enabled(record),
                }
                for item in self._fields
            ],
        }

    def init(self, context: "PluginContext", record: ConfigurationRecord) -> None:
        """Register verify and render hooks for every enabled field."""

        for item in self._fields:
            if not item.is_enabled(record):
                continue
            context.hooks.add(
                verify_event(item.surface),
                self._make_verifier(context, item),
                item.priority,
                owner=self.name,
            )
            context.hooks.add(
                render_event(item.surface),
                self._make_renderer(context, item),
                item.priority,
                owner=self.name,
            )
            logger.debug("integration_surface_enabled", integration=self.name, surface=item.surface)

    def _make_verifier(
        self, context: "PluginContext", item: SettingsField
    ) -> Callable[[FormVerdict, Mapping[str, Any]], Any]:
        async def verify(verdict: FormVerdict, form: Mapping[str, Any]) -> FormVerdict:
            if not verdict.allowed:
                return verdict
            if any(not form.get(name) for name in item.required_inputs):
                logger.debug("captcha_check_skipped", surface=item.surface, reason="blank_credentials")
                return verdict

            client = context.client
            if client is None:
                return self.without_client(verdict)

            passed = await client.verify_request(form)
            logger.debug("captcha_check_finished", surface=item.surface, result=passed)
            return verdict if passed else FAILED

        return verify

    def _make_renderer(
        self, context: "PluginContext", item: SettingsField
    ) -> Callable[[str], str]:
        def render(markup: str) -> str:
            return markup + context.render_widget(additional_class=f"{self.name}-{item.surface}")

        return render


class WordPressCore(Integration):
    name = "wordpress_core"

    def __init__(self) -> None:
        super().__init__(
            [
                SettingsField(
                    "wordpress_core_enable_login",
                    "WordPress Login Form",
                    "login",
                    description=(
                        "Login can be locked out if Site Key, API key or Custom Domain become "
                        "invalid. Emergency CLI commands are available for recovery."
                    ),
                    checkbox_text="Add captcha to login form",
                    priority=30,
                    required_inputs=("username", "password"),
                ),
                SettingsField(
                    "wordpress_core_enable_registration",
                    "WordPress Registration Form",
                    "registration",
                    description="Add captcha to registration form",
                    checkbox_text="Add captcha to registration form",
                ),
                SettingsField(
                    "wordpress_core_enable_reset_password",
                    "WordPress Reset Password Form",
                    "reset_password",
                    description="Add captcha to reset password form",
                    checkbox_text="Add captcha to reset password form",
                ),
                SettingsField(
                    "wordpress_core_enable_comments_logged_in",
                    "WordPress Comments Form (Logged-in Users)",
                    "comments_logged_in",
                    description="Protect comment forms from spam for users who are logged in.",
                    checkbox_text="Add captcha to comments form for logged-in users",
                ),
                SettingsField(
                    "wordpress_core_enable_comments_guest",
                    "WordPress Comments Form (Guests)",
                    "comments_guest",
                    description="Protect comment forms from spam for visitors who are not logged in.",
                    checkbox_text="Add captcha to comments form for guests",
                ),
            ]
        )

    def is_available(self) -> bool:
        return True


class PluginIntegration(Integration):
    """Integration that depends on a third-party form plugin being active."""

    plugin_slugs: tuple[str, ...] = ()

    def __init__(self, fields: Iterable[SettingsField], active_plugins: Iterable[str]) -> None:
        super().__init__(fields)
        self._active_plugins = frozenset(slug.lower() for slug in active_plugins)

    def is_available(self) -> bool:
        return any(slug in self._active_plugins for slug in self.plugin_slugs)


class WPForms(PluginIntegration):
    name = "wpforms"
    plugin_name = "WPForms Lite"
    plugin_url = "https://wordpress.org/plugins/wpforms-lite/"
    plugin_slugs = ("wpforms", "wpforms-lite")

    def __init__(self, active_plugins: Iterable[str] = ()) -> None:
        super().__init__(
            [
                SettingsField(
                    "wpforms_enable_wpforms",
                    "WPForms plugin",
                    "wpforms",
                    description="Protect WPForms submissions from spam.",
                    checkbox_text="Add captcha to forms created with WPForms plugin",
                ),
            ],
            active_plugins,
        )


class ContactForm7(PluginIntegration):
    name = "contactform7"
    plugin_name = "Contact Form 7"
    plugin_url = "https://wordpress.org/plugins/contact-form-7/"
    plugin_slugs = ("contact-form-7",)

    def __init__(self, active_plugins: Iterable[str] = ()) -> None:
        super().__init__(
            [
                SettingsField(
                    "contactform7_enable",
                    "Contact Form 7 plugin",
                    "contactform7",
                    description="Protect Contact Form 7 submissions from spam.",
                    checkbox_text="Add captcha to forms created with Contact Form 7 plugin",
                ),
            ],
            active_plugins,
        )

    def without_client(self, verdict: FormVerdict) -> FormVerdict:
        # Submissions go through untouched while the captcha is not configured.
        logger.warning("captcha_check_skipped", integration=self.name, reason="no_client")
        return verdict


class IntegrationRegistry:
    """Ordered collection of integrations known to the gateway."""

    def __init__(self, integrations: Iterable[Integration]) -> None:
        self._integrations = tuple(integrations)

    def __iter__(self):
        return iter(self._integrations)

    def __len__(self) -> int:
        return len(self._integrations)

    def get_all_integrations(self) -> tuple[Integration, ...]:
        return self._integrations

    def fields(self) -> list[SettingsField]:
        return [item for integration in self._integrations for item in integration.fields]

    def gating_fields(self, *, available_only: bool = False) -> list[SettingsField]:
        """Gating fields; unavailable integrations keep their stored flags untouched."""

        return [
            item
            for integration in self._integrations
            if not available_only or integration.is_available()
            for item in integration.fields
            if item.gating
        ]

    def field_names(self) -> list[str]:
        return [item.setting_name for item in self.fields()]

    def owner_of(self, setting_name: str) -> Integration | None:
        for integration in self._integrations:
            if any(item.setting_name == setting_name for item in integration.fields):
                return integration
        return None

    def field_for_surface(self, surface: str) -> SettingsField | None:
        for item in self.fields():
            if item.surface == surface:
                return item
        return None

    def init_enabled(self, context: "PluginContext", record: ConfigurationRecord) -> None:
        """(Re)wire every available integration with at least one enabled field."""

        for integration in self._integrations:
            context.hooks.remove_owner(integration.name)
            if integration.is_available() and integration.is_enabled(record):
                integration.init(context, record)


def build_registry(active_plugins: Iterable[str] = ()) -> IntegrationRegistry:
    plugins = list(active_plugins)
    return IntegrationRegistry([WordPressCore(), WPForms(plugins), ContactForm7(plugins)])


__all__ = [
    "ContactForm7",
    "FAILED",
    "FormVerdict",
    "Integration",
    "IntegrationRegistry",
    "PluginIntegration",
    "SettingsField",
    "UNAVAILABLE",
    "WPForms",
    "WordPressCore",
    "build_registry",
    "render_event",
    "verify_event",
]
