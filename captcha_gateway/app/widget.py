"""HTML markup for the Private Captcha widget."""
from __future__ import annotations

from html import escape

from .captcha import FORM_FIELD
from .models import ConfigurationRecord, Theme


DEFAULT_SCRIPT_DOMAIN = "privatecaptcha.com"


def _strip_prefix(domain: str, prefix: str) -> str:
    return domain[len(prefix):] if domain.startswith(prefix) else domain


def script_url(record: ConfigurationRecord) -> str:
    domain = _strip_prefix(record.custom_domain or DEFAULT_SCRIPT_DOMAIN, "cdn.")
    return f"https://cdn.{domain}/widget/js/privatecaptcha.js"


def render_widget(
    record: ConfigurationRecord,
    default_styles: str = "",
    additional_class: str = "",
    theme_override: Theme | str | None = None,
) -> str:
    """Return the widget ``<div>``, or an empty string when not configured."""

    if not record.is_configured:
        return ""

    theme = Theme(theme_override) if theme_override is not None else record.theme
    styles = record.custom_styles or default_styles

    class_value = "private-captcha"
    if additional_class:
        class_value = f"{class_value} {additional_class}"

    attributes = [
        ("class", class_value),
        ("data-solution-field", FORM_FIELD),
        ("data-sitekey", record.sitekey),
        ("data-theme", theme.value),
        ("data-display-mode", "widget"),
        ("data-start-mode", record.start_mode.value),
        ("data-lang", record.language.value),
    ]
    if record.debug_mode:
        attributes.append(("data-debug", "true"))

    if record.custom_domain:
        domain = _strip_prefix(record.custom_domain, "api.")
        attributes.append(("data-puzzle-endpoint", f"https://api.{domain}/puzzle"))
    elif record.eu_isolation:
        attributes.append(("data-eu", "true"))

    if styles:
        attributes.append(("data-styles", styles))

    rendered = " ".join(f'{name}="{escape(value, quote=True)}"' for name, value in attributes)
    return f"<div {rendered}></div>"


__all__ = ["DEFAULT_SCRIPT_DOMAIN", "render_widget", "script_url"]
