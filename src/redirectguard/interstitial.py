# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Rendering of the confirmation page (interstitial) shown before leaving."""

import os
from dataclasses import field
from typing import Literal, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from markupsafe import escape
from pydantic import validate_call
from pydantic.dataclasses import dataclass as validated_dataclass

ENV = Environment(
    loader=FileSystemLoader(
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "default")
    ),
    autoescape=True,
    undefined=StrictUndefined,
)
PLACEHOLDER_URL = "{{URL}}"
PLACEHOLDER_CONFIRM = "{{CONFIRM_CALLBACK}}"
PLACEHOLDER_CANCEL = "{{CANCEL_CALLBACK}}"
TEMPLATES = dict(fullpage="Fullpage.html", popup="Popup.html")


@validated_dataclass(frozen=True)
class InterstitialTheme:
    primary_color: str = "#007bff"
    secondary_color: str = "#6c757d"
    success_color: str = "#28a745"
    warning_color: str = "#ffc107"
    danger_color: str = "#dc3545"
    background_color: str = "#f8f9fa"
    surface_color: str = "#ffffff"
    text_color: str = "#212529"
    border_color: str = "#dee2e6"
    font_family: str = (
        '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, '
        '"Helvetica Neue", Arial, sans-serif'
    )
    font_size: str = "16px"
    heading_font_size: str = "24px"
    padding: str = "20px"
    border_radius: str = "8px"
    spacing: str = "16px"
    box_shadow: str = "0 4px 6px rgba(0,0,0,0.1)"
    transition_duration: str = "0.3s"


@validated_dataclass(frozen=True)
class InterstitialContent:
    title: str = "Security Check Required"
    description: str = (
        "For your security, please confirm that you want to visit this "
        "external website."
    )
    url_display: str = "You are about to visit:"
    warning_text: Optional[str] = (
        "This external site is not controlled by us and may have different "
        "security policies."
    )
    confirm_button_text: str = "Continue to External Site"
    cancel_button_text: str = "Stay on This Site"
    footer_text: Optional[str] = "If you're unsure, it's safer to stay on this site."
    custom_html: Optional[str] = None


@validated_dataclass(frozen=True)
class InterstitialConfig:
    theme: InterstitialTheme = field(default_factory=InterstitialTheme)
    content: InterstitialContent = field(default_factory=InterstitialContent)
    type: Literal["popup", "fullpage"] = "popup"


def render_custom(
    template: str, url: str, confirm_action: str, cancel_action: str
) -> str:
    return (
        template.replace(PLACEHOLDER_URL, str(escape(url)))
        .replace(PLACEHOLDER_CONFIRM, confirm_action)
        .replace(PLACEHOLDER_CANCEL, cancel_action)
    )


@validate_call
def render_interstitial(
    url: str,
    config: InterstitialConfig,
    confirm_action: str,
    cancel_action: str,
) -> str:
    """
    Produce the HTML of a confirmation page for `url`.

    Args:
        url: The destination the user is about to visit.
        config: Theme, content and layout. If `config.content.custom_html` is
            set, it is used verbatim with its placeholders substituted.
        confirm_action: Inline script run when the user accepts.
        cancel_action: Inline script run when the user declines.

    Returns:
        The rendered HTML fragment.
    """
    if config.content.custom_html:
        return render_custom(
            config.content.custom_html, url, confirm_action, cancel_action
        )

    return ENV.get_template(TEMPLATES[config.type]).render(
        url=url,
        theme=config.theme,
        content=config.content,
        confirm_action=confirm_action,
        cancel_action=cancel_action,
    )
