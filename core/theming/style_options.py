"""Widget frame style options handed to the external renderer.

These are direct field mappings with no logic beyond theme-mode defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from widgets.codec import Theme
from widgets.instances import StyleConfig


def get_style_options(theme: Theme) -> dict[str, Any]:
    """Return frame style options derived from the ambient theme."""

    is_dark = theme == "dark"
    return {
        "backgroundColor": "#1F2937" if is_dark else "#FFFFFF",
        "border": False,
        "shadow": "None",
        "header": {
            "backgroundColor": "#1F2937" if is_dark else "#FFFFFF",
            "titleTextColor": "#FFFFFF" if is_dark else "#111827",
            "dividerLine": True,
            "dividerLineColor": "transparent" if is_dark else "#E5E7EB",
        },
    }


def get_style_options_from_config(style_config: StyleConfig | Mapping[str, Any]) -> dict[str, Any]:
    """Return frame style options copied from an explicit style config."""

    return {
        "backgroundColor": style_config.get("backgroundColor"),
        "border": style_config.get("border"),
        "borderColor": style_config.get("borderColor"),
        "cornerRadius": style_config.get("cornerRadius"),
        "shadow": style_config.get("shadow"),
        "spaceAround": style_config.get("spaceAround"),
        "header": {
            "backgroundColor": style_config.get("headerBackgroundColor"),
            "dividerLine": style_config.get("headerDividerLine"),
            "dividerLineColor": style_config.get("headerDividerLineColor"),
            "hidden": style_config.get("headerHidden"),
            "titleAlignment": style_config.get("headerTitleAlignment"),
            "titleTextColor": style_config.get("headerTitleTextColor"),
        },
    }
