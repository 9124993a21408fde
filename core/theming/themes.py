"""Built-in light/dark theme fragments for chart option documents."""

from __future__ import annotations

import copy
from typing import Any, Final

from widgets.codec import Theme

GRID_LINE_COLORS: Final[dict[str, str]] = {"dark": "#444446", "light": "#EAEBEF"}

ANIMATION_OFF: Final[dict[str, Any]] = {
    "chart": {"animation": False},
    "plotOptions": {"series": {"animation": False}},
}

_DARK_CHART_OPTIONS: Final[dict[str, Any]] = {
    "colors": ["#f32958", "#fdd459", "#26b26f", "#4486f8", "#8E8E93", "#aaeeee"],
    "chart": {
        "backgroundColor": "transparent",
        "plotBorderColor": "#606063",
        "style": {"fontFamily": "Inter, sans-serif"},
    },
    "title": {"style": {"color": "#FFFFFF"}},
    "subtitle": {"style": {"color": "#8E8E93"}},
    "legend": {
        "itemStyle": {"color": "#E0E0E3"},
        "itemHoverStyle": {"color": "#FFFFFF"},
        "itemHiddenStyle": {"color": "#606063"},
    },
    "tooltip": {"backgroundColor": "rgba(0, 0, 0, 0.85)", "style": {"color": "#F0F0F0"}},
    "plotOptions": {"series": {"dataLabels": {"color": "#E0E0E3"}}},
}

_LIGHT_CHART_OPTIONS: Final[dict[str, Any]] = {
    "colors": ["#4486f8", "#26b26f", "#fdd459", "#f32958", "#8E8E93", "#2b908f"],
    "chart": {
        "backgroundColor": "transparent",
        "plotBorderColor": "#E5E7EB",
        "style": {"fontFamily": "Inter, sans-serif"},
    },
    "title": {"style": {"color": "#111827"}},
    "subtitle": {"style": {"color": "#6B7280"}},
    "legend": {
        "itemStyle": {"color": "#374151"},
        "itemHoverStyle": {"color": "#111827"},
        "itemHiddenStyle": {"color": "#CCCCCC"},
    },
    "tooltip": {"backgroundColor": "rgba(255, 255, 255, 0.95)", "style": {"color": "#111827"}},
    "plotOptions": {"series": {"dataLabels": {"color": "#374151"}}},
}


def theme_chart_options(theme: Theme) -> dict[str, Any]:
    """Return a fresh copy of the chart-option fragment for a theme."""

    source = _DARK_CHART_OPTIONS if theme == "dark" else _LIGHT_CHART_OPTIONS
    return copy.deepcopy(source)


def grid_line_color(theme: Theme) -> str:
    """Return the grid line color used by theme-driven styling."""

    return GRID_LINE_COLORS["dark" if theme == "dark" else "light"]
