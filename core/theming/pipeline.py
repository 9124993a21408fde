"""Transforms applied to a chart-option document right before rendering.

Two entry points exist and are intentionally kept apart:

- `apply_theming` styles ordinary widgets from the ambient theme plus a
  gridline choice.
- `apply_explicit_style` styles embeds that carry a user-authored style
  config; those bypass the theme's gridline/axis choices entirely.

`apply_color_overrides` runs last for every widget. `render_widget_options`
picks the path for an instance and reports, but never performs, the one-time
series discovery write back into the registry.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from widgets.codec import Theme
from widgets.instances import STYLED_EMBED_TYPE_ID, SeriesEntry, StyleConfig, WidgetInstance, series_from_options
from widgets.registry import WidgetRegistry

from .merge import merge_block, merge_options
from .schema import (
    DEFAULT_GRIDLINE_STYLE,
    EXPLICIT_GRID_PLANS,
    LEGEND_HORIZONTAL_SIDES,
    LEGEND_VERTICAL_SIDES,
    THEME_GRID_PLANS,
    AxisGrid,
)
from .themes import ANIMATION_OFF, grid_line_color, theme_chart_options

logger = logging.getLogger(__name__)

AXIS_KEYS = ("xAxis", "yAxis")
GRADIENT_TOP_ALPHA = "90"
GRADIENT_BOTTOM_STOP = "#FFFFFF00"


@dataclass(frozen=True, slots=True)
class SeriesDiscovery:
    """Pending write of discovered series into the registry."""

    instance_id: str
    series: tuple[SeriesEntry, ...]


@dataclass(frozen=True, slots=True)
class RenderResult:
    """A render-ready option document plus an optional pending effect."""

    options: dict[str, Any]
    pending: SeriesDiscovery | None = None


def apply_theming(options: Mapping[str, Any], gridline_style: str, theme: Theme) -> dict[str, Any]:
    """Style an option document from the ambient theme.

    Args:
        options: Raw chart-option document.
        gridline_style: One of both, y-only, x-only, dots, none.
        theme: Active theme.

    Returns:
        A new document; `options` is left untouched.
    """

    merged = merge_options(options, theme_chart_options(theme), ANIMATION_OFF)

    chart = merged.get("chart")
    if isinstance(chart, dict):
        chart.pop("plotBackgroundImage", None)
        chart.pop("plotBackgroundColor", None)

    plan = THEME_GRID_PLANS.get(gridline_style)
    if plan is not None:
        color = grid_line_color(theme)
        _style_axes(merged.get("xAxis"), plan.x, color=color)
        _style_axes(merged.get("yAxis"), plan.y, color=color)

    if isinstance(chart, dict):
        chart["backgroundColor"] = "transparent"
    else:
        merged["chart"] = {"backgroundColor": "transparent"}
    return merged


def apply_explicit_style(options: Mapping[str, Any], style_config: StyleConfig | Mapping[str, Any]) -> dict[str, Any]:
    """Style an option document from an explicit per-widget style config.

    Returns:
        A new document; `options` is left untouched.
    """

    result = copy.deepcopy(dict(options))
    config: Mapping[str, Any] = style_config

    chart = result.get("chart")
    if not isinstance(chart, dict):
        chart = {}
        result["chart"] = chart
    chart["backgroundColor"] = "transparent"
    chart["animation"] = False
    plot_options = result.get("plotOptions")
    if not isinstance(plot_options, dict):
        plot_options = {}
        result["plotOptions"] = plot_options
    merge_block(plot_options, "series", {"animation": False})

    series_colors = config.get("seriesColors")
    if series_colors:
        _apply_series_colors(result, series_colors)

    axis_color = config.get("axisColor")
    if axis_color is not None:
        for key in AXIS_KEYS:
            for axis in _axis_list(result.get(key)):
                axis.update(gridLineColor=axis_color, lineColor=axis_color, tickColor=axis_color)
    plan = EXPLICIT_GRID_PLANS.get(str(config.get("gridLineStyle")))
    if plan is not None:
        _style_axes(result.get("xAxis"), plan.x)
        _style_axes(result.get("yAxis"), plan.y)

    _apply_legend(result, config.get("legendPosition"))

    merge_block(
        plot_options,
        "series",
        {
            "borderRadius": config.get("borderRadius"),
            "pointWidth": config.get("barWidth"),
            "opacity": config.get("barOpacity"),
            "borderColor": config.get("borderColor"),
            "borderWidth": 1,
        },
    )
    merge_block(
        plot_options,
        "pie",
        {
            "innerSize": _donut_inner_size(config),
            "opacity": config.get("pieOpacity"),
            "borderColor": config.get("borderColor"),
            "borderWidth": 2,
        },
    )
    for plot_type in ("line", "area"):
        block = merge_block(plot_options, plot_type, {"lineWidth": config.get("lineWidth")})
        merge_block(block, "marker", {"radius": config.get("markerRadius")})

    if config.get("applyGradient"):
        _apply_area_gradient(result)
    return result


def apply_color_overrides(options: Mapping[str, Any], color_config: Mapping[str, str] | None) -> dict[str, Any]:
    """Apply per-series color overrides by series name."""

    result = copy.deepcopy(dict(options))
    if not color_config:
        return result
    for series in _series_list(result):
        name = series.get("name")
        if isinstance(name, str) and color_config.get(name):
            series["color"] = color_config[name]
    return result


def render_widget_options(instance: WidgetInstance, options: Mapping[str, Any], theme: Theme) -> RenderResult:
    """Produce the render-ready document for one widget instance.

    Styled embeds carrying a style config take the explicit-style path; every
    other instance is themed with its gridline choice (default "both"). Color
    overrides are applied last.

    When the instance has not cached its series yet and the raw document names
    some, the result carries a `SeriesDiscovery` for the caller to schedule
    after the current render pass.
    """

    if instance.type_id == STYLED_EMBED_TYPE_ID and instance.style_config:
        styled = apply_explicit_style(options, instance.style_config)
    else:
        gridline_style = (instance.style_config or {}).get("gridLineStyle") or DEFAULT_GRIDLINE_STYLE
        styled = apply_theming(options, gridline_style, theme)

    pending = None
    if instance.series is None:
        discovered = series_from_options(dict(options))
        if discovered:
            pending = SeriesDiscovery(instance_id=instance.instance_id, series=discovered)

    return RenderResult(options=apply_color_overrides(styled, instance.color_config), pending=pending)


def schedule_pending_effect(
    effect: SeriesDiscovery | None,
    registry: WidgetRegistry,
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.Handle | None:
    """Schedule a discovery write for the next turn of the event loop.

    Args:
        effect: Pending effect returned by `render_widget_options`.
        registry: Registry that receives the discovered series.
        loop: Loop to schedule on; defaults to the running loop.

    Returns:
        The scheduled handle, or None when there is nothing to do.
    """

    if effect is None:
        return None
    target = loop or asyncio.get_running_loop()
    return target.call_soon(registry.record_discovered_series, effect.instance_id, effect.series)


def _axis_list(value: object) -> list[dict[str, Any]]:
    """Return axis objects from a single-axis or multi-axis field."""

    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [axis for axis in value if isinstance(axis, dict)]
    return []


def _series_list(options: Mapping[str, Any]) -> list[dict[str, Any]]:
    raw = options.get("series")
    if not isinstance(raw, list):
        return []
    return [series for series in raw if isinstance(series, dict)]


def _style_axes(value: object, grid: AxisGrid, *, color: str | None = None) -> None:
    for axis in _axis_list(value):
        axis["gridLineWidth"] = grid.width
        if grid.dash is not None:
            axis["gridLineDashStyle"] = grid.dash
        if color is not None:
            axis["gridLineColor"] = color


def _apply_series_colors(options: dict[str, Any], series_colors: Mapping[str, str]) -> None:
    """Color pie points by name, or whole series by name for other charts.

    Only the declared `chart.type` decides the branch; charts mixing pie and
    non-pie series take the series branch.
    """

    series_list = _series_list(options)
    is_pie = options.get("chart", {}).get("type") == "pie"
    if is_pie:
        if not series_list or not isinstance(series_list[0].get("data"), list):
            return
        for point in series_list[0]["data"]:
            if isinstance(point, dict) and isinstance(point.get("name"), str) and series_colors.get(point["name"]):
                point["color"] = series_colors[point["name"]]
        return

    for series in series_list:
        name = series.get("name")
        color = series_colors.get(name) if isinstance(name, str) else None
        if not color:
            continue
        series["color"] = color
        for point in series.get("data") or ():
            if isinstance(point, dict):
                point.pop("color", None)


def _apply_legend(options: dict[str, Any], position: object) -> None:
    legend = options.get("legend")
    if not isinstance(legend, dict):
        legend = {}
        options["legend"] = legend
    if position == "hidden":
        legend["enabled"] = False
        return
    legend["enabled"] = True
    legend["align"] = position if position in LEGEND_HORIZONTAL_SIDES else "center"
    legend["verticalAlign"] = position if position in LEGEND_VERTICAL_SIDES else "middle"
    legend["layout"] = "vertical" if position in LEGEND_HORIZONTAL_SIDES else "horizontal"


def _donut_inner_size(config: Mapping[str, Any]) -> str:
    width = config.get("donutWidth")
    if config.get("isDonut") and width is not None:
        return f"{width}%"
    return "0%"


def _apply_area_gradient(options: dict[str, Any]) -> None:
    chart_type = options.get("chart", {}).get("type")
    for series in _series_list(options):
        if series.get("type", chart_type) != "area":
            continue
        color = series.get("color")
        if not isinstance(color, str) or not color:
            logger.debug("Skipping gradient for area series %r without a resolved color", series.get("name"))
            continue
        series["fillColor"] = {
            "linearGradient": {"x1": 0, "x2": 0, "y1": 0, "y2": 1},
            "stops": [[0, color + GRADIENT_TOP_ALPHA], [1, GRADIENT_BOTTOM_STOP]],
        }
