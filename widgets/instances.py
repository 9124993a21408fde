"""Instance types for widgets placed on a dashboard.

A widget *type* (a catalog entry) may be placed many times; each placement is
a `WidgetInstance` with its own identity, layout, and style state. Instances
are immutable values: every mutation produces a new instance via
`dataclasses.replace`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Final, Literal, TypedDict

EMBED_TYPE_ID: Final[str] = "embed"
STYLED_EMBED_TYPE_ID: Final[str] = "styled-embed"
EMBED_TYPE_IDS: Final[frozenset[str]] = frozenset({EMBED_TYPE_ID, STYLED_EMBED_TYPE_ID})

GridlineStyle = Literal["both", "y-only", "x-only", "dots", "none"]
LegendPosition = Literal["top", "bottom", "left", "right", "hidden"]


class StyleConfig(TypedDict, total=False):
    """User-authored visual overrides for one widget instance."""

    gridLineStyle: GridlineStyle
    legendPosition: LegendPosition
    axisColor: str
    seriesColors: dict[str, str]
    borderRadius: float
    barWidth: float
    barOpacity: float
    borderColor: str
    isDonut: bool
    donutWidth: float
    pieOpacity: float
    lineWidth: float
    markerRadius: float
    applyGradient: bool
    backgroundColor: str
    border: bool
    cornerRadius: str
    shadow: str
    spaceAround: str
    headerBackgroundColor: str
    headerDividerLine: bool
    headerDividerLineColor: str
    headerHidden: bool
    headerTitleAlignment: str
    headerTitleTextColor: str


@dataclass(frozen=True, slots=True)
class GridRect:
    """A rectangle on the column grid.

    Args:
        i: Key of the instance that owns the rectangle.
        x: Column offset.
        y: Row offset; `math.inf` means "append after the last row".
        w: Width in columns.
        h: Height in rows.
    """

    i: str
    x: int
    y: float
    w: int
    h: int

    @property
    def is_unplaced(self) -> bool:
        """Return True while the rectangle waits for the renderer's compaction."""

        return math.isinf(self.y)


@dataclass(frozen=True, slots=True)
class SeriesEntry:
    """A named series discovered from a rendered chart."""

    name: str
    color: str | None = None


@dataclass(frozen=True, slots=True)
class WidgetInstance:
    """One placed occurrence of a widget type.

    Args:
        instance_id: Unique id within the active dashboard (`<type_id>-<ms>`).
        type_id: Catalog id of the widget kind; never changes.
        layout: Grid rectangle; `layout.i` always equals `instance_id`.
        style_config: Explicit style overrides, present only once styled.
        color_config: Series name to color overrides applied at render time.
        series: Series discovered from the first render, populated once.
        embed_code: Raw embed markup for `embed` instances.
        widget_oid: Remote widget id for `styled-embed` instances.
        dashboard_oid: Remote dashboard id for `styled-embed` instances.
    """

    instance_id: str
    type_id: str
    layout: GridRect
    style_config: StyleConfig | None = None
    color_config: dict[str, str] | None = None
    series: tuple[SeriesEntry, ...] | None = None
    embed_code: str | None = None
    widget_oid: str | None = None
    dashboard_oid: str | None = None

    def __post_init__(self) -> None:
        if self.layout.i != self.instance_id:
            object.__setattr__(self, "layout", replace(self.layout, i=self.instance_id))

    @property
    def is_embed(self) -> bool:
        """Return True for raw and styled embed instances."""

        return self.type_id in EMBED_TYPE_IDS

    @property
    def is_chart(self) -> bool:
        """Return True when chart style/color editing applies to the instance."""

        return self.type_id.startswith("chart") or self.type_id == STYLED_EMBED_TYPE_ID

    def with_layout(self, rect: GridRect) -> WidgetInstance:
        """Return a copy placed at `rect`, re-keyed to this instance."""

        return replace(self, layout=replace(rect, i=self.instance_id))


@dataclass(frozen=True, slots=True)
class EmbedSave:
    """Payload produced by the embed editor.

    Args:
        kind: "styled" for remote chart embeds, "sdk"/"html" for raw code.
        embed_code: Markup for raw embeds.
        widget_oid: Remote widget id for styled embeds.
        dashboard_oid: Remote dashboard id for styled embeds.
        style_config: Style document for styled embeds.
    """

    kind: str
    embed_code: str | None = None
    widget_oid: str | None = None
    dashboard_oid: str | None = None
    style_config: StyleConfig | None = field(default=None)


def series_from_options(options: dict[str, Any]) -> tuple[SeriesEntry, ...]:
    """Return the named series exposed by a chart option document."""

    raw = options.get("series")
    if not isinstance(raw, list):
        return ()
    return tuple(
        SeriesEntry(name=str(item["name"]), color=item.get("color"))
        for item in raw
        if isinstance(item, dict) and item.get("name")
    )
