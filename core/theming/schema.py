"""Enumerations and lookup tables shared by the theming pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from widgets.instances import GridlineStyle, LegendPosition

DashStyle = Literal["Solid", "Dot"]

GRIDLINE_STYLES: Final[frozenset[str]] = frozenset({"both", "y-only", "x-only", "dots", "none"})
LEGEND_POSITIONS: Final[frozenset[str]] = frozenset({"top", "bottom", "left", "right", "hidden"})
DEFAULT_GRIDLINE_STYLE: Final[GridlineStyle] = "both"


@dataclass(frozen=True, slots=True)
class AxisGrid:
    """Grid line width and dash pattern for one axis.

    A `dash` of None leaves the axis' existing dash style untouched.
    """

    width: int
    dash: DashStyle | None = "Solid"


@dataclass(frozen=True, slots=True)
class GridPlan:
    """Grid line settings for the x and y axes."""

    x: AxisGrid
    y: AxisGrid


THEME_GRID_PLANS: Final[dict[str, GridPlan]] = {
    "both": GridPlan(x=AxisGrid(1), y=AxisGrid(1)),
    "y-only": GridPlan(x=AxisGrid(0), y=AxisGrid(1)),
    "x-only": GridPlan(x=AxisGrid(1), y=AxisGrid(0)),
    "dots": GridPlan(x=AxisGrid(2, "Dot"), y=AxisGrid(2, "Dot")),
    "none": GridPlan(x=AxisGrid(0), y=AxisGrid(0)),
}

# Styled embeds draw dotted grids at 1px and leave the dash pattern alone on
# hidden axes.
EXPLICIT_GRID_PLANS: Final[dict[str, GridPlan]] = {
    "both": GridPlan(x=AxisGrid(1), y=AxisGrid(1)),
    "y-only": GridPlan(x=AxisGrid(0, None), y=AxisGrid(1)),
    "x-only": GridPlan(x=AxisGrid(1), y=AxisGrid(0, None)),
    "dots": GridPlan(x=AxisGrid(1, "Dot"), y=AxisGrid(1, "Dot")),
    "none": GridPlan(x=AxisGrid(0, None), y=AxisGrid(0, None)),
}

LEGEND_HORIZONTAL_SIDES: Final[frozenset[LegendPosition]] = frozenset({"left", "right"})
LEGEND_VERTICAL_SIDES: Final[frozenset[LegendPosition]] = frozenset({"top", "bottom"})
