"""Layout grid model.

Translates the registry's per-instance rectangles into the layout set consumed
by the external responsive grid renderer, and folds renderer-driven changes
(drag, compaction, resize) back into instances.

Only the primary breakpoint is populated here; the renderer derives the other
breakpoints with its own vertical compaction.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Final

from .instances import GridRect, WidgetInstance

BREAKPOINTS: Final[dict[str, int]] = {"lg": 1200, "md": 996, "sm": 768, "xs": 480, "xxs": 2}
COLUMNS: Final[dict[str, int]] = {"lg": 12, "md": 10, "sm": 6, "xs": 4, "xxs": 2}
PRIMARY_BREAKPOINT: Final[str] = "lg"
ROW_HEIGHT: Final[int] = 100

CATALOG_STEP: Final[int] = 3
EMBED_STEP: Final[int] = 6
EMBED_DEFAULT_SIZE: Final[tuple[int, int]] = (6, 8)

RESIZE_SETTLE_SECONDS: Final[float] = 0.15

LayoutSet = dict[str, list[GridRect]]


@dataclass(frozen=True, slots=True)
class ViewportRemeasure:
    """Pending effect asking the caller to re-measure the viewport.

    Some renderer-side elements do not track their container size, so after a
    resize settles the page must emit a synthetic resize event.
    """

    delay_seconds: float = RESIZE_SETTLE_SECONDS


@dataclass(frozen=True, slots=True)
class ResizeResult:
    """Outcome of a single-instance resize."""

    instances: tuple[WidgetInstance, ...]
    remeasure: ViewportRemeasure | None


def project(instances: Iterable[WidgetInstance]) -> LayoutSet:
    """Return the renderer layout set for the given instances."""

    return {PRIMARY_BREAKPOINT: [instance.layout for instance in instances]}


def apply_external_layout_change(
    instances: Sequence[WidgetInstance],
    changed_layouts: Iterable[GridRect],
) -> tuple[WidgetInstance, ...]:
    """Fold a renderer layout change back into instances.

    Args:
        instances: Current registry contents.
        changed_layouts: Rectangles reported by the renderer, keyed by `i`.

    Returns:
        Instances ordered like `changed_layouts` (the renderer's compaction
        order), followed by any instance the change set did not mention.
        Rectangles that match no instance are dropped.
    """

    by_id = {instance.instance_id: instance for instance in instances}
    updated: list[WidgetInstance] = []
    seen: set[str] = set()
    for rect in changed_layouts:
        instance = by_id.get(rect.i)
        if instance is None or rect.i in seen:
            continue
        seen.add(rect.i)
        updated.append(instance.with_layout(rect))
    updated.extend(instance for instance in instances if instance.instance_id not in seen)
    return tuple(updated)


def apply_resize(
    instances: Sequence[WidgetInstance],
    instance_id: str,
    rect: GridRect,
) -> ResizeResult:
    """Replace one instance's rectangle after a resize gesture."""

    found = False
    updated: list[WidgetInstance] = []
    for instance in instances:
        if instance.instance_id == instance_id:
            found = True
            updated.append(instance.with_layout(rect))
        else:
            updated.append(instance)
    return ResizeResult(instances=tuple(updated), remeasure=ViewportRemeasure() if found else None)


def next_position(count: int, *, step: int, columns: int = COLUMNS[PRIMARY_BREAKPOINT]) -> tuple[int, float]:
    """Return the (x, y) slot for a newly placed widget.

    `y` is infinite so the renderer's compaction appends the widget after the
    last row.
    """

    return (count * step) % columns, math.inf


def rect_to_json(rect: GridRect) -> dict[str, Any]:
    """Encode a rectangle, writing an unplaced `y` as null."""

    return {
        "i": rect.i,
        "x": rect.x,
        "y": None if math.isinf(rect.y) else rect.y,
        "w": rect.w,
        "h": rect.h,
    }


def rect_from_json(payload: dict[str, Any]) -> GridRect:
    """Decode a rectangle written by `rect_to_json` or by the renderer.

    Raises:
        ValueError: When a coordinate is missing, not numeric or not finite.
    """

    try:
        raw_y = payload.get("y")
        y = math.inf if raw_y is None else _as_number(raw_y)
        return GridRect(
            i=str(payload["i"]),
            x=_as_cell(payload["x"]),
            y=y,
            w=_as_cell(payload["w"]),
            h=_as_cell(payload["h"]),
        )
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid layout rectangle: {payload!r}") from exc


def _as_cell(value: object) -> int:
    """Return a column or span count; strings and non-finite numbers are rejected."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return int(value)


def _as_number(value: object) -> float:
    """Return grid rows as an int when integral; only +inf marks an unplaced row."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    number = float(value)
    if math.isnan(number) or number == -math.inf:
        raise ValueError(f"expected a finite row or +inf, got {value!r}")
    if math.isinf(number):
        return number
    return int(number) if number.is_integer() else number
