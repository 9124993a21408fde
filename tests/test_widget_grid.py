"""Tests for the layout grid model."""

from __future__ import annotations

import math

import pytest

from widgets import grid
from widgets.instances import GridRect, WidgetInstance

pytestmark = pytest.mark.unit


def _instance(instance_id: str, *, x: int = 0, y: float = 0, w: int = 3, h: int = 3) -> WidgetInstance:
    return WidgetInstance(
        instance_id=instance_id,
        type_id="chart-trend",
        layout=GridRect(i=instance_id, x=x, y=y, w=w, h=h),
    )


def test_instance_layout_is_rekeyed_to_instance_id() -> None:
    """Keep `layout.i` equal to the instance id even when built with a stale key."""

    instance = WidgetInstance(instance_id="a-1", type_id="kpi", layout=GridRect(i="other", x=0, y=0, w=1, h=1))

    assert instance.layout.i == "a-1"
    assert instance.with_layout(GridRect(i="zzz", x=4, y=2, w=2, h=2)).layout.i == "a-1"


def test_project_populates_only_the_primary_breakpoint() -> None:
    instances = [_instance("a"), _instance("b", x=3)]

    layouts = grid.project(instances)

    assert list(layouts) == ["lg"]
    assert [rect.i for rect in layouts["lg"]] == ["a", "b"]


def test_external_layout_change_reorders_and_updates() -> None:
    """Follow the renderer's order and geometry for matched rectangles."""

    instances = (_instance("a"), _instance("b", x=3))
    changed = [GridRect(i="b", x=0, y=0, w=3, h=3), GridRect(i="a", x=0, y=3, w=6, h=4)]

    result = grid.apply_external_layout_change(instances, changed)

    assert [i.instance_id for i in result] == ["b", "a"]
    assert result[1].layout == GridRect(i="a", x=0, y=3, w=6, h=4)


def test_external_layout_change_drops_unknown_rects_and_keeps_unmentioned_instances() -> None:
    instances = (_instance("a"), _instance("b"), _instance("c"))
    changed = [GridRect(i="ghost", x=0, y=0, w=1, h=1), GridRect(i="c", x=9, y=0, w=3, h=3)]

    result = grid.apply_external_layout_change(instances, changed)

    assert [i.instance_id for i in result] == ["c", "a", "b"]
    assert result[0].layout.x == 9


def test_external_layout_change_ignores_duplicate_keys() -> None:
    instances = (_instance("a"),)
    changed = [GridRect(i="a", x=1, y=0, w=3, h=3), GridRect(i="a", x=7, y=0, w=3, h=3)]

    result = grid.apply_external_layout_change(instances, changed)

    assert len(result) == 1
    assert result[0].layout.x == 1


def test_apply_resize_requests_remeasure_only_for_known_instances() -> None:
    instances = (_instance("a"),)

    hit = grid.apply_resize(instances, "a", GridRect(i="a", x=0, y=0, w=8, h=5))
    miss = grid.apply_resize(instances, "missing", GridRect(i="missing", x=0, y=0, w=8, h=5))

    assert hit.instances[0].layout.w == 8
    assert hit.remeasure == grid.ViewportRemeasure(delay_seconds=0.15)
    assert miss.remeasure is None
    assert miss.instances == instances


@pytest.mark.parametrize(
    ("count", "step", "expected_x"),
    [(0, 3, 0), (1, 3, 3), (3, 3, 9), (4, 3, 0), (1, 6, 6), (2, 6, 0)],
)
def test_next_position_cycles_columns_and_appends(count: int, step: int, expected_x: int) -> None:
    x, y = grid.next_position(count, step=step)

    assert x == expected_x
    assert math.isinf(y)


def test_rect_json_writes_unplaced_rows_as_null() -> None:
    rect = GridRect(i="a", x=3, y=math.inf, w=6, h=8)

    payload = grid.rect_to_json(rect)

    assert payload == {"i": "a", "x": 3, "y": None, "w": 6, "h": 8}
    assert grid.rect_from_json(payload).is_unplaced


def test_rect_from_json_keeps_integral_rows_as_int() -> None:
    rect = grid.rect_from_json({"i": "a", "x": 0, "y": 4.0, "w": 2, "h": 2})

    assert rect.y == 4
    assert isinstance(rect.y, int)


def test_rect_from_json_rejects_missing_coordinates() -> None:
    with pytest.raises(ValueError, match="Invalid layout rectangle"):
        grid.rect_from_json({"i": "a", "x": 0, "y": 0, "w": 2})


@pytest.mark.parametrize(
    "override",
    [{"x": float("inf")}, {"w": "wide"}, {"h": float("nan")}, {"y": float("-inf")}, {"x": True}, {"y": "3"}],
)
def test_rect_from_json_rejects_non_numeric_and_non_finite_values(override: dict) -> None:
    with pytest.raises(ValueError, match="Invalid layout rectangle"):
        grid.rect_from_json({"i": "a", "x": 0, "y": 0, "w": 2, "h": 2, **override})


def test_rect_from_json_accepts_infinite_rows_as_unplaced() -> None:
    assert grid.rect_from_json({"i": "a", "x": 0, "y": float("inf"), "w": 2, "h": 2}).is_unplaced
