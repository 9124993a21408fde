"""Tests for the widget instance registry."""

from __future__ import annotations

import logging
import math

import pytest

from widgets.instances import EmbedSave, GridRect, SeriesEntry
from widgets.registry import UnknownWidgetTypeError, WidgetRegistry

pytestmark = pytest.mark.unit


def test_add_instance_uses_catalog_size_and_appends(registry: WidgetRegistry) -> None:
    first = registry.add_instance("chart-trend")
    second = registry.add_instance("kpi-total")

    assert first.instance_id == "chart-trend-1000"
    assert (first.layout.x, first.layout.w, first.layout.h) == (0, 6, 6)
    assert math.isinf(first.layout.y)
    assert (second.layout.x, second.layout.w, second.layout.h) == (3, 3, 3)
    assert [i.instance_id for i in registry] == [first.instance_id, second.instance_id]


def test_add_instance_applies_layout_override(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("chart-trend", {"w": 12, "y": 0})

    assert (instance.layout.x, instance.layout.y, instance.layout.w, instance.layout.h) == (0, 0, 12, 6)


@pytest.mark.parametrize("override", [{"w": "wide"}, {"x": float("inf")}, {"h": float("nan")}, {"y": "top"}])
def test_add_instance_rejects_malformed_layout_override(registry: WidgetRegistry, override: dict) -> None:
    registry.add_instance("kpi-total")

    with pytest.raises(ValueError, match="Invalid layout rectangle"):
        registry.add_instance("chart-trend", override)
    assert len(registry) == 1


def test_add_instance_treats_null_row_as_unplaced(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("chart-trend", {"y": None, "i": "ignored"})

    assert instance.layout.is_unplaced
    assert instance.layout.i == instance.instance_id


def test_add_instance_rejects_unknown_type(registry: WidgetRegistry) -> None:
    with pytest.raises(UnknownWidgetTypeError, match="nope"):
        registry.add_instance("nope")
    assert len(registry) == 0


def test_instance_ids_stay_unique_when_the_clock_stalls(catalog) -> None:
    """Bump the timestamp rather than reuse an id minted in the same millisecond."""

    registry = WidgetRegistry(lookup=catalog.lookup(), clock=lambda: 5)

    ids = [registry.add_instance("kpi-total").instance_id for _ in range(3)]

    assert ids == ["kpi-total-5", "kpi-total-6", "kpi-total-7"]
    assert all(i.layout.i == i.instance_id for i in registry)


def test_identity_invariant_holds_across_mutations(registry: WidgetRegistry) -> None:
    a = registry.add_instance("chart-trend")
    b = registry.add_instance("kpi-total")
    registry.update_style(a.instance_id, {"gridLineStyle": "dots"})
    registry.apply_layout_change([GridRect(i=b.instance_id, x=0, y=0, w=3, h=3)])
    registry.apply_resize(a.instance_id, GridRect(i="stale", x=0, y=3, w=12, h=4))
    registry.remove_instance(b.instance_id)
    registry.add_instance("kpi-total")

    ids = [instance.instance_id for instance in registry]
    assert len(ids) == len(set(ids))
    assert all(instance.layout.i == instance.instance_id for instance in registry)
    assert registry.get(a.instance_id).layout.w == 12


def test_update_style_merges_shallowly(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("chart-trend")
    registry.update_style(instance.instance_id, {"gridLineStyle": "dots", "legendPosition": "top"})
    registry.update_style(instance.instance_id, {"legendPosition": "hidden"})

    assert registry.get(instance.instance_id).style_config == {"gridLineStyle": "dots", "legendPosition": "hidden"}


def test_update_style_for_unknown_instance_is_logged_and_ignored(
    registry: WidgetRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    registry.add_instance("chart-trend")
    before = registry.instances

    with caplog.at_level(logging.WARNING, logger="widgets.registry"):
        registry.update_style("ghost", {"gridLineStyle": "none"})

    assert registry.instances == before
    assert "ghost" in caplog.text


def test_update_series_color_rewrites_cached_series(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("chart-trend")
    registry.record_discovered_series(instance.instance_id, [SeriesEntry("Leaks", "#111111"), SeriesEntry("Fixes")])

    registry.update_series_color(instance.instance_id, "Leaks", "#ff0000")

    updated = registry.get(instance.instance_id)
    assert updated.color_config == {"Leaks": "#ff0000"}
    assert updated.series == (SeriesEntry("Leaks", "#ff0000"), SeriesEntry("Fixes"))


def test_record_discovered_series_is_one_shot(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("chart-trend")

    registry.record_discovered_series(instance.instance_id, [SeriesEntry("A")])
    registry.record_discovered_series(instance.instance_id, [SeriesEntry("B"), SeriesEntry("C")])

    assert registry.get(instance.instance_id).series == (SeriesEntry("A"),)


def test_color_editor_series_applies_overrides(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("chart-trend")
    registry.update_series_color(instance.instance_id, "B", "#00ff00")
    registry.record_discovered_series(instance.instance_id, [SeriesEntry("A", "#aaaaaa"), SeriesEntry("B")])

    assert registry.color_editor_series(instance.instance_id) == (
        SeriesEntry("A", "#aaaaaa"),
        SeriesEntry("B", "#00ff00"),
    )
    assert registry.color_editor_series("ghost") == ()


def test_apply_resize_returns_remeasure(registry: WidgetRegistry) -> None:
    instance = registry.add_instance("kpi-total")

    remeasure = registry.apply_resize(instance.instance_id, GridRect(i=instance.instance_id, x=0, y=0, w=4, h=4))

    assert remeasure is not None
    assert remeasure.delay_seconds == pytest.approx(0.15)
    assert registry.apply_resize("ghost", GridRect(i="ghost", x=0, y=0, w=1, h=1)) is None


def test_save_embed_creates_half_width_instances(registry: WidgetRegistry) -> None:
    registry.add_instance("kpi-total")

    html = registry.save_embed(EmbedSave(kind="html", embed_code="<iframe></iframe>"))
    styled = registry.save_embed(
        EmbedSave(kind="styled", widget_oid="w1", dashboard_oid="d1", style_config={"gridLineStyle": "none"})
    )

    assert html.type_id == "embed"
    assert html.embed_code == "<iframe></iframe>"
    assert (html.layout.x, html.layout.w, html.layout.h) == (6, 6, 8)
    assert styled.type_id == "styled-embed"
    assert (styled.widget_oid, styled.dashboard_oid) == ("w1", "d1")
    assert styled.layout.x == 0


def test_save_embed_update_keeps_type_and_position(registry: WidgetRegistry) -> None:
    styled = registry.save_embed(EmbedSave(kind="styled", widget_oid="w1", dashboard_oid="d1", style_config={}))

    updated = registry.save_embed(EmbedSave(kind="sdk", embed_code="<script></script>"), styled.instance_id)

    assert updated.type_id == "styled-embed"
    assert updated.embed_code == "<script></script>"
    assert updated.widget_oid is None
    assert updated.style_config is None
    assert updated.layout == styled.layout
    assert registry.save_embed(EmbedSave(kind="html"), "ghost") is None


def test_replace_all_swaps_wholesale(registry: WidgetRegistry) -> None:
    registry.add_instance("kpi-total")
    other = WidgetRegistry([], lookup=None)

    registry.replace_all(other.instances)

    assert len(registry) == 0
    assert registry.layouts() == {"lg": []}
