"""Tests for the dashboard session (snapshot save/load and library edits)."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from typing import Any

import pytest

from dashboards.session import DashboardSession
from dashboards.stores import LocalDashboardStore, PersistenceError
from widgets.catalog import WidgetCatalog
from widgets.codec import DashboardRecord, FolderRecord
from widgets.instances import GridRect, SeriesEntry
from widgets.registry import WidgetRegistry

pytestmark = pytest.mark.unit


class FailingStore(LocalDashboardStore):
    """Local store whose writes always fail."""

    async def create_dashboard(self, dashboard: DashboardRecord) -> DashboardRecord:
        raise PersistenceError("Could not create dashboard")

    async def update_dashboard(self, dashboard_id: str, **changes: Any) -> None:
        raise PersistenceError("Could not update dashboard")

    async def delete_folder(self, folder_id: str) -> None:
        raise PersistenceError("Could not delete folder")


@pytest.fixture
def session(registry: WidgetRegistry, clock: Iterator[int]) -> DashboardSession:
    return DashboardSession(LocalDashboardStore({}), registry, clock=lambda: 50_000 + next(clock))


def _populate(registry: WidgetRegistry) -> None:
    chart = registry.add_instance("chart-trend")
    registry.add_instance("kpi-total")
    registry.update_style(chart.instance_id, {"gridLineStyle": "x-only"})
    registry.update_series_color(chart.instance_id, "North", "#ff0000")
    registry.record_discovered_series(chart.instance_id, [SeriesEntry("North", "#ff0000")])
    registry.apply_layout_change([GridRect(i=chart.instance_id, x=0, y=0, w=6, h=6)])


@pytest.mark.asyncio
async def test_save_as_new_then_load_round_trips_registry(session: DashboardSession) -> None:
    _populate(session.registry)
    before = session.registry.instances
    folder = await session.add_folder("Ops")

    record = await session.save_as_new(folder.id, "Example")
    session.new_dashboard()
    assert len(session.registry) == 0
    session.load_dashboard(record.id)

    assert record.id.startswith("d-")
    assert session.active_dashboard_id == record.id
    assert session.registry.instances == before
    assert session.display_name() == "Example"


@pytest.mark.asyncio
async def test_round_trip_survives_a_fresh_session(session: DashboardSession, catalog: WidgetCatalog) -> None:
    _populate(session.registry)
    session.set_theme("light")
    record = await session.save_as_new(None, "Loose")

    fresh = DashboardSession(session.store, WidgetRegistry(lookup=catalog.lookup()))
    await fresh.load_library()
    fresh.load_dashboard(record.id)

    assert fresh.registry.instances == session.registry.instances
    assert fresh.theme == "light"


@pytest.mark.asyncio
async def test_save_overwrite_updates_active_snapshot(session: DashboardSession) -> None:
    assert await session.save_overwrite() is None

    record = await session.save_as_new(None, "Leaks")
    session.registry.add_instance("kpi-total")
    session.toggle_theme()
    updated = await session.save_overwrite()

    assert updated.id == record.id
    assert len(updated.widget_instances) == 1
    assert updated.theme == "light"
    stored = await session.store.list_dashboards()
    assert stored == [updated]


def test_load_dashboard_switches_to_iframe_view(session: DashboardSession) -> None:
    session.dashboards = [
        DashboardRecord(id="d-1", name="External", folder_id=None, iframe_url="https://example.test/x", theme="light"),
        DashboardRecord(id="d-2", name="Grid", folder_id=None),
    ]

    session.load_dashboard("d-1")
    assert (session.view, session.iframe_url, session.theme) == ("iframe", "https://example.test/x", "light")

    session.load_dashboard("d-2")
    assert (session.view, session.iframe_url, session.theme) == ("grid", None, "light")
    assert session.open_in_new_window_url("d-1") == "https://example.test/x"
    assert session.open_in_new_window_url("d-2") is None


def test_load_unknown_dashboard_clears_registry(session: DashboardSession) -> None:
    session.registry.add_instance("kpi-total")
    session.creating_new = True

    assert session.load_dashboard("d-404") is None

    assert session.active_dashboard_id == "d-404"
    assert len(session.registry) == 0
    assert session.creating_new is False
    assert session.display_name() == "Select a Dashboard"


def test_new_dashboard_marks_creating(session: DashboardSession) -> None:
    session.active_dashboard_id = "d-1"
    session.registry.add_instance("kpi-total")

    session.new_dashboard()

    assert session.active_dashboard_id is None
    assert len(session.registry) == 0
    assert session.display_name() == "New Dashboard"


@pytest.mark.asyncio
async def test_delete_folder_cascades_and_closes_active_dashboard(session: DashboardSession) -> None:
    folder = await session.add_folder("Ops")
    d1 = await session.save_as_new(folder.id, "One")
    session.registry.add_instance("kpi-total")
    d2 = await session.save_as_new(folder.id, "Two")
    loose = await session.save_as_new(None, "Loose")
    session.load_dashboard(d2.id)

    await session.delete_folder(folder.id)

    assert [d.id for d in session.dashboards] == [loose.id]
    assert [d.id for d in await session.store.list_dashboards()] == [loose.id]
    assert d1.id != d2.id
    assert session.active_dashboard_id is None
    assert len(session.registry) == 0


@pytest.mark.asyncio
async def test_rename_move_and_delete_dashboard(session: DashboardSession) -> None:
    folder = await session.add_folder("Ops", "#00ff00")
    record = await session.save_as_new(None, "Draft")

    await session.rename_dashboard(record.id, "  Final  ")
    await session.rename_dashboard(record.id, "   ")
    await session.move_dashboard(record.id, folder.id)
    with pytest.raises(ValueError, match="Unknown folder"):
        await session.move_dashboard(record.id, "f-404")

    (stored,) = await session.store.list_dashboards()
    assert (stored.name, stored.folder_id) == ("Final", folder.id)

    await session.delete_dashboard(record.id)
    assert session.dashboards == []
    assert session.active_dashboard_id is None


@pytest.mark.asyncio
async def test_update_folder_ignores_blank_names(session: DashboardSession) -> None:
    folder = await session.add_folder("Ops")

    assert await session.update_folder(folder.id, "  ") is None
    renamed = await session.update_folder(folder.id, "Operations", "#111111")

    assert renamed == FolderRecord(id=folder.id, name="Operations", color="#111111")
    assert await session.store.list_folders() == [renamed]


@pytest.mark.asyncio
async def test_save_as_new_rejects_blank_names(session: DashboardSession) -> None:
    with pytest.raises(ValueError, match="blank"):
        await session.save_as_new(None, "   ")
    assert session.dashboards == []


@pytest.mark.asyncio
async def test_persistence_failures_leave_state_unchanged(registry: WidgetRegistry) -> None:
    session = DashboardSession(FailingStore({}), registry, clock=lambda: 1)
    session.folders = [FolderRecord(id="f-1", name="Ops")]
    session.dashboards = [DashboardRecord(id="d-1", name="One", folder_id="f-1")]
    session.load_dashboard("d-1")
    session.registry.add_instance("kpi-total")

    with pytest.raises(PersistenceError):
        await session.save_as_new("f-1", "Two")
    with pytest.raises(PersistenceError):
        await session.save_overwrite()
    with pytest.raises(PersistenceError):
        await session.delete_folder("f-1")

    assert [d.id for d in session.dashboards] == ["d-1"]
    assert session.dashboards[0].widget_instances == ()
    assert [f.id for f in session.folders] == ["f-1"]
    assert session.active_dashboard_id == "d-1"
    assert len(session.registry) == 1


@pytest.mark.asyncio
async def test_concurrent_saves_are_serialized(session: DashboardSession) -> None:
    await session.save_as_new(None, "Base")

    first, second = await asyncio.gather(session.save_as_new(None, "A"), session.save_overwrite())

    assert first.name == "A"
    assert second.id == first.id
    assert len({d.id for d in session.dashboards}) == 2


@pytest.mark.asyncio
async def test_render_widget_records_discovered_series(session: DashboardSession) -> None:
    instance = session.registry.add_instance("chart-trend")
    options = {"chart": {"type": "line"}, "series": [{"name": "North", "data": [1]}]}

    rendered = await session.render_widget(instance.instance_id, options)

    assert rendered["options"]["chart"]["backgroundColor"] == "transparent"
    assert rendered["styleOptions"]["backgroundColor"] == "#1F2937"
    assert session.registry.get(instance.instance_id).series == (SeriesEntry("North"),)
    assert await session.render_widget("ghost", options) is None


def test_theme_setters(session: DashboardSession) -> None:
    assert session.theme == "dark"
    assert session.toggle_theme() == "light"
    with pytest.raises(ValueError):
        session.set_theme("sepia")
    assert session.theme == "light"


def test_state_round_trip(session: DashboardSession, catalog: WidgetCatalog) -> None:
    _populate(session.registry)
    session.set_theme("light")
    session.dashboards = [DashboardRecord(id="d-9", name="Ext", folder_id=None, iframe_url="https://example.test")]
    session.load_dashboard("d-9")

    restored = DashboardSession.from_state(session.to_state(), session.store, lookup=catalog.lookup())

    assert restored.registry.instances == ()
    assert restored.active_dashboard_id == "d-9"
    assert (restored.view, restored.iframe_url) == ("iframe", "https://example.test")

    session.new_dashboard()
    _populate(session.registry)
    restored = DashboardSession.from_state(session.to_state(), session.store, lookup=catalog.lookup())
    assert restored.registry.instances == session.registry.instances
    assert restored.creating_new is True
    assert restored.theme == "light"


@pytest.mark.parametrize(
    "state",
    [
        None,
        {},
        {"widgetInstances": [{"instanceId": "a"}]},
        {"widgetInstances": [{"instanceId": "a", "id": "kpi-total", "layout": {"x": float("inf"), "y": 0, "w": 3, "h": 3}}]},
    ],
)
def test_malformed_state_yields_empty_workspace(state: dict | None) -> None:
    restored = DashboardSession.from_state(state, LocalDashboardStore({}))

    assert len(restored.registry) == 0
    assert restored.theme == "dark"
    assert restored.active_dashboard_id is None
