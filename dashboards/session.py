"""Dashboard session: the open workspace and its saved snapshots.

A session owns the live `WidgetRegistry`, the active theme and the loaded
library of folders and dashboards. Saving snapshots the registry into a
`DashboardRecord`; loading replaces the registry wholesale. Nothing is saved
implicitly.

Persistence is awaited before in-memory state changes, so a failed store call
(`PersistenceError`) leaves the session exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any, Literal

from core.theming.pipeline import render_widget_options, schedule_pending_effect
from core.theming.style_options import get_style_options, get_style_options_from_config
from dashboards.stores import DashboardStore
from widgets.catalog import CatalogLookup
from widgets.codec import (
    DEFAULT_THEME,
    DashboardRecord,
    FolderRecord,
    Theme,
    decode_instances,
    encode_instances,
    parse_theme,
)
from widgets.instances import STYLED_EMBED_TYPE_ID
from widgets.registry import WidgetRegistry

logger = logging.getLogger(__name__)

View = Literal["grid", "iframe"]

NEW_DASHBOARD_NAME = "New Dashboard"
NO_DASHBOARD_NAME = "Select a Dashboard"


def _now_ms() -> int:
    return int(time.time() * 1000)


class DashboardSession:
    """The open dashboard plus the folder/dashboard library it was loaded from.

    Args:
        store: Persistence backend for folders and dashboards.
        registry: Live widget registry; a fresh empty one by default.
        theme: Active theme.
        clock: Millisecond clock used to mint folder and dashboard ids.
    """

    def __init__(
        self,
        store: DashboardStore,
        registry: WidgetRegistry | None = None,
        *,
        theme: Theme = DEFAULT_THEME,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else WidgetRegistry()
        self.theme: Theme = theme
        self.folders: list[FolderRecord] = []
        self.dashboards: list[DashboardRecord] = []
        self.active_dashboard_id: str | None = None
        self.creating_new = False
        self.view: View = "grid"
        self.iframe_url: str | None = None
        self._clock = clock
        self._save_lock = asyncio.Lock()

    # Library

    async def load_library(self) -> None:
        """Fetch folders and dashboards from the store."""

        folders = await self.store.list_folders()
        dashboards = await self.store.list_dashboards()
        self.folders = folders
        self.dashboards = dashboards

    def get_dashboard(self, dashboard_id: str) -> DashboardRecord | None:
        return next((d for d in self.dashboards if d.id == dashboard_id), None)

    def get_folder(self, folder_id: str) -> FolderRecord | None:
        return next((f for f in self.folders if f.id == folder_id), None)

    # Snapshots

    def load_dashboard(self, dashboard_id: str) -> DashboardRecord | None:
        """Open a saved dashboard, replacing the live registry.

        An unknown id still becomes the active id but leaves an empty grid.
        """

        self.active_dashboard_id = dashboard_id
        self.creating_new = False
        record = self.get_dashboard(dashboard_id)
        if record is None:
            logger.warning("Dashboard %s is not in the loaded library", dashboard_id)
            self.registry.replace_all(())
            self.view = "grid"
            self.iframe_url = None
            return None

        self.registry.replace_all(record.widget_instances)
        if record.theme is not None:
            self.theme = record.theme
        if record.iframe_url:
            self.view = "iframe"
            self.iframe_url = record.iframe_url
        else:
            self.view = "grid"
            self.iframe_url = None
        return record

    async def save_as_new(self, folder_id: str | None, name: str) -> DashboardRecord:
        """Snapshot the registry into a new dashboard and make it active.

        Raises:
            ValueError: When the name is blank or the folder is unknown.
            PersistenceError: When the store rejects the write.
        """

        name = name.strip()
        if not name:
            raise ValueError("Dashboard name must not be blank.")
        if folder_id is not None and self.get_folder(folder_id) is None:
            raise ValueError(f"Unknown folder {folder_id!r}")

        async with self._save_lock:
            record = DashboardRecord(
                id=self._mint_id("d", {d.id for d in self.dashboards}),
                name=name,
                folder_id=folder_id,
                widget_instances=self.registry.instances,
                theme=self.theme,
            )
            await self.store.create_dashboard(record)
            self.dashboards.append(record)
            self.active_dashboard_id = record.id
            self.creating_new = False
            return record

    async def save_overwrite(self) -> DashboardRecord | None:
        """Overwrite the active dashboard's instances and theme; no-op without one."""

        if self.active_dashboard_id is None:
            return None
        async with self._save_lock:
            dashboard_id = self.active_dashboard_id
            instances = self.registry.instances
            await self.store.update_dashboard(dashboard_id, widget_instances=instances, theme=self.theme)
            return self._replace_dashboard(dashboard_id, widget_instances=instances, theme=self.theme)

    def new_dashboard(self) -> None:
        """Start an unsaved dashboard with an empty grid."""

        self.active_dashboard_id = None
        self.registry.replace_all(())
        self.creating_new = True
        self.view = "grid"
        self.iframe_url = None

    # Folders

    async def add_folder(self, name: str, color: str | None = None) -> FolderRecord:
        name = name.strip()
        if not name:
            raise ValueError("Folder name must not be blank.")
        folder = FolderRecord(id=self._mint_id("f", {f.id for f in self.folders}), name=name, color=color or None)
        await self.store.create_folder(folder)
        self.folders.append(folder)
        return folder

    async def update_folder(self, folder_id: str, name: str, color: str | None = None) -> FolderRecord | None:
        """Rename and recolor a folder; blank names and unknown ids are ignored."""

        name = name.strip()
        current = self.get_folder(folder_id)
        if current is None or not name:
            return None
        updated = FolderRecord(id=folder_id, name=name, color=color or None)
        await self.store.update_folder(folder_id, name, updated.color)
        self.folders = [updated if f.id == folder_id else f for f in self.folders]
        return updated

    async def delete_folder(self, folder_id: str) -> None:
        """Delete a folder and its dashboards; closes the active one if inside."""

        await self.store.delete_folder(folder_id)
        removed = {d.id for d in self.dashboards if d.folder_id == folder_id}
        self.folders = [f for f in self.folders if f.id != folder_id]
        self.dashboards = [d for d in self.dashboards if d.id not in removed]
        if self.active_dashboard_id in removed:
            self._close_active()

    # Dashboards

    async def rename_dashboard(self, dashboard_id: str, name: str) -> DashboardRecord | None:
        name = name.strip()
        if not name or self.get_dashboard(dashboard_id) is None:
            return None
        await self.store.update_dashboard(dashboard_id, name=name)
        return self._replace_dashboard(dashboard_id, name=name)

    async def move_dashboard(self, dashboard_id: str, folder_id: str | None) -> DashboardRecord | None:
        """Move a dashboard into a folder, or out of any folder with None.

        Raises:
            ValueError: When the target folder is unknown.
        """

        if self.get_dashboard(dashboard_id) is None:
            return None
        if folder_id is not None and self.get_folder(folder_id) is None:
            raise ValueError(f"Unknown folder {folder_id!r}")
        await self.store.update_dashboard(dashboard_id, folder_id=folder_id)
        return self._replace_dashboard(dashboard_id, folder_id=folder_id)

    async def delete_dashboard(self, dashboard_id: str) -> None:
        await self.store.delete_dashboard(dashboard_id)
        self.dashboards = [d for d in self.dashboards if d.id != dashboard_id]
        if self.active_dashboard_id == dashboard_id:
            self._close_active()

    def display_name(self) -> str:
        """Return the heading shown above the grid."""

        if self.creating_new:
            return NEW_DASHBOARD_NAME
        active = self.get_dashboard(self.active_dashboard_id) if self.active_dashboard_id else None
        return active.name if active is not None else NO_DASHBOARD_NAME

    def open_in_new_window_url(self, dashboard_id: str) -> str | None:
        record = self.get_dashboard(dashboard_id)
        return record.iframe_url if record is not None else None

    # Theme

    def set_theme(self, theme: str) -> Theme:
        parsed = parse_theme(theme)
        if parsed is None:
            raise ValueError(f"Unsupported theme {theme!r}")
        self.theme = parsed
        return parsed

    def toggle_theme(self) -> Theme:
        return self.set_theme("light" if self.theme == "dark" else "dark")

    # Rendering

    async def render_widget(self, instance_id: str, options: Mapping[str, Any]) -> dict[str, Any] | None:
        """Theme a widget's option document and return it with frame style options.

        Series discovered from the raw options are written to the registry on
        the next loop turn; this coroutine yields once so the write has landed
        before it returns.

        Returns:
            `{"options": ..., "styleOptions": ...}`, or None for an unknown id.
        """

        instance = self.registry.get(instance_id)
        if instance is None:
            logger.warning("Render requested for unknown instance %s", instance_id)
            return None

        result = render_widget_options(instance, options, self.theme)
        if schedule_pending_effect(result.pending, self.registry) is not None:
            await asyncio.sleep(0)

        if instance.type_id == STYLED_EMBED_TYPE_ID and instance.style_config:
            style_options = get_style_options_from_config(instance.style_config)
        else:
            style_options = get_style_options(self.theme)
        return {"options": result.options, "styleOptions": style_options}

    # Workspace state

    def to_state(self) -> dict[str, Any]:
        """Return the JSON-serializable workspace (not the library)."""

        return {
            "widgetInstances": encode_instances(self.registry.instances),
            "theme": self.theme,
            "activeDashboardId": self.active_dashboard_id,
            "creatingNew": self.creating_new,
            "view": self.view,
            "iframeUrl": self.iframe_url,
        }

    @classmethod
    def from_state(
        cls,
        state: Mapping[str, Any] | None,
        store: DashboardStore,
        *,
        lookup: CatalogLookup | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> DashboardSession:
        """Rebuild a session from `to_state` output; malformed state yields an empty workspace."""

        session = cls(store, WidgetRegistry(lookup=lookup, clock=clock), clock=clock)
        if not state:
            return session
        try:
            instances = decode_instances(state.get("widgetInstances"))
        except (TypeError, ValueError, OverflowError) as exc:
            logger.warning("Discarding malformed workspace state: %s", exc)
            return session

        session.registry.replace_all(instances)
        session.theme = parse_theme(state.get("theme")) or DEFAULT_THEME
        active = state.get("activeDashboardId")
        session.active_dashboard_id = str(active) if active else None
        session.creating_new = bool(state.get("creatingNew"))
        iframe_url = state.get("iframeUrl")
        if state.get("view") == "iframe" and iframe_url:
            session.view = "iframe"
            session.iframe_url = str(iframe_url)
        return session

    # Helpers

    def _close_active(self) -> None:
        self.active_dashboard_id = None
        self.registry.replace_all(())
        self.view = "grid"
        self.iframe_url = None

    def _replace_dashboard(self, dashboard_id: str, **changes: Any) -> DashboardRecord | None:
        updated: DashboardRecord | None = None
        dashboards: list[DashboardRecord] = []
        for record in self.dashboards:
            if record.id == dashboard_id:
                record = replace(record, **changes)
                updated = record
            dashboards.append(record)
        self.dashboards = dashboards
        return updated

    def _mint_id(self, prefix: str, taken: set[str]) -> str:
        stamp = self._clock()
        candidate = f"{prefix}-{stamp}"
        while candidate in taken:
            stamp += 1
            candidate = f"{prefix}-{stamp}"
        return candidate
