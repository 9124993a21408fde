"""Persistence backends for folders and saved dashboards.

Both stores speak the same record types (`widgets.codec`) so the session never
knows which backend it is talking to. Every method is a coroutine; callers
update in-memory state only after the awaited call returns.

`LocalDashboardStore` keeps JSON strings in a string-keyed mapping (a browser
session or cookie jar in practice). `OrmDashboardStore` persists through the
Django ORM using the async query API.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, MutableMapping
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Literal, TypeVar

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from django.utils import timezone

from dashboards.models import Dashboard, Folder
from widgets.codec import (
    DashboardRecord,
    FolderRecord,
    decode_dashboard,
    decode_folder,
    encode_dashboard,
    encode_folder,
    encode_instances,
)

logger = logging.getLogger(__name__)

StoreKind = Literal["local", "orm"]
RecordT = TypeVar("RecordT", FolderRecord, DashboardRecord)

FOLDERS_KEY = "folders"
DASHBOARDS_KEY = "dashboards"

DASHBOARD_FIELDS: frozenset[str] = frozenset({"name", "folder_id", "widget_instances", "theme", "iframe_url"})


class PersistenceError(RuntimeError):
    """Raised when a store cannot complete a read or write."""


class DashboardStore(ABC):
    """Async persistence contract for folders and dashboards."""

    @abstractmethod
    async def list_folders(self) -> list[FolderRecord]:
        """Return every folder in creation order."""

    @abstractmethod
    async def list_dashboards(self) -> list[DashboardRecord]:
        """Return every dashboard in creation order."""

    @abstractmethod
    async def create_folder(self, folder: FolderRecord) -> FolderRecord:
        """Persist a new folder and return it."""

    @abstractmethod
    async def update_folder(self, folder_id: str, name: str, color: str | None) -> None:
        """Rename/recolor a folder; unknown ids are ignored."""

    @abstractmethod
    async def delete_folder(self, folder_id: str) -> None:
        """Delete a folder and every dashboard inside it."""

    @abstractmethod
    async def create_dashboard(self, dashboard: DashboardRecord) -> DashboardRecord:
        """Persist a new dashboard and return it."""

    @abstractmethod
    async def update_dashboard(self, dashboard_id: str, **changes: Any) -> None:
        """Apply a partial update to a dashboard; unknown ids are ignored.

        Raises:
            ValueError: When `changes` names a field outside `DASHBOARD_FIELDS`.
        """

    @abstractmethod
    async def delete_dashboard(self, dashboard_id: str) -> None:
        """Delete a single dashboard."""


def _check_changes(changes: dict[str, Any]) -> None:
    unknown = set(changes) - DASHBOARD_FIELDS
    if unknown:
        raise ValueError(f"Unsupported dashboard fields: {sorted(unknown)}")


class LocalDashboardStore(DashboardStore):
    """Store folders and dashboards as JSON strings in a key/value mapping.

    Args:
        storage: Mapping holding JSON text under `"folders"` and `"dashboards"`.
            Malformed or missing values load as empty lists.
    """

    def __init__(self, storage: MutableMapping[str, str]) -> None:
        self.storage = storage

    async def list_folders(self) -> list[FolderRecord]:
        return self._read(FOLDERS_KEY, decode_folder)

    async def list_dashboards(self) -> list[DashboardRecord]:
        return self._read(DASHBOARDS_KEY, decode_dashboard)

    async def create_folder(self, folder: FolderRecord) -> FolderRecord:
        folders = self._read(FOLDERS_KEY, decode_folder)
        folders.append(folder)
        self._write_folders(folders)
        return folder

    async def update_folder(self, folder_id: str, name: str, color: str | None) -> None:
        folders = self._read(FOLDERS_KEY, decode_folder)
        updated = [replace(f, name=name, color=color) if f.id == folder_id else f for f in folders]
        self._write_folders(updated)

    async def delete_folder(self, folder_id: str) -> None:
        folders = [f for f in self._read(FOLDERS_KEY, decode_folder) if f.id != folder_id]
        dashboards = [d for d in self._read(DASHBOARDS_KEY, decode_dashboard) if d.folder_id != folder_id]
        self._write_folders(folders)
        self._write_dashboards(dashboards)

    async def create_dashboard(self, dashboard: DashboardRecord) -> DashboardRecord:
        if dashboard.folder_id is not None:
            folder_ids = {f.id for f in self._read(FOLDERS_KEY, decode_folder)}
            if dashboard.folder_id not in folder_ids:
                raise PersistenceError(f"Unknown folder {dashboard.folder_id!r}")
        dashboards = self._read(DASHBOARDS_KEY, decode_dashboard)
        dashboards.append(dashboard)
        self._write_dashboards(dashboards)
        return dashboard

    async def update_dashboard(self, dashboard_id: str, **changes: Any) -> None:
        _check_changes(changes)
        if "widget_instances" in changes:
            changes["widget_instances"] = tuple(changes["widget_instances"])
        dashboards = self._read(DASHBOARDS_KEY, decode_dashboard)
        updated = [replace(d, **changes) if d.id == dashboard_id else d for d in dashboards]
        self._write_dashboards(updated)

    async def delete_dashboard(self, dashboard_id: str) -> None:
        dashboards = [d for d in self._read(DASHBOARDS_KEY, decode_dashboard) if d.id != dashboard_id]
        self._write_dashboards(dashboards)

    def _read(self, key: str, decode: Callable[[Any], RecordT]) -> list[RecordT]:
        raw = self.storage.get(key)
        if not raw:
            return []
        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a list, got {type(payload).__name__}")
            return [decode(item) for item in payload]
        except (ValueError, OverflowError) as exc:
            logger.warning("Discarding malformed %s data: %s", key, exc)
            return []

    def _write_folders(self, folders: list[FolderRecord]) -> None:
        self.storage[FOLDERS_KEY] = json.dumps([encode_folder(f) for f in folders])

    def _write_dashboards(self, dashboards: list[DashboardRecord]) -> None:
        self.storage[DASHBOARDS_KEY] = json.dumps([encode_dashboard(d) for d in dashboards])


class OrmDashboardStore(DashboardStore):
    """Store folders and dashboards in the database via the async ORM."""

    async def list_folders(self) -> list[FolderRecord]:
        with self._persistence("list folders"):
            return [folder.as_record() async for folder in Folder.objects.all()]

    async def list_dashboards(self) -> list[DashboardRecord]:
        records: list[DashboardRecord] = []
        with self._persistence("list dashboards"):
            async for row in Dashboard.objects.all():
                try:
                    records.append(row.as_record())
                except ValueError as exc:
                    logger.warning("Skipping malformed dashboard %s: %s", row.id, exc)
        return records

    async def create_folder(self, folder: FolderRecord) -> FolderRecord:
        with self._persistence("create folder"):
            await Folder.objects.acreate(id=folder.id, name=folder.name, color=folder.color or "")
        return folder

    async def update_folder(self, folder_id: str, name: str, color: str | None) -> None:
        with self._persistence("update folder"):
            await Folder.objects.filter(id=folder_id).aupdate(name=name, color=color or "")

    async def delete_folder(self, folder_id: str) -> None:
        with self._persistence("delete folder"):
            await Folder.objects.filter(id=folder_id).adelete()

    async def create_dashboard(self, dashboard: DashboardRecord) -> DashboardRecord:
        with self._persistence("create dashboard"):
            await Dashboard.objects.acreate(id=dashboard.id, **Dashboard.fields_from_record(dashboard))
        return dashboard

    async def update_dashboard(self, dashboard_id: str, **changes: Any) -> None:
        _check_changes(changes)
        fields = dict(changes)
        if "widget_instances" in fields:
            fields["widget_instances"] = encode_instances(tuple(fields["widget_instances"]))
        for key in ("theme", "iframe_url"):
            if key in fields and fields[key] is None:
                fields[key] = ""
        with self._persistence("update dashboard"):
            # `aupdate` skips auto_now; set the timestamp explicitly.
            await Dashboard.objects.filter(id=dashboard_id).aupdate(updated_at=timezone.now(), **fields)

    async def delete_dashboard(self, dashboard_id: str) -> None:
        with self._persistence("delete dashboard"):
            await Dashboard.objects.filter(id=dashboard_id).adelete()

    @contextmanager
    def _persistence(self, action: str) -> Iterator[None]:
        try:
            yield
        except DatabaseError as exc:
            logger.exception("Dashboard store failed to %s", action)
            raise PersistenceError(f"Could not {action}") from exc


def build_store(
    kind: StoreKind | str | None = None,
    storage: MutableMapping[str, str] | None = None,
) -> DashboardStore:
    """Return the store selected by `kind` (default: `settings.DASHBOARD_STORE`).

    Args:
        kind: `"local"` or `"orm"`.
        storage: Backing mapping for the local store.

    Raises:
        ImproperlyConfigured: For an unknown kind, or `"local"` without storage.
    """

    selected = kind or getattr(settings, "DASHBOARD_STORE", "local")
    if selected == "orm":
        return OrmDashboardStore()
    if selected == "local":
        if storage is None:
            raise ImproperlyConfigured("The local dashboard store needs a backing mapping.")
        return LocalDashboardStore(storage)
    raise ImproperlyConfigured(f"Unknown DASHBOARD_STORE {selected!r}; expected 'local' or 'orm'.")
