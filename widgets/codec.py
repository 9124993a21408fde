"""Snapshot encoding/decoding helpers for widget instances and dashboards.

The persisted document shape is shared by every storage backend and by data
written by earlier versions of the app, so field names are camelCase and
optional fields are omitted rather than written as null:

- Dashboard: `{id, name, folderId, widgetInstances, theme, iframeUrl?}`
- Folder: `{id, name, color?}`
- Widget instance: `{instanceId, id, layout, styleConfig?, colorConfig?,
  series?, embedCode?, widgetOid?, dashboardOid?}` where `id` is the widget
  type id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, cast

from .grid import rect_from_json, rect_to_json
from .instances import SeriesEntry, StyleConfig, WidgetInstance

Theme = Literal["light", "dark"]
THEMES: frozenset[str] = frozenset({"light", "dark"})
DEFAULT_THEME: Theme = "dark"


@dataclass(frozen=True, slots=True)
class FolderRecord:
    """A named group of dashboards."""

    id: str
    name: str
    color: str | None = None


@dataclass(frozen=True, slots=True)
class DashboardRecord:
    """A saved dashboard: a snapshot of the registry plus its theme.

    Args:
        id: Stable dashboard id (`d-<ms>`).
        name: Display name.
        folder_id: Owning folder id; None for unfiled dashboards.
        widget_instances: Registry contents at last save.
        theme: Theme active at last save, if recorded.
        iframe_url: External URL shown instead of the grid, if any.
    """

    id: str
    name: str
    folder_id: str | None
    widget_instances: tuple[WidgetInstance, ...] = field(default=())
    theme: Theme | None = None
    iframe_url: str | None = None


def encode_instance(instance: WidgetInstance) -> dict[str, Any]:
    """Encode a WidgetInstance into a JSON-serializable dictionary."""

    payload: dict[str, Any] = {
        "instanceId": instance.instance_id,
        "id": instance.type_id,
        "layout": rect_to_json(instance.layout),
    }
    if instance.style_config is not None:
        payload["styleConfig"] = dict(instance.style_config)
    if instance.color_config is not None:
        payload["colorConfig"] = dict(instance.color_config)
    if instance.series is not None:
        payload["series"] = [{"name": s.name, "color": s.color} for s in instance.series]
    if instance.embed_code is not None:
        payload["embedCode"] = instance.embed_code
    if instance.widget_oid is not None:
        payload["widgetOid"] = instance.widget_oid
    if instance.dashboard_oid is not None:
        payload["dashboardOid"] = instance.dashboard_oid
    return payload


def decode_instance(payload: dict[str, Any]) -> WidgetInstance:
    """Decode a WidgetInstance from a stored payload dictionary.

    Raises:
        ValueError: When the id or layout is missing or malformed.
    """

    if not isinstance(payload, dict):
        raise ValueError(f"Widget instance payload must be an object: {payload!r}")
    instance_id = payload.get("instanceId")
    type_id = payload.get("id")
    layout = payload.get("layout")
    if not instance_id or not type_id or not isinstance(layout, dict):
        raise ValueError(f"Widget instance payload is missing instanceId/id/layout: {payload!r}")

    series_raw = payload.get("series")
    series = None
    if isinstance(series_raw, list):
        series = tuple(
            SeriesEntry(name=str(item.get("name")), color=item.get("color"))
            for item in series_raw
            if isinstance(item, dict) and item.get("name") is not None
        )
    style_raw = payload.get("styleConfig")
    color_raw = payload.get("colorConfig")
    return WidgetInstance(
        instance_id=str(instance_id),
        type_id=str(type_id),
        layout=rect_from_json({**layout, "i": instance_id}),
        style_config=cast(StyleConfig, dict(style_raw)) if isinstance(style_raw, dict) else None,
        color_config={str(k): str(v) for k, v in color_raw.items()} if isinstance(color_raw, dict) else None,
        series=series,
        embed_code=_optional_str(payload.get("embedCode")),
        widget_oid=_optional_str(payload.get("widgetOid")),
        dashboard_oid=_optional_str(payload.get("dashboardOid")),
    )


def encode_instances(instances: tuple[WidgetInstance, ...] | list[WidgetInstance]) -> list[dict[str, Any]]:
    """Encode a sequence of instances."""

    return [encode_instance(instance) for instance in instances]


def decode_instances(payload: object) -> tuple[WidgetInstance, ...]:
    """Decode a list of instances; a non-list payload decodes as empty."""

    if not isinstance(payload, list):
        return ()
    return tuple(decode_instance(item) for item in payload)


def encode_folder(folder: FolderRecord) -> dict[str, Any]:
    """Encode a FolderRecord."""

    payload: dict[str, Any] = {"id": folder.id, "name": folder.name}
    if folder.color is not None:
        payload["color"] = folder.color
    return payload


def decode_folder(payload: dict[str, Any]) -> FolderRecord:
    """Decode a FolderRecord.

    Raises:
        ValueError: When id or name is missing.
    """

    if not isinstance(payload, dict) or not payload.get("id") or payload.get("name") is None:
        raise ValueError(f"Folder payload is missing id/name: {payload!r}")
    return FolderRecord(
        id=str(payload["id"]),
        name=str(payload["name"]),
        color=_optional_str(payload.get("color")),
    )


def encode_dashboard(dashboard: DashboardRecord) -> dict[str, Any]:
    """Encode a DashboardRecord."""

    payload: dict[str, Any] = {
        "id": dashboard.id,
        "name": dashboard.name,
        "folderId": dashboard.folder_id,
        "widgetInstances": encode_instances(dashboard.widget_instances),
        "theme": dashboard.theme,
    }
    if dashboard.iframe_url:
        payload["iframeUrl"] = dashboard.iframe_url
    return payload


def decode_dashboard(payload: dict[str, Any]) -> DashboardRecord:
    """Decode a DashboardRecord.

    Raises:
        ValueError: When id or name is missing or an instance is malformed.
    """

    if not isinstance(payload, dict) or not payload.get("id") or payload.get("name") is None:
        raise ValueError(f"Dashboard payload is missing id/name: {payload!r}")
    return DashboardRecord(
        id=str(payload["id"]),
        name=str(payload["name"]),
        folder_id=_optional_str(payload.get("folderId")),
        widget_instances=decode_instances(payload.get("widgetInstances")),
        theme=parse_theme(payload.get("theme")),
        iframe_url=_optional_str(payload.get("iframeUrl")),
    )


def parse_theme(value: object) -> Theme | None:
    """Return a supported theme name, or None."""

    if isinstance(value, str) and value in THEMES:
        return cast(Theme, value)
    return None


def _optional_str(value: object) -> str | None:
    """Return `value` as a string, keeping None and empty values as None."""

    if value is None or value == "":
        return None
    return str(value)
