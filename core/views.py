"""Views for the dashboard workspace: the index page and its JSON API.

The open workspace (registry, theme, active dashboard) lives in
`request.session["workspace"]`. Folders and dashboards live in whichever store
`settings.DASHBOARD_STORE` selects; the local store keeps them in the session
too.

API views are sync Django views that drive the async `DashboardSession`
through `async_to_sync`. Every API response is JSON with an `ok` flag.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any

from asgiref.sync import async_to_sync
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import render
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from core.config import require_visualization_settings, widget_catalog
from core.theming.validator import validate_style_config
from dashboards.session import DashboardSession
from dashboards.stores import DASHBOARDS_KEY, FOLDERS_KEY, PersistenceError, build_store
from widgets.codec import encode_dashboard, encode_folder
from widgets.grid import BREAKPOINTS, COLUMNS, ROW_HEIGHT, rect_from_json, rect_to_json
from widgets.instances import EmbedSave

logger = logging.getLogger(__name__)

WORKSPACE_SESSION_KEY = "workspace"
STORE_SESSION_KEYS = (FOLDERS_KEY, DASHBOARDS_KEY)

Handler = Callable[..., Awaitable[JsonResponse]]


@ensure_csrf_cookie
def index(request: HttpRequest) -> HttpResponse:
    """Render the workspace shell, or a blocking page when misconfigured."""

    try:
        visualization = require_visualization_settings()
    except ImproperlyConfigured as exc:
        return render(request, "core/config_error.html", {"detail": str(exc)}, status=503)
    return render(request, "core/index.html", {"visualization_url": visualization.url})


def _error(message: str, *, status: int, **extra: Any) -> JsonResponse:
    return JsonResponse({"ok": False, "error": message, **extra}, status=status)


def workspace_api(handler: Handler) -> Callable[..., JsonResponse]:
    """Wrap an async handler `(request, session, payload, **kwargs)` as a JSON view.

    The wrapper checks configuration, decodes the JSON body, rebuilds the
    session from the request and persists the workspace after the handler
    succeeds. `PersistenceError` maps to 502 and `ValueError` to 400; on either
    the workspace in the session is left untouched.
    """

    @wraps(handler)
    def view(request: HttpRequest, **kwargs: Any) -> JsonResponse:
        try:
            require_visualization_settings()
        except ImproperlyConfigured as exc:
            return _error("configuration", status=503, detail=str(exc))

        payload: dict[str, Any] = {}
        if request.method == "POST" and request.body:
            try:
                payload = json.loads(request.body)
            except ValueError:
                return _error("Request body must be valid JSON.", status=400)
            if not isinstance(payload, dict):
                return _error("Request body must be a JSON object.", status=400)

        storage = {key: request.session[key] for key in STORE_SESSION_KEYS if key in request.session}
        store = build_store(settings.DASHBOARD_STORE, storage)
        session = DashboardSession.from_state(
            request.session.get(WORKSPACE_SESSION_KEY),
            store,
            lookup=widget_catalog().lookup(),
        )

        async def run() -> JsonResponse:
            await session.load_library()
            return await handler(request, session, payload, **kwargs)

        try:
            response = async_to_sync(run)()
        except PersistenceError as exc:
            return _error(str(exc), status=502)
        except ValueError as exc:
            return _error(str(exc), status=400)

        if response.status_code < 400:
            request.session[WORKSPACE_SESSION_KEY] = session.to_state()
            for key, value in storage.items():
                request.session[key] = value
        return response

    return view


def workspace_payload(session: DashboardSession) -> dict[str, Any]:
    """Return the full client view of a session."""

    return {
        "ok": True,
        "workspace": session.to_state(),
        "displayName": session.display_name(),
        "layouts": {
            breakpoint: [rect_to_json(rect) for rect in rects]
            for breakpoint, rects in session.registry.layouts().items()
        },
        "grid": {"breakpoints": BREAKPOINTS, "cols": COLUMNS, "rowHeight": ROW_HEIGHT},
        "folders": [encode_folder(folder) for folder in session.folders],
        "dashboards": [encode_dashboard(dashboard) for dashboard in session.dashboards],
        "catalog": [
            {
                "id": entry.id,
                "title": entry.title,
                "description": entry.description,
                "defaultLayout": {"w": entry.default_layout.w, "h": entry.default_layout.h},
            }
            for entry in widget_catalog().list()
        ],
    }


def _ok(session: DashboardSession, **extra: Any) -> JsonResponse:
    return JsonResponse({**workspace_payload(session), **extra})


def _optional_id(value: object) -> str | None:
    return str(value) if value else None


# State


@require_GET
@workspace_api
async def state_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    """Return the workspace, library and catalog."""

    return _ok(session)


# Widgets


@require_POST
@workspace_api
async def add_widget_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    """Add a catalog widget; unknown types answer 400."""

    type_id = payload.get("typeId")
    if not type_id:
        return _error("typeId is required.", status=400)
    layout = payload.get("layout")
    instance = session.registry.add_instance(str(type_id), layout if isinstance(layout, dict) else None)
    return _ok(session, instanceId=instance.instance_id)


@require_POST
@workspace_api
async def remove_widget_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], instance_id: str
) -> JsonResponse:
    session.registry.remove_instance(instance_id)
    return _ok(session)


@require_POST
@workspace_api
async def update_style_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], instance_id: str
) -> JsonResponse:
    """Shallow-merge a validated partial style config into an instance."""

    result = validate_style_config(payload)
    if not result.is_valid:
        return _error("Invalid style config.", status=400, errors=list(result.errors))
    session.registry.update_style(instance_id, payload)
    return _ok(session, warnings=list(result.warnings))


@require_POST
@workspace_api
async def update_series_color_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], instance_id: str
) -> JsonResponse:
    series_name = payload.get("seriesName")
    color = payload.get("color")
    if not series_name or not color:
        return _error("seriesName and color are required.", status=400)
    session.registry.update_series_color(instance_id, str(series_name), str(color))
    return _ok(session)


@require_POST
@workspace_api
async def save_embed_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    """Create an embed widget, or update one when `instanceId` is given."""

    kind = payload.get("kind")
    if kind not in ("styled", "sdk", "html"):
        return _error("kind must be one of styled, sdk, html.", status=400)
    style_config = payload.get("styleConfig")
    if style_config is not None:
        if not isinstance(style_config, dict):
            return _error("styleConfig must be an object.", status=400)
        result = validate_style_config(style_config)
        if not result.is_valid:
            return _error("Invalid style config.", status=400, errors=list(result.errors))
    data = EmbedSave(
        kind=kind,
        embed_code=payload.get("embedCode"),
        widget_oid=_optional_id(payload.get("widgetOid")),
        dashboard_oid=_optional_id(payload.get("dashboardOid")),
        style_config=style_config,
    )
    instance = session.registry.save_embed(data, _optional_id(payload.get("instanceId")))
    if instance is None:
        return _error("Widget instance not found.", status=404)
    return _ok(session, instanceId=instance.instance_id)


@require_POST
@workspace_api
async def layout_change_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    """Store the grid's reported layout for the primary breakpoint."""

    raw = payload.get("layout")
    if not isinstance(raw, list):
        return _error("layout must be a list.", status=400)
    session.registry.apply_layout_change([rect_from_json(item) for item in raw])
    return _ok(session)


@require_POST
@workspace_api
async def resize_widget_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], instance_id: str
) -> JsonResponse:
    raw = payload.get("rect")
    if not isinstance(raw, dict):
        return _error("rect must be an object.", status=400)
    remeasure = session.registry.apply_resize(instance_id, rect_from_json({**raw, "i": instance_id}))
    return _ok(session, remeasureAfter=remeasure.delay_seconds if remeasure is not None else None)


@require_POST
@workspace_api
async def render_widget_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], instance_id: str
) -> JsonResponse:
    """Theme a widget's option document for the renderer."""

    options = payload.get("options")
    if not isinstance(options, dict):
        return _error("options must be an object.", status=400)
    rendered = await session.render_widget(instance_id, options)
    if rendered is None:
        return _error("Widget instance not found.", status=404)
    return JsonResponse({"ok": True, **rendered})


# Folders


@require_POST
@workspace_api
async def create_folder_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    folder = await session.add_folder(str(payload.get("name") or ""), payload.get("color"))
    return _ok(session, folderId=folder.id)


@require_POST
@workspace_api
async def update_folder_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], folder_id: str
) -> JsonResponse:
    await session.update_folder(folder_id, str(payload.get("name") or ""), payload.get("color"))
    return _ok(session)


@require_POST
@workspace_api
async def delete_folder_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], folder_id: str
) -> JsonResponse:
    await session.delete_folder(folder_id)
    return _ok(session)


# Dashboards


@require_POST
@workspace_api
async def save_dashboard_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    """Overwrite the active dashboard; a no-op when none is active."""

    saved = await session.save_overwrite()
    return _ok(session, saved=saved is not None)


@require_POST
@workspace_api
async def save_dashboard_as_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any]
) -> JsonResponse:
    record = await session.save_as_new(_optional_id(payload.get("folderId")), str(payload.get("name") or ""))
    return _ok(session, dashboardId=record.id)


@require_POST
@workspace_api
async def load_dashboard_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], dashboard_id: str
) -> JsonResponse:
    session.load_dashboard(dashboard_id)
    return _ok(session)


@require_POST
@workspace_api
async def new_dashboard_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    session.new_dashboard()
    return _ok(session)


@require_POST
@workspace_api
async def rename_dashboard_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], dashboard_id: str
) -> JsonResponse:
    await session.rename_dashboard(dashboard_id, str(payload.get("name") or ""))
    return _ok(session)


@require_POST
@workspace_api
async def move_dashboard_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], dashboard_id: str
) -> JsonResponse:
    await session.move_dashboard(dashboard_id, _optional_id(payload.get("folderId")))
    return _ok(session)


@require_POST
@workspace_api
async def delete_dashboard_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], dashboard_id: str
) -> JsonResponse:
    await session.delete_dashboard(dashboard_id)
    return _ok(session)


@require_GET
@workspace_api
async def open_dashboard_window_api(
    request: HttpRequest, session: DashboardSession, payload: dict[str, Any], dashboard_id: str
) -> JsonResponse:
    """Return the external URL a dashboard opens in a new window, if any."""

    return JsonResponse({"ok": True, "url": session.open_in_new_window_url(dashboard_id)})


# Theme


@require_POST
@workspace_api
async def theme_api(request: HttpRequest, session: DashboardSession, payload: dict[str, Any]) -> JsonResponse:
    """Set the theme from `{"theme": ...}`, or toggle it when omitted."""

    theme = payload.get("theme")
    if theme is None:
        session.toggle_theme()
    else:
        session.set_theme(str(theme))
    return _ok(session)
