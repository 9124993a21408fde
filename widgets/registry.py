"""Widget instance registry for the active dashboard.

The registry owns the ordered instances of the dashboard that is currently
open. Insertion order is render order. All mutations are synchronous and are
visible to the next layout projection.

Updates that reference an instance id that no longer exists are treated as a
benign race (the instance was removed between opening a menu and dispatching
the action) and are ignored.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace
from typing import Any

from . import grid
from .catalog import DEFAULT_CATALOG, CatalogLookup
from .instances import (
    EMBED_TYPE_ID,
    STYLED_EMBED_TYPE_ID,
    EmbedSave,
    GridRect,
    SeriesEntry,
    StyleConfig,
    WidgetInstance,
)

logger = logging.getLogger(__name__)


class UnknownWidgetTypeError(ValueError):
    """Raised when a widget type id has no catalog entry."""


def _now_ms() -> int:
    return int(time.time() * 1000)


class WidgetRegistry:
    """Ordered collection of widget instances with identity guarantees."""

    def __init__(
        self,
        instances: Iterable[WidgetInstance] = (),
        *,
        lookup: CatalogLookup | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize a registry.

        Args:
            instances: Initial instances, in render order.
            lookup: Catalog lookup `(type_id) -> CatalogEntry | None`.
            clock: Millisecond clock used to mint instance ids.
        """

        self._instances: tuple[WidgetInstance, ...] = tuple(instances)
        self._lookup = lookup or DEFAULT_CATALOG.lookup()
        self._clock = clock

    @property
    def instances(self) -> tuple[WidgetInstance, ...]:
        """Return the instances in render order."""

        return self._instances

    def __iter__(self) -> Iterator[WidgetInstance]:
        return iter(self._instances)

    def __len__(self) -> int:
        return len(self._instances)

    def get(self, instance_id: str) -> WidgetInstance | None:
        """Return an instance by id, or None when missing."""

        for instance in self._instances:
            if instance.instance_id == instance_id:
                return instance
        return None

    def layouts(self) -> grid.LayoutSet:
        """Return the renderer layout set for the current instances."""

        return grid.project(self._instances)

    def replace_all(self, instances: Iterable[WidgetInstance]) -> None:
        """Swap in a whole new set of instances (dashboard switch)."""

        self._instances = tuple(instances)

    def add_instance(self, type_id: str, default_layout_override: dict[str, Any] | None = None) -> WidgetInstance:
        """Place a new instance of a catalog widget.

        Args:
            type_id: Catalog id of the widget kind.
            default_layout_override: Optional `x/y/w/h` values merged over the
                placement policy and the catalog default size.

        Returns:
            The newly appended instance.

        Raises:
            UnknownWidgetTypeError: When `type_id` is not in the catalog.
            ValueError: When the override holds a non-numeric or non-finite value.
        """

        entry = self._lookup(type_id)
        if entry is None:
            raise UnknownWidgetTypeError(f"Unknown widget type: {type_id!r}")

        step = grid.EMBED_STEP if entry.is_embed else grid.CATALOG_STEP
        x, y = grid.next_position(len(self._instances), step=step)
        values: dict[str, Any] = {"x": x, "y": y, "w": entry.default_layout.w, "h": entry.default_layout.h}
        for key in ("x", "y", "w", "h"):
            if default_layout_override and key in default_layout_override:
                values[key] = default_layout_override[key]

        instance_id = self._allocate_instance_id(type_id)
        instance = WidgetInstance(
            instance_id=instance_id,
            type_id=type_id,
            layout=grid.rect_from_json({**values, "i": instance_id}),
        )
        self._instances = (*self._instances, instance)
        return instance

    def remove_instance(self, instance_id: str) -> None:
        """Remove an instance; missing ids are ignored."""

        self._instances = tuple(i for i in self._instances if i.instance_id != instance_id)

    def update_style(self, instance_id: str, partial: StyleConfig | dict[str, Any]) -> None:
        """Shallow-merge style values into an instance's style config."""

        instance = self.get(instance_id)
        if instance is None:
            logger.warning("Ignoring style update for unknown widget instance %s", instance_id)
            return
        merged = {**(instance.style_config or {}), **partial}
        self._replace(replace(instance, style_config=merged))

    def update_series_color(self, instance_id: str, series_name: str, color: str) -> None:
        """Override one series color and keep the cached series list consistent."""

        instance = self.get(instance_id)
        if instance is None:
            logger.warning("Ignoring color update for unknown widget instance %s", instance_id)
            return
        color_config = {**(instance.color_config or {}), series_name: color}
        series = instance.series
        if series is not None:
            series = tuple(replace(s, color=color) if s.name == series_name else s for s in series)
        self._replace(replace(instance, color_config=color_config, series=series))

    def record_discovered_series(self, instance_id: str, series: Iterable[SeriesEntry]) -> None:
        """Populate an instance's series list once; later calls are ignored."""

        instance = self.get(instance_id)
        if instance is None or instance.series is not None:
            return
        self._replace(replace(instance, series=tuple(series)))

    def color_editor_series(self, instance_id: str) -> tuple[SeriesEntry, ...]:
        """Return the cached series with active color overrides applied."""

        instance = self.get(instance_id)
        if instance is None or instance.series is None:
            return ()
        overrides = instance.color_config or {}
        return tuple(
            replace(s, color=overrides[s.name]) if overrides.get(s.name) else s for s in instance.series
        )

    def apply_layout_change(self, rects: Iterable[GridRect]) -> None:
        """Store a renderer-reported layout change."""

        self._instances = grid.apply_external_layout_change(self._instances, rects)

    def apply_resize(self, instance_id: str, rect: GridRect) -> grid.ViewportRemeasure | None:
        """Store a resize and return the pending viewport re-measure, if any."""

        result = grid.apply_resize(self._instances, instance_id, rect)
        self._instances = result.instances
        return result.remeasure

    def save_embed(self, data: EmbedSave, instance_id: str | None = None) -> WidgetInstance | None:
        """Create or update an embed-class instance from the embed editor.

        Args:
            data: Embed editor payload.
            instance_id: Existing instance to update; None creates a new one.

        Returns:
            The created or updated instance, or None when `instance_id` does
            not resolve.
        """

        if data.kind == "styled":
            type_id = STYLED_EMBED_TYPE_ID
            payload: dict[str, Any] = {
                "widget_oid": data.widget_oid,
                "dashboard_oid": data.dashboard_oid,
                "style_config": data.style_config,
            }
        else:
            type_id = EMBED_TYPE_ID
            payload = {
                "embed_code": data.embed_code if data.kind in ("sdk", "html") else None,
                "style_config": None,
                "widget_oid": None,
                "dashboard_oid": None,
            }

        if instance_id is not None:
            instance = self.get(instance_id)
            if instance is None:
                logger.warning("Ignoring embed update for unknown widget instance %s", instance_id)
                return None
            updated = replace(instance, **payload)
            self._replace(updated)
            return updated

        x, y = grid.next_position(len(self._instances), step=grid.EMBED_STEP)
        w, h = grid.EMBED_DEFAULT_SIZE
        new_id = self._allocate_instance_id(type_id)
        created = WidgetInstance(
            instance_id=new_id,
            type_id=type_id,
            layout=GridRect(i=new_id, x=x, y=y, w=w, h=h),
            **payload,
        )
        self._instances = (*self._instances, created)
        return created

    def _replace(self, updated: WidgetInstance) -> None:
        """Swap an instance in place, keeping its position in render order."""

        self._instances = tuple(
            updated if instance.instance_id == updated.instance_id else instance for instance in self._instances
        )

    def _allocate_instance_id(self, type_id: str) -> str:
        """Mint `<type_id>-<ms>`, bumping the timestamp until it is unused."""

        taken = {instance.instance_id for instance in self._instances}
        stamp = self._clock()
        candidate = f"{type_id}-{stamp}"
        while candidate in taken:
            stamp += 1
            candidate = f"{type_id}-{stamp}"
        return candidate
