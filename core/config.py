"""Settings-derived configuration for the dashboard views."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from widgets.catalog import DEFAULT_CATALOG, WidgetCatalog, load_catalog


@dataclass(frozen=True, slots=True)
class VisualizationSettings:
    """Connection details for the external visualization backend."""

    url: str
    token: str


def require_visualization_settings() -> VisualizationSettings:
    """Return the visualization connection settings.

    Raises:
        ImproperlyConfigured: When `VISUALIZATION_URL` or `VISUALIZATION_TOKEN`
            is missing or blank.
    """

    url = (getattr(settings, "VISUALIZATION_URL", "") or "").strip()
    token = (getattr(settings, "VISUALIZATION_TOKEN", "") or "").strip()
    missing = [name for name, value in (("VISUALIZATION_URL", url), ("VISUALIZATION_TOKEN", token)) if not value]
    if missing:
        raise ImproperlyConfigured(f"Missing required settings: {', '.join(missing)}")
    return VisualizationSettings(url=url, token=token)


def widget_catalog() -> WidgetCatalog:
    """Return the catalog named by `WIDGET_CATALOG_PATH`, or the bundled one."""

    path = getattr(settings, "WIDGET_CATALOG_PATH", None)
    if not path:
        return DEFAULT_CATALOG
    return _load_catalog_cached(str(path))


@lru_cache(maxsize=4)
def _load_catalog_cached(path: str) -> WidgetCatalog:
    return load_catalog(path)
