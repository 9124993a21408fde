"""Pytest fixtures shared across unit and Django integration tests."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from itertools import count

import pytest

from widgets.catalog import CatalogEntry, LayoutSize, WidgetCatalog
from widgets.registry import WidgetRegistry


@pytest.fixture
def catalog() -> WidgetCatalog:
    """Return a small catalog with one chart, one KPI and both embed types."""

    return WidgetCatalog(
        [
            CatalogEntry(id="chart-trend", title="Trend", description=None, default_layout=LayoutSize(w=6, h=6)),
            CatalogEntry(id="kpi-total", title="Total", description="Headline", default_layout=LayoutSize(w=3, h=3)),
            CatalogEntry(id="embed", title="Embed", description=None, default_layout=LayoutSize(w=6, h=8)),
            CatalogEntry(id="styled-embed", title="Styled", description=None, default_layout=LayoutSize(w=6, h=8)),
        ]
    )


@pytest.fixture
def clock() -> Iterator[int]:
    """Return a deterministic millisecond clock starting at 1_000."""

    return count(1_000)


@pytest.fixture
def registry(catalog: WidgetCatalog, clock: Iterator[int]) -> WidgetRegistry:
    """Return an empty registry wired to the test catalog and clock."""

    return WidgetRegistry(lookup=catalog.lookup(), clock=lambda: next(clock))


@pytest.fixture
def visualization_settings(settings):
    """Configure the visualization backend and the session-backed store."""

    settings.VISUALIZATION_URL = "https://viz.example.test"
    settings.VISUALIZATION_TOKEN = "token"
    settings.DASHBOARD_STORE = "local"
    return settings


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    The suite is runnable by intent:
    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, views, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
