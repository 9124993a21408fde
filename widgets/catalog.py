"""Widget catalog used when placing new widget instances.

The catalog is a read-only description of which widget kinds exist and how
large a fresh instance should be. It is injected into `WidgetRegistry` as a
plain lookup callable so the registry never reaches for global state.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml

from .instances import EMBED_TYPE_IDS

DEFAULT_CATALOG_PATH: Final[Path] = Path(__file__).resolve().parent / "catalog.yaml"


@dataclass(frozen=True, slots=True)
class LayoutSize:
    """Default grid size of a widget kind, in columns and rows."""

    w: int
    h: int


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Describe a placeable widget kind.

    Args:
        id: Stable widget type id referenced by instances.
        title: Human-friendly name shown in the widget library.
        description: Optional longer description for the library card.
        default_layout: Size used when a new instance is placed.
    """

    id: str
    title: str
    description: str | None
    default_layout: LayoutSize

    @property
    def is_embed(self) -> bool:
        """Return True for embed-class kinds (placed at half width)."""

        return self.id in EMBED_TYPE_IDS


CatalogLookup = Callable[[str], CatalogEntry | None]


class WidgetCatalog:
    """Lookup helpers for catalog entries."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        """Initialize a catalog from a collection of entries."""

        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.id in self._entries:
                raise ValueError(f"Duplicate CatalogEntry id: {entry.id!r}")
            if entry.default_layout.w <= 0 or entry.default_layout.h <= 0:
                raise ValueError(f"CatalogEntry[{entry.id!r}] must have a positive default size.")
            self._entries[entry.id] = entry

    def get(self, type_id: str) -> CatalogEntry | None:
        """Return an entry for a widget type id, or None when missing."""

        return self._entries.get(type_id)

    def list(self) -> tuple[CatalogEntry, ...]:
        """Return all entries in declaration order."""

        return tuple(self._entries.values())

    def lookup(self) -> CatalogLookup:
        """Return the bound lookup callable injected into registries."""

        return self.get


def load_catalog(path: Path | str = DEFAULT_CATALOG_PATH) -> WidgetCatalog:
    """Load a catalog from a YAML document.

    Args:
        path: Path to a YAML file with a top-level `widgets` list.

    Returns:
        WidgetCatalog containing every declared entry.

    Raises:
        ValueError: When an entry is missing required fields.
    """

    raw = Path(path).read_text(encoding="utf-8")
    payload = yaml.safe_load(raw) or {}
    return WidgetCatalog(_parse_entry(item) for item in payload.get("widgets") or ())


def _parse_entry(item: dict[str, Any]) -> CatalogEntry:
    """Build a CatalogEntry from one YAML mapping."""

    try:
        layout = item["defaultLayout"]
        return CatalogEntry(
            id=str(item["id"]),
            title=str(item["title"]),
            description=item.get("description"),
            default_layout=LayoutSize(w=int(layout["w"]), h=int(layout["h"])),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Invalid catalog entry: {item!r}") from exc


DEFAULT_CATALOG: Final[WidgetCatalog] = load_catalog()
