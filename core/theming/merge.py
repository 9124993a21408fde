"""Option-document merging.

Rules, applied left to right (rightmost wins):

- mappings are merged key by key, recursively;
- lists (axis arrays, `series`, color palettes) and scalars replace the
  previous value wholesale;
- `None` in a later document means "not set" and leaves the earlier value.

The result never shares mutable structure with any input.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any


def merge_options(*documents: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge option documents into a new dictionary."""

    merged: dict[str, Any] = {}
    for document in documents:
        if document:
            _merge_into(merged, document)
    return merged


def merge_block(target: dict[str, Any], key: str, values: Mapping[str, Any]) -> dict[str, Any]:
    """Merge `values` one level deep into `target[key]`, skipping None values.

    A non-mapping `target[key]` is replaced by a fresh block.

    Returns:
        The updated block (also stored in `target`).
    """

    current = target.get(key)
    block = dict(current) if isinstance(current, Mapping) else {}
    block.update({name: value for name, value in values.items() if value is not None})
    target[key] = block
    return block


def _merge_into(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        if value is None:
            continue
        existing = target.get(key)
        if isinstance(value, Mapping):
            if not isinstance(existing, dict):
                existing = {}
                target[key] = existing
            _merge_into(existing, value)
        else:
            target[key] = copy.deepcopy(value)
