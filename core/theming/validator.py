"""Validation for user-authored style config documents.

Style configs arrive from the widget editor as partial documents. Validation is
strict on known keys and tolerant (warnings only) on unknown keys so older
stored documents keep loading.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from widgets.instances import StyleConfig

from .schema import GRIDLINE_STYLES, LEGEND_POSITIONS

_COLOR_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(#[0-9a-fA-F]{3,8}|transparent|rgba?\([^)]*\)|[a-zA-Z]+)$"
)

_COLOR_KEYS: Final[frozenset[str]] = frozenset(
    {
        "axisColor",
        "borderColor",
        "backgroundColor",
        "headerBackgroundColor",
        "headerDividerLineColor",
        "headerTitleTextColor",
    }
)
_BOOL_KEYS: Final[frozenset[str]] = frozenset(
    {"isDonut", "applyGradient", "border", "headerDividerLine", "headerHidden"}
)
_RATIO_KEYS: Final[frozenset[str]] = frozenset({"barOpacity", "pieOpacity"})
_NON_NEGATIVE_KEYS: Final[frozenset[str]] = frozenset({"borderRadius", "barWidth", "lineWidth", "markerRadius"})
_KNOWN_KEYS: Final[frozenset[str]] = frozenset(StyleConfig.__annotations__)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of validating a style config."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def validate_style_config(document: Mapping[str, Any]) -> ValidationResult:
    """Validate a (possibly partial) style config document.

    Args:
        document: Style values keyed by StyleConfig field name.

    Returns:
        ValidationResult containing errors and warnings.
    """

    errors: list[str] = []
    warnings: list[str] = []

    for key, value in document.items():
        if key not in _KNOWN_KEYS:
            warnings.append(f"StyleConfig.{key} is not a recognized field and will be ignored by renderers.")
            continue
        if value is None:
            continue
        if key == "gridLineStyle" and value not in GRIDLINE_STYLES:
            errors.append(f"StyleConfig.gridLineStyle is not a supported value: {value!r}.")
        elif key == "legendPosition" and value not in LEGEND_POSITIONS:
            errors.append(f"StyleConfig.legendPosition is not a supported value: {value!r}.")
        elif key in _COLOR_KEYS:
            if not _is_color(value):
                errors.append(f"StyleConfig.{key} must be a color string, got {value!r}.")
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                errors.append(f"StyleConfig.{key} must be a boolean.")
        elif key in _RATIO_KEYS:
            if not _is_number(value) or not 0 <= value <= 1:
                errors.append(f"StyleConfig.{key} must be a number between 0 and 1.")
        elif key in _NON_NEGATIVE_KEYS:
            if not _is_number(value) or value < 0:
                errors.append(f"StyleConfig.{key} must be a non-negative number.")
        elif key == "donutWidth":
            if not _is_number(value) or not 0 <= value <= 100:
                errors.append("StyleConfig.donutWidth must be a percentage between 0 and 100.")
        elif key == "seriesColors":
            errors.extend(_validate_series_colors(value))

    if document.get("isDonut") and document.get("donutWidth") is None:
        warnings.append("StyleConfig.isDonut is set without donutWidth; the pie renders without a hole.")

    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def _validate_series_colors(value: object) -> list[str]:
    if not isinstance(value, Mapping):
        return ["StyleConfig.seriesColors must map series names to colors."]
    return [
        f"StyleConfig.seriesColors[{name!r}] must be a color string, got {color!r}."
        for name, color in value.items()
        if not _is_color(color)
    ]


def _is_color(value: object) -> bool:
    return isinstance(value, str) and bool(_COLOR_PATTERN.match(value.strip()))


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
