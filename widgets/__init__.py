"""Pure widget composition package for Bento Board.

This package tracks widget instances, their grid layout, and the catalog they
are created from. It must not import Django or perform any I/O beyond reading
the bundled catalog file.
"""

from .registry import WidgetRegistry

__all__ = ["WidgetRegistry"]
