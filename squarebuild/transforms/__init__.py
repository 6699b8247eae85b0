"""Transform stages shipped with squarebuild and their registry."""

from __future__ import annotations

from ..pipeline import Stage
from ..plugins import Registry
from .whitespace import WhitespaceStage

ENTRY_POINT_GROUP = "squarebuild.transforms"

_BUILTIN_FACTORIES = {
    "whitespace": WhitespaceStage,
}


def transform_registry(*, entry_points: bool = False) -> Registry[Stage]:
    """Return a registry holding the builtin stages, plus installed ones if asked."""
    registry: Registry[Stage] = Registry("plugin", _BUILTIN_FACTORIES)
    if entry_points:
        registry.load_entry_points(ENTRY_POINT_GROUP)
    return registry


__all__ = ["ENTRY_POINT_GROUP", "WhitespaceStage", "transform_registry"]
