"""Storage collaborators and their registry."""

from __future__ import annotations

from ..plugins import Registry
from .base import Storage
from .disk import DiskStorage

ENTRY_POINT_GROUP = "squarebuild.storages"

_BUILTIN_FACTORIES = {
    "disk": DiskStorage,
}


def storage_registry(*, entry_points: bool = False) -> Registry[Storage]:
    """Return a registry holding the builtin storages, plus installed ones if asked."""
    registry: Registry[Storage] = Registry("storage", _BUILTIN_FACTORIES)
    if entry_points:
        registry.load_entry_points(ENTRY_POINT_GROUP)
    return registry


__all__ = ["DiskStorage", "ENTRY_POINT_GROUP", "Storage", "storage_registry"]
