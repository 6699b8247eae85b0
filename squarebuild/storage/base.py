"""Base class for storage collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Mapping

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..engine import Engine
    from ..models import Collection


class Storage(ABC):
    """Persists finalised collections.

    ``store`` completes once the collection is persisted and raises on
    failure. The writer runs every registered storage concurrently.
    """

    name: str = ""
    description: str = ""

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.options: Dict[str, Any] = dict(options or {})

    @abstractmethod
    async def store(self, engine: "Engine", collection: "Collection") -> None:
        """Persist ``collection``."""
