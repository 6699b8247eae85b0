"""Local file system storage."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from .base import Storage

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..engine import Engine
    from ..models import Collection


class DiskStorage(Storage):
    """Writes the collection to ``collection.file``, creating parent folders."""

    name = "disk"
    description = "Write build output to the local file system."

    async def store(self, engine: "Engine", collection: "Collection") -> None:
        if not collection.file:
            raise ValueError("collection has no output file")
        await asyncio.to_thread(self._write, Path(collection.file), collection.content)

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
