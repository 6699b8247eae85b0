"""Output path resolution, license headers and storage fan-out."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .comments import comment_wrap
from .errors import WriteError
from .logging import get_logger
from .models import Collection, Configuration, Package
from .storage import Storage
from .tags import TagGenerator, template
from .tree import resolve_path

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .engine import Engine

NON_PERSISTING_ENV = "testing"


class Writer:
    """Turns a transformed collection into a named, persisted artifact."""

    def __init__(
        self,
        tagger: TagGenerator,
        *,
        home: Optional[str] = None,
        env: str = "development",
        writable: bool = True,
        stdout: bool = False,
    ) -> None:
        self.tagger = tagger
        self.home = home
        self.env = env
        self.writable = writable
        self.stdout = stdout
        self.logger = get_logger("writer")

    def output_path(self, package: Package, collection: Collection) -> Tuple[str, str]:
        """Return ``(file, basename)`` for the collection's distribution."""
        configuration = package.configuration
        pattern = configuration.dist.get(collection.distribution)
        if pattern is None:
            raise WriteError(
                f"No dist template configured for the {collection.distribution} distribution",
                failures=[],
            )
        if pattern.startswith("~"):
            if not self.home:
                raise WriteError(
                    f"Cannot expand {pattern}, no home directory is configured",
                    failures=[],
                )
            pattern = self.home + pattern[1:]

        data = self.tagger.tag(collection, configuration)
        file = template(pattern, data)
        basename = Path(file).name
        return str(resolve_path(file, package.path)), basename

    def license(self, configuration: Configuration, collection: Collection) -> str:
        """Prefix the configured license header to non-empty content."""
        if not configuration.license:
            return collection.content or ""
        if not collection.content:
            return ""
        header = template(configuration.license, self.tagger.tag(collection, configuration))
        return comment_wrap(header, collection.extension).lstrip("\n") + collection.content

    async def write(
        self,
        engine: "Engine",
        package: Package,
        collection: Collection,
        storages: Sequence[Storage],
    ) -> Collection:
        file, basename = self.output_path(package, collection)
        collection = collection.evolve(file=file, basename=basename)
        collection = collection.evolve(content=self.license(package.configuration, collection))

        if self.stdout:
            return collection
        if not collection.content:
            self.logger.debug("Nothing to write for %s", basename)
            return collection
        if self.env == NON_PERSISTING_ENV:
            self.logger.info("Not actually writing %s, running in the %s env", file, self.env)
            return collection
        if not self.writable:
            self.logger.info("Not writing %s, output is not writable", file)
            return collection

        await self._store(engine, collection, storages)
        return collection

    async def _store(
        self, engine: "Engine", collection: Collection, storages: Sequence[Storage]
    ) -> None:
        results: List[Any] = await asyncio.gather(
            *(storage.store(engine, collection) for storage in storages),
            return_exceptions=True,
        )
        failures = [
            (_storage_name(storage), result)
            for storage, result in zip(storages, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            details = "; ".join(f"{name}: {error}" for name, error in failures)
            raise WriteError(f"Failed to store {collection.basename}: {details}", failures)


def _storage_name(storage: Storage) -> str:
    return str(getattr(storage, "name", "") or type(storage).__name__)


__all__ = ["NON_PERSISTING_ENV", "Writer"]
