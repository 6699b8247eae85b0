"""Build orchestration: parse, reduce, transform and write."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from .comments import comment_wrap
from .compilers import CompileDetails, CompilerRegistry
from .config import EngineOptions
from .directives import DirectiveResolver
from .errors import ManifestError, SquareError
from .git import GitMetadata, VCSMetadata
from .logging import get_logger
from .manifest import ManifestParser
from .models import Bundle, Collection, Package
from .pipeline import Stage, TransformPipeline
from .plugins import PluginInfo, Registry
from .reducer import Reducer
from .storage import Storage, storage_registry
from .stores import ExpiringCache
from .tags import TagGenerator, template
from .transforms import transform_registry
from .tree import refresh_meta
from .writer import Writer

T = TypeVar("T")


class Engine:
    """Coordinates a build for one parsed manifest.

    Each engine owns its cache and package, so separate engines never share
    build state. The cache is started when a build begins and stopped when it
    ends, whatever the outcome.
    """

    def __init__(
        self,
        options: EngineOptions | None = None,
        *,
        compilers: CompilerRegistry | None = None,
        transforms: Registry[Stage] | None = None,
        storages: Registry[Storage] | None = None,
        vcs: VCSMetadata | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.options = options or EngineOptions()
        self.logger = get_logger("engine")
        self.compilers = compilers or CompilerRegistry()
        self.transforms = transforms or transform_registry()
        self.storage_registry = storages or storage_registry()
        self.cache = ExpiringCache(self.options.cache_ttl)
        self.vcs = vcs or GitMetadata(self.options.cwd)
        self.tagger = TagGenerator(
            self.cache,
            self.vcs,
            env=self.options.env,
            user=self.options.user,
            host=self.options.host,
            clock=clock,
        )
        self.resolver = DirectiveResolver()
        self.reducer = Reducer(self.resolver)
        self.writer = Writer(
            self.tagger,
            home=self.options.home,
            env=self.options.env,
            writable=self.options.writable,
            stdout=self.options.stdout,
        )
        self.middleware: List[Stage] = []
        self.storages: List[Storage] = []
        self.package: Optional[Package] = None

        for name in self.options.storages:
            self.storage(name)

    @property
    def env(self) -> str:
        return self.options.env

    # ------------------------------------------------------------------
    # Manifest

    def parse(self, source: str | Path | Mapping[str, Any]) -> Package:
        """Parse a manifest and make it the package this engine builds."""
        parser = ManifestParser(
            compilers=self.compilers,
            distributions=self.options.distributions,
            cwd=self.options.cwd,
            home=self.options.home,
        )
        self.package = parser.parse(source)
        return self.package

    # ------------------------------------------------------------------
    # Registration

    def use(self, stage: Stage) -> bool:
        """Append a transform stage; stages run in registration order."""
        if not callable(stage):
            self.logger.error("The supplied transform stage is not callable: %r", stage)
            return False
        if self.has(stage):
            return False
        self.middleware.append(stage)
        return True

    def has(self, stage: Stage) -> bool:
        return any(existing is stage or existing == stage for existing in self.middleware)

    def plugin(self, name: str, options: Mapping[str, Any] | None = None) -> bool:
        """Instantiate a registered stage, with manifest options under ``options``."""
        merged: Dict[str, Any] = {}
        if self.package is not None:
            merged.update(self.package.configuration.plugins.get(name, {}))
        merged.update(options or {})
        stage = self.transforms.create(name, merged)
        return self.use(stage)

    def storage(self, engine: Storage | str) -> bool:
        """Register a storage instance, or a registered storage by name."""
        if isinstance(engine, str):
            try:
                engine = self.storage_registry.create(engine)
            except SquareError as exc:
                self.logger.error("%s", exc)
                return False
        if not isinstance(engine, Storage):
            self.logger.error("The supplied storage is not a Storage instance: %r", engine)
            return False
        self.storages.append(engine)
        return True

    def configure(self, fn: Callable[["Engine"], Any], *envs: str) -> "Engine":
        """Run ``fn`` only when the engine env is one of ``envs`` (or always)."""
        if not envs or self.env in envs:
            fn(self)
        return self

    def plugins(self) -> List[PluginInfo]:
        return self.transforms.describe()

    # ------------------------------------------------------------------
    # Building blocks

    def comment_wrap(self, data: str, extension: str) -> str:
        return comment_wrap(data, extension)

    def tag(self, collection: Optional[Collection] = None) -> Dict[str, Any]:
        configuration = self.package.configuration if self.package is not None else None
        return self.tagger.tag(collection, configuration)

    def template(self, text: str, data: Mapping[str, Any] | None = None) -> str:
        return template(text, self.tag() if data is None else data)

    def license(self, collection: Collection) -> str:
        return self.writer.license(self._require_package().configuration, collection)

    def preprocess(self, bundle: Bundle, details: CompileDetails) -> str:
        return self.reducer.preprocess(bundle, details)

    def reduce(self, platform: str, extensions: Iterable[str]) -> Dict[str, str]:
        return self.reducer.reduce(self._require_package().meta, platform, extensions)

    async def run_pipeline(self, collection: Collection) -> Collection:
        return await TransformPipeline(self.middleware).run(collection)

    async def write(self, collection: Collection) -> Collection:
        return await self.writer.write(self, self._require_package(), collection, self.storages)

    # ------------------------------------------------------------------
    # Builds

    async def abuild(
        self,
        platform: str = "web",
        extensions: Optional[Sequence[str]] = None,
        distribution: str = "min",
    ) -> Dict[str, Collection]:
        """Build every requested output extension and return them by basename."""
        package = self._require_package()
        wanted = list(extensions) if extensions else list(package.meta.extensions)

        self.cache.start()
        try:
            self.logger.debug(
                "Generating a new build, platform: %s, extensions: %s", platform, ", ".join(wanted)
            )
            documents = self.reduce(platform, wanted)
            collections = [
                Collection(
                    content=content,
                    extension=extension,
                    platform=platform,
                    distribution=distribution,
                )
                for extension, content in documents.items()
            ]

            self.logger.debug("Iterating over %d transform stages", len(self.middleware))
            transformed = await _settle(self.run_pipeline(item) for item in collections)

            self.logger.debug("Writing files")
            written = await _settle(self.write(item) for item in transformed)
        finally:
            self.cache.stop()

        files = {item.basename or item.extension: item for item in written}
        self.logger.info("Successfully generated %s", ", ".join(files) or "nothing")
        return files

    def build(
        self,
        platform: str = "web",
        extensions: Optional[Sequence[str]] = None,
        distribution: str = "min",
    ) -> Dict[str, Collection]:
        """Blocking wrapper around :meth:`abuild` for callers without an event loop."""
        return asyncio.run(self.abuild(platform, extensions, distribution))

    def refresh(self, files: Iterable[str | Path]) -> Optional[Dict[str, Collection]]:
        """Reload bundles whose files changed and rebuild their output extensions."""
        package = self._require_package()
        changed = [str(Path(item).resolve()) for item in files]
        if not changed:
            return None

        updated: Dict[str, Bundle] = {}
        for key, bundle in package.bundles.items():
            location = bundle.meta.location
            if not any(item == location or item in location for item in changed):
                continue
            if not Path(location).is_file():
                raise ManifestError(f"Bundle {key} changed but {location} no longer exists")
            updated[key] = refresh_meta(bundle)

        if not updated:
            return None

        bundles = {key: updated.get(key, bundle) for key, bundle in package.bundles.items()}
        tree = [bundles[bundle.key] for bundle in package.meta.tree]
        self.package = replace(package, bundles=bundles, meta=replace(package.meta, tree=tree))

        outputs = sorted({bundle.meta.output for bundle in updated.values()})
        self.logger.info("Rebuilding %s after changes to %s", ", ".join(outputs), ", ".join(updated))
        return self.build(extensions=outputs)

    def _require_package(self) -> Package:
        if self.package is None:
            raise SquareError("Parse a manifest before building")
        return self.package


async def _settle(awaitables: Iterable[Awaitable[T]]) -> List[T]:
    """Await everything, then raise the first failure if there was one."""
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)  # type: ignore[arg-type]


__all__ = ["Engine"]
