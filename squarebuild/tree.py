"""Dependency tree construction for parsed bundles."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .compilers import CompilerRegistry
from .errors import ManifestError
from .logging import get_logger
from .models import Bundle, DependencyTree, Meta

logger = get_logger("tree")


@dataclass(frozen=True)
class BundleSpec:
    """A bundle entry as declared in a manifest, before validation."""

    key: str
    root: Path
    weight: Optional[int] = None
    dependencies: Any = None
    description: str = ""
    output_override: Optional[str] = None


def resolve_path(path: str, root: Path) -> Path:
    """Resolve ``path`` against ``root`` unless it is already absolute."""
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate.resolve()


def create_meta(
    key: str,
    root: Path,
    compilers: CompilerRegistry,
    output_override: Optional[str] = None,
) -> Meta:
    location = resolve_path(key, root)
    extension = Path(key).suffix[1:]
    compiler = compilers.get(extension) if extension else None
    output = compiler.output_for(extension, output_override) if compiler else extension
    content = _read_source(location, key)

    return Meta(
        content=content,
        extension=extension,
        output=output,
        compiler=compiler,
        key=key,
        location=str(location),
        directory=str(location.parent),
        filename=Path(key).name,
    )


def refresh_meta(bundle: Bundle) -> Bundle:
    """Return a copy of ``bundle`` with its content re-read from disk."""
    location = Path(bundle.meta.location)
    content = _read_source(location, bundle.key)
    return replace(bundle, meta=replace(bundle.meta, content=content))


def build_tree(
    specs: Sequence[BundleSpec], compilers: CompilerRegistry
) -> Tuple[Dict[str, Bundle], DependencyTree]:
    """Validate bundle specs and order them by descending weight.

    Bundles without an explicit weight receive the number of bundles still
    to be processed, which reproduces the declaration order. The sort is
    stable, so equal weights keep their declaration order too.
    """
    bundles: Dict[str, Bundle] = {}
    files: List[str] = []
    dependencies: List[str] = []
    remaining = len(specs)

    for spec in specs:
        meta = create_meta(spec.key, spec.root, compilers, spec.output_override)
        if not Path(meta.location).is_file():
            raise ManifestError(
                f"Bundle {spec.key} was specified, but {meta.location} does not exist"
            )
        files.append(meta.location)

        weight = spec.weight if spec.weight is not None else remaining
        remaining -= 1

        resolved_dependencies = _resolve_dependencies(spec)
        dependencies.extend(resolved_dependencies)

        bundles[spec.key] = Bundle(
            key=spec.key,
            weight=weight,
            meta=meta,
            dependencies=tuple(resolved_dependencies),
            description=spec.description,
            output_override=spec.output_override,
        )

    tree = sorted(bundles.values(), key=lambda bundle: bundle.weight, reverse=True)

    extensions: Dict[str, List[str]] = {}
    for bundle in tree:
        extensions.setdefault(bundle.meta.output, []).append(bundle.key)

    return bundles, DependencyTree(
        tree=tree,
        files=files,
        dependencies=dependencies,
        extensions=extensions,
    )


def _read_source(location: Path, key: str) -> str:
    if not location.is_file():
        return ""
    try:
        return location.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Failed to read {location} for the {key} bundle: {exc}") from exc


def _resolve_dependencies(spec: BundleSpec) -> List[str]:
    if spec.dependencies is None:
        return []
    if not isinstance(spec.dependencies, list):
        logger.error("The `dependencies` prop on the %s bundle should be a list", spec.key)
        return []

    resolved: List[str] = []
    for entry in spec.dependencies:
        if not isinstance(entry, str) or not entry:
            raise ManifestError(f"Invalid dependency {entry!r} in the {spec.key} bundle")
        location = resolve_path(entry, spec.root)
        if not location.is_file():
            raise ManifestError(
                f"The dependency {location} does not exist in the {spec.key} bundle"
            )
        resolved.append(str(location))
    return resolved


__all__ = ["BundleSpec", "build_tree", "create_meta", "refresh_meta", "resolve_path"]
