"""Manifest loading (square.json / square.yml) into a normalized Package."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

import yaml

from .compilers import CompilerRegistry
from .errors import ManifestError
from .logging import get_logger
from .models import Configuration, Package
from .tree import BundleSpec, build_tree, resolve_path

DISTRIBUTIONS: Tuple[str, ...] = ("min", "dev")

DEFAULT_CONFIGURATION: Dict[str, Any] = {
    "dist": "bundle.{type}.{ext}",
    "tags": {},
    "plugins": {},
    "noupdate": False,
}

_KNOWN_CONFIGURATION_KEYS = {"dist", "license", "import", "tags", "plugins", "noupdate"}
_YAML_SUFFIXES = {".yml", ".yaml"}
_GENERATED_DESCRIPTION = "This file description has been generated by [square]"


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments that sit outside string literals."""
    result: List[str] = []
    index = 0
    length = len(text)
    in_string = False

    while index < length:
        char = text[index]
        if in_string:
            result.append(char)
            if char == "\\" and index + 1 < length:
                result.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue

        if char == '"':
            in_string = True
            result.append(char)
            index += 1
            continue

        if text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
            continue

        if text.startswith("/*", index):
            closing = text.find("*/", index + 2)
            index = length if closing == -1 else closing + 2
            continue

        result.append(char)
        index += 1

    return "".join(result)


class ManifestParser:
    """Parses manifests from disk or from in-memory mappings.

    Imported manifests are collected in the same pass; their bundle entries
    are merged into the importing manifest's bundle map, later entries
    replacing earlier ones with the same key.
    """

    def __init__(
        self,
        *,
        compilers: CompilerRegistry | None = None,
        distributions: Sequence[str] = DISTRIBUTIONS,
        cwd: Path | None = None,
        home: str | None = None,
    ) -> None:
        self.compilers = compilers or CompilerRegistry()
        self.distributions = tuple(distributions)
        self._cwd = cwd
        self._home = home
        self.logger = get_logger("manifest")

    def parse(self, source: str | Path | Mapping[str, Any]) -> Package:
        structure, root, location, text = self.read(source)
        configuration, specs = self._collect(structure, root, frozenset(_seen_key(location)))
        bundles, meta = build_tree(list(specs.values()), self.compilers)

        extra = {
            key: value
            for key, value in structure.items()
            if key not in {"configuration", "bundle", "path", "location", "source"}
        }
        self.logger.debug("Parsed manifest %s with %d bundles", location or root, len(bundles))
        return Package(
            configuration=configuration,
            bundles=bundles,
            meta=meta,
            path=root,
            location=location,
            source=text,
            extra=extra,
        )

    def read(
        self, source: str | Path | Mapping[str, Any]
    ) -> Tuple[Dict[str, Any], Path, Optional[Path], str]:
        """Load the raw manifest structure without normalizing it."""
        if isinstance(source, Mapping):
            structure = copy.deepcopy(dict(source))
            base = structure.get("path")
            root = self._expand(base).resolve() if base else self._default_root()
            return structure, root, None, json.dumps(source, default=str)

        if not isinstance(source, (str, Path)):
            raise ManifestError(f"Unsupported manifest source: {type(source).__name__}")

        path = self._expand(source)
        if not path.exists() and Path(f"{path}.json").exists():
            path = Path(f"{path}.json")
        if not path.is_file():
            raise ManifestError(f"Failed to parse bundle, {path} does not exist")

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(f"Failed to read manifest {path}: {exc}") from exc

        structure = _load_structure(text, path)
        base = structure.get("path")
        root = self._expand(base) if base else path.parent
        if not root.is_absolute():
            root = path.parent / root
        return structure, root.resolve(), path.resolve(), text

    # ------------------------------------------------------------------
    # Internal helpers

    def _default_root(self) -> Path:
        if self._cwd is None:
            raise ManifestError("An in-memory manifest needs a `path` entry or a working directory")
        return Path(self._cwd).resolve()

    def _expand(self, value: str | Path) -> Path:
        """Replace a leading `~` with the configured home directory."""
        text = str(value)
        if text != "~" and not text.startswith(("~/", "~\\")):
            return Path(text)
        if not self._home:
            raise ManifestError(f"Cannot expand {text}, no home directory is configured")
        return Path(self._home) / text[2:]

    def _collect(
        self,
        structure: Dict[str, Any],
        root: Path,
        seen: FrozenSet[str],
    ) -> Tuple[Configuration, Dict[str, BundleSpec]]:
        raw_configuration = structure.get("configuration") or {}
        if not isinstance(raw_configuration, dict):
            raise ManifestError("The `configuration` section must be an object")

        merged = copy.deepcopy(DEFAULT_CONFIGURATION)
        merged.update(raw_configuration)

        specs = self._bundle_specs(structure.get("bundle"), root)

        imports = _as_str_list(merged.get("import"), "import")
        for entry in imports:
            specs.update(self._import(entry, root, seen))

        configuration = Configuration(
            dist=self._normalize_dist(merged.get("dist")),
            license=self._load_license(merged.get("license"), root) if "license" in merged else None,
            imports=imports,
            tags=_as_mapping(merged.get("tags"), "tags"),
            plugins={
                str(name): dict(options or {})
                for name, options in _as_mapping(merged.get("plugins"), "plugins").items()
            },
            noupdate=bool(merged.get("noupdate")),
            extra={
                key: value
                for key, value in merged.items()
                if key not in _KNOWN_CONFIGURATION_KEYS
            },
        )
        return configuration, specs

    def _import(self, entry: str, root: Path, seen: FrozenSet[str]) -> Dict[str, BundleSpec]:
        target = resolve_path(str(self._expand(entry)), root)
        structure, import_root, location, _ = self.read(target)
        key = _seen_key(location)
        if key and key[0] in seen:
            raise ManifestError(f"Manifest {location} imports itself through {entry}")
        _, specs = self._collect(structure, import_root, seen | frozenset(key))
        return specs

    def _bundle_specs(self, raw: Any, root: Path) -> Dict[str, BundleSpec]:
        if raw is None:
            return {}

        specs: Dict[str, BundleSpec] = {}
        if isinstance(raw, list):
            total = len(raw)
            for index, key in enumerate(raw):
                if not isinstance(key, str) or not key:
                    raise ManifestError(f"Invalid bundle entry at position {index}: {key!r}")
                specs[key] = BundleSpec(
                    key=key,
                    root=root,
                    weight=total - index,
                    description=_GENERATED_DESCRIPTION,
                )
            return specs

        if not isinstance(raw, dict):
            raise ManifestError("The `bundle` section must be an object or a list of files")

        for key, entry in raw.items():
            options = entry if isinstance(entry, dict) else {}
            specs[str(key)] = BundleSpec(
                key=str(key),
                root=root,
                weight=_as_weight(options.get("weight"), str(key)),
                dependencies=options.get("dependencies"),
                description=str(options.get("description") or ""),
                output_override=options.get("as"),
            )
        return specs

    def _normalize_dist(self, dist: Any) -> Dict[str, str]:
        if isinstance(dist, str):
            return {kind: dist for kind in self.distributions}
        if isinstance(dist, dict):
            return {str(kind): str(template) for kind, template in dist.items()}
        raise ManifestError("The `dist` setting must be a path template or an object of templates")

    def _load_license(self, license_path: Any, root: Path) -> Optional[str]:
        if not isinstance(license_path, str) or not license_path:
            self.logger.warning("Ignoring license setting %r, expected a file path", license_path)
            return None
        location = resolve_path(str(self._expand(license_path)), root)
        if not location.is_file():
            self.logger.warning(
                "A license was added to the configuration but %s does not exist", location
            )
            return None
        try:
            return location.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(f"Failed to read license {location}: {exc}") from exc


def _load_structure(text: str, path: Path) -> Dict[str, Any]:
    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ManifestError(f"Failed to parse {path.name}: {exc}") from exc
    else:
        try:
            loaded = json.loads(strip_json_comments(text)) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise ManifestError(f"Failed to parse JSON in {path.name}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ManifestError(f"{path.name} must contain an object at the root")
    return loaded


def _seen_key(location: Optional[Path]) -> Tuple[str, ...]:
    return (str(location),) if location is not None else ()


def _as_weight(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ManifestError(f"The weight of the {key} bundle must be a number")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ManifestError(f"The weight of the {key} bundle must be a number") from exc


def _as_mapping(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(f"The `{name}` setting must be an object")
    return dict(value)


def _as_str_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ManifestError(f"The `{name}` setting must be a list of paths")


__all__ = [
    "DEFAULT_CONFIGURATION",
    "DISTRIBUTIONS",
    "ManifestParser",
    "strip_json_comments",
]
