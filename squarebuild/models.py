"""Core data models shared across squarebuild components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .compilers.base import Compiler


@dataclass(frozen=True)
class Meta:
    """Derived information about a bundle's source file."""

    content: str
    extension: str
    output: str
    compiler: Optional["Compiler"]
    key: str
    location: str
    directory: str
    filename: str


@dataclass(frozen=True)
class Bundle:
    """A single declared source entry plus its derived build metadata."""

    key: str
    weight: int
    meta: Meta
    dependencies: Tuple[str, ...] = ()
    description: str = ""
    output_override: Optional[str] = None


@dataclass
class Configuration:
    """Global manifest settings, merged over the engine defaults."""

    dist: Dict[str, str] = field(default_factory=dict)
    license: Optional[str] = None
    imports: List[str] = field(default_factory=list)
    tags: Dict[str, Any] = field(default_factory=dict)
    plugins: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    noupdate: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DependencyTree:
    """Weight ordered bundles plus the indexes derived from them."""

    tree: List[Bundle] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    extensions: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class Package:
    """A parsed manifest: configuration, bundles and their build order."""

    configuration: Configuration
    bundles: Dict[str, Bundle]
    meta: DependencyTree
    path: Path
    location: Optional[Path] = None
    source: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Collection:
    """In-flight content for one output extension."""

    content: str
    extension: str
    platform: str = "web"
    distribution: str = "min"
    file: Optional[str] = None
    basename: Optional[str] = None

    def evolve(self, **changes: Any) -> "Collection":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "Bundle",
    "Collection",
    "Configuration",
    "DependencyTree",
    "Meta",
    "Package",
]
