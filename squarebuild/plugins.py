"""Explicit name to factory registries for transform stages and storages."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Mapping, TypeVar

from .errors import SquareError

T = TypeVar("T")
Factory = Callable[[Dict[str, Any]], T]


@dataclass(frozen=True)
class PluginInfo:
    """Describes a registered plugin for listings."""

    name: str
    description: str


class Registry(Generic[T]):
    """Maps plugin names to factories that accept an options mapping.

    Nothing is discovered implicitly: the host registers factories, or calls
    :meth:`load_entry_points` to pull in the ones installed packages declare.
    """

    def __init__(self, kind: str, factories: Mapping[str, Factory[T]] | None = None) -> None:
        self.kind = kind
        self._factories: Dict[str, Factory[T]] = {}
        for name, factory in (factories or {}).items():
            self.register(name, factory)

    def register(self, name: str, factory: Factory[T]) -> None:
        if not callable(factory):
            raise TypeError(f"The {self.kind} factory for '{name}' is not callable")
        self._factories[name.lower()] = factory

    def create(self, name: str, options: Mapping[str, Any] | None = None) -> T:
        factory = self._factories.get(name.lower())
        if factory is None:
            available = ", ".join(sorted(self._factories)) or "none"
            raise SquareError(
                f"Unable to load the {self.kind} {name}, it is not registered (available: {available})"
            )
        return factory(dict(options or {}))

    def describe(self) -> List[PluginInfo]:
        return [
            PluginInfo(name=name, description=str(getattr(factory, "description", "") or ""))
            for name, factory in sorted(self._factories.items())
        ]

    def load_entry_points(self, group: str) -> "Registry[T]":
        for entry in _iter_entry_points(group):
            if entry.name.lower() in self._factories:
                continue
            try:
                loaded = entry.load()
            except Exception as exc:  # pragma: no cover - depends on installed packages
                raise SquareError(f"Failed to load {self.kind} entry point '{entry.name}': {exc}") from exc
            self.register(entry.name, loaded)
        return self

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)


def _iter_entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=group)


__all__ = ["Factory", "PluginInfo", "Registry"]
