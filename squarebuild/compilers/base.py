"""Base classes for compiler collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterator, Mapping, Optional, Sequence

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..models import Bundle


@dataclass(frozen=True)
class CompileDetails:
    """Position of a bundle among the bundles sharing its source extension."""

    index: int
    count: int
    platform: str


class Compiler(ABC):
    """Contract for compilers that turn a source dialect into an output type.

    ``extensions`` lists the output extensions the compiler can produce; the
    first entry is used unless a bundle asks for another one with ``as``.
    """

    extensions: Sequence[str] = ()

    @abstractmethod
    def compile(self, content: str, details: CompileDetails, bundle: "Bundle") -> str:
        """Return the compiled text for ``content``."""

    def output_for(self, source_extension: str, override: Optional[str] = None) -> str:
        if override and override in self.extensions:
            return override
        if self.extensions:
            return self.extensions[0]
        return source_extension


class CompilerRegistry:
    """Maps source extensions to the compiler responsible for them."""

    def __init__(self, compilers: Mapping[str, Compiler] | None = None) -> None:
        self._compilers: Dict[str, Compiler] = {}
        for extension, compiler in (compilers or {}).items():
            self.register(extension, compiler)

    def register(self, extension: str, compiler: Compiler) -> None:
        if not isinstance(compiler, Compiler):
            raise TypeError(f"Compiler for '{extension}' must be a Compiler instance")
        self._compilers[extension.lstrip(".").lower()] = compiler

    def get(self, extension: str) -> Optional[Compiler]:
        return self._compilers.get(extension.lower())

    def __contains__(self, extension: object) -> bool:
        return isinstance(extension, str) and extension.lower() in self._compilers

    def __iter__(self) -> Iterator[str]:
        return iter(self._compilers)
