"""Error taxonomy shared by every build stage."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .models import Collection


class SquareError(RuntimeError):
    """Base class for failures raised by the build engine."""


class ManifestError(SquareError):
    """Raised when a manifest or a file it references cannot be used."""


class ConfigError(SquareError):
    """Raised when the engine options file cannot be parsed."""


class DirectiveError(SquareError):
    """Raised when an include directive points at a missing file."""


class CycleError(DirectiveError):
    """Raised when include directives revisit a file already being inlined."""

    def __init__(self, message: str, chain: Sequence[str]) -> None:
        super().__init__(message)
        self.chain = list(chain)


class CompileError(SquareError):
    """Raised when a compiler collaborator fails for a bundle."""

    def __init__(self, message: str, location: str) -> None:
        super().__init__(message)
        self.location = location


class PipelineError(SquareError):
    """Raised when a transform stage fails.

    ``collection`` holds the last value successfully produced before the
    failing stage ran, so callers can inspect partial progress.
    """

    def __init__(
        self, message: str, collection: "Collection", stage: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.collection = collection
        self.stage = stage


class WriteError(SquareError):
    """Raised when one or more storages failed to persist a collection."""

    def __init__(self, message: str, failures: Sequence[Tuple[str, BaseException]]) -> None:
        super().__init__(message)
        self.failures: List[Tuple[str, BaseException]] = list(failures)


__all__ = [
    "CompileError",
    "ConfigError",
    "CycleError",
    "DirectiveError",
    "ManifestError",
    "PipelineError",
    "SquareError",
    "WriteError",
]
