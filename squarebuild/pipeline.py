"""Sequential transform pipeline applied to each built collection."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .directives import is_script, terminate
from .errors import PipelineError
from .logging import get_logger
from .models import Collection

StageResult = Optional[Collection]
Stage = Callable[[Collection], Union[StageResult, Awaitable[StageResult]]]


class TransformStage(ABC):
    """Base class for configurable transform stages.

    A stage returns a replacement collection, or ``None`` to leave the
    collection untouched. Raising aborts the remaining stages.
    """

    name: str = ""
    description: str = ""

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.options: Dict[str, Any] = dict(options or {})

    @abstractmethod
    def __call__(self, collection: Collection) -> Union[StageResult, Awaitable[StageResult]]:
        """Transform ``collection``."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.options == other.options  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self.options))))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"


def stage_name(stage: Stage) -> str:
    name = getattr(stage, "name", None) or getattr(stage, "__name__", None)
    return str(name or type(stage).__name__)


class TransformPipeline:
    """Runs stages strictly one after another over a collection."""

    def __init__(self, stages: Iterable[Stage] = ()) -> None:
        self.stages: List[Stage] = list(stages)
        self.logger = get_logger("pipeline")

    async def run(self, collection: Collection) -> Collection:
        # Stages such as minifiers may drop the final terminator of a script.
        if is_script(collection.extension):
            collection = collection.evolve(content=terminate(collection.content))

        backup = working = collection
        for stage in self.stages:
            name = stage_name(stage)
            self.logger.debug("Running stage %s on %s", name, working.extension)
            try:
                result = stage(working)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                raise PipelineError(
                    f"Transform stage {name} failed: {exc}", collection=working, stage=name
                ) from exc

            if result is None:
                working = backup
                continue
            if not isinstance(result, Collection):
                raise PipelineError(
                    f"Transform stage {name} returned {type(result).__name__}, expected a Collection",
                    collection=working,
                    stage=name,
                )
            backup = working = result

        return working


__all__ = ["Stage", "StageResult", "TransformPipeline", "TransformStage", "stage_name"]
