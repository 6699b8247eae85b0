"""Whitespace normalisation for built collections."""

from __future__ import annotations

from typing import List, Optional

from ..models import Collection
from ..pipeline import TransformStage


class WhitespaceStage(TransformStage):
    """Normalises line endings, trailing spaces and runs of blank lines.

    Options:

    - ``max_blank_lines``: blank lines kept in a row (default 1).
    """

    name = "whitespace"
    description = "Normalise line endings and strip trailing or repeated blank lines."

    def __call__(self, collection: Collection) -> Optional[Collection]:
        max_blank = int(self.options.get("max_blank_lines", 1))
        normalized = collection.content.replace("\r\n", "\n").replace("\r", "\n")

        cleaned: List[str] = []
        blank_run = 0
        for line in normalized.split("\n"):
            stripped = line.rstrip()
            if not stripped:
                blank_run += 1
                if blank_run > max_blank:
                    continue
            else:
                blank_run = 0
            cleaned.append(stripped)

        while cleaned and cleaned[-1] == "":
            cleaned.pop()

        content = "\n".join(cleaned) + "\n" if cleaned else ""
        if content == collection.content:
            return None
        return collection.evolve(content=content)
