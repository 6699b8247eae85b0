"""Inline ``[square] @require``/``@import``/``@include`` comment directives."""

from __future__ import annotations

import re
from pathlib import Path
from typing import AbstractSet, Callable, List, Optional, Pattern, Tuple

from .comments import comment_wrap
from .errors import CycleError, DirectiveError

SCRIPT_EXTENSIONS = frozenset({"js", "mjs", "cjs"})

DIRECTIVE_PATTERN = re.compile(
    r"(/\*|//)\s*\[square\]\s*@(require|import|include)\s*\"([^\"]+)?\"(.*)",
    re.IGNORECASE,
)

_LINE_SPLIT = re.compile(r"\r\n|\n|\r")
_COMMENT_LINE = re.compile(r"^(//|/\*|\*)")


def is_script(extension: str) -> bool:
    return extension in SCRIPT_EXTENSIONS


def terminate(content: str) -> str:
    """Append a statement terminator unless ``content`` already ends with one."""
    stripped = content.rstrip()
    if not stripped or stripped.endswith(";"):
        return content
    return stripped + ";"


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class DirectiveResolver:
    """Recursively replaces directive comments with the files they point at.

    ``seen`` holds the absolute paths on the active inclusion chain. Each
    recursive call receives its own extended copy, so two siblings may include
    the same file while a file including one of its ancestors is a cycle.
    """

    def __init__(
        self,
        pattern: Pattern[str] = DIRECTIVE_PATTERN,
        reader: Callable[[Path], str] | None = None,
    ) -> None:
        self._pattern = pattern
        self._read = reader or read_text

    def resolve(
        self,
        text: str,
        extension: str,
        reference: Path | str,
        seen: AbstractSet[str] = frozenset(),
    ) -> str:
        reference_dir = Path(reference)
        assembled: List[str] = []

        for line in _LINE_SPLIT.split(text):
            match = self._pattern.search(line)
            if match is None:
                assembled.append(line)
                continue

            inlined = self._inline(match, extension, reference_dir, seen)
            content = line[: match.start()] + inlined

            if is_script(extension) and content and not content.startswith(";"):
                previous = _previous_statement(assembled)
                if previous is not None and not previous[2].endswith(";"):
                    index, offset, _ = previous
                    assembled[index] = _terminate_line(assembled[index], offset)

            assembled.append(content)

        return "\n".join(assembled).strip()

    def _inline(
        self,
        match: "re.Match[str]",
        extension: str,
        reference_dir: Path,
        seen: AbstractSet[str],
    ) -> str:
        statement = match.group(2).lower()
        target = match.group(3)
        if not target:
            raise DirectiveError(f"[square] @{statement} statement without a file: {match.group(0)}")

        location = (reference_dir / target).resolve()
        if not location.is_file():
            raise DirectiveError(f"[square] @{statement} statement {target} does not exist")

        key = str(location)
        if key in seen:
            raise CycleError(
                f"recursive [square] import statement detected {match.group(0).strip()}",
                chain=[*sorted(seen), key],
            )

        try:
            source = self._read(location)
        except (OSError, UnicodeDecodeError) as exc:
            raise DirectiveError(
                f"[square] @{statement} statement {target} cannot be read: {exc}"
            ) from exc

        data = comment_wrap(f"[square] directive: {key}", extension)
        data += source.strip()
        return self.resolve(data, extension, location.parent, frozenset(seen) | {key})


def _previous_statement(lines: List[str]) -> Optional[Tuple[int, int, str]]:
    """Locate the closest earlier line of code, skipping blanks and comments.

    Entries of ``lines`` may hold several physical lines once a directive has
    been inlined, so the position is returned as ``(entry, line, text)``.
    """
    for index in range(len(lines) - 1, -1, -1):
        physical = lines[index].split("\n")
        for offset in range(len(physical) - 1, -1, -1):
            stripped = physical[offset].strip()
            if stripped and not _COMMENT_LINE.match(stripped):
                return index, offset, stripped
    return None


def _terminate_line(entry: str, offset: int) -> str:
    physical = entry.split("\n")
    physical[offset] = physical[offset].rstrip() + ";"
    return "\n".join(physical)


__all__ = [
    "DIRECTIVE_PATTERN",
    "DirectiveResolver",
    "SCRIPT_EXTENSIONS",
    "is_script",
    "read_text",
    "terminate",
]
