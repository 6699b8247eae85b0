"""Branch and commit lookups used to tag build output."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, Protocol

from ..logging import get_logger

logger = get_logger("git")


class VCSMetadata(Protocol):
    """Anything able to report the current branch and short commit id."""

    def branch(self) -> str:
        ...

    def commit(self) -> str:
        ...


class GitMetadata:
    """Reads branch and commit information from a git checkout.

    Lookups never raise: outside a repository, or without git installed,
    both values are empty strings.
    """

    def __init__(
        self, cwd: Path | str | None = None, runner: Callable[..., str] | None = None
    ) -> None:
        self._cwd = Path(cwd) if cwd is not None else None
        self._runner = runner or self._default_runner

    def branch(self) -> str:
        return self._query(["git", "rev-parse", "--abbrev-ref", "HEAD"])

    def commit(self) -> str:
        return self._query(["git", "rev-parse", "--short", "HEAD"])

    # ------------------------------------------------------------------
    # Helpers

    def _query(self, args: Iterable[str]) -> str:
        try:
            output = self._runner(list(args), cwd=self._cwd)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("git lookup %s failed: %s", " ".join(args), exc)
            return ""
        return output.strip()

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path | None = None) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = ["GitMetadata", "VCSMetadata"]
