"""Logger hierarchy for squarebuild and the console setup used by front ends."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

ROOT_LOGGER = "squarebuild"
CONSOLE_FORMAT = "[squarebuild] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``squarebuild.<name>``, or the package logger when no name is given."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def log_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map front-end flags to a console level; ``quiet`` wins over ``verbose``."""
    if quiet:
        return logging.ERROR
    return logging.DEBUG if verbose else logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route squarebuild records to stderr and, optionally, to ``log_file``.

    Console output never goes to stdout, so ``--stdout`` builds print nothing
    but the artifact. The file sink records debug output whatever the console
    level is. Handlers from an earlier call are closed and replaced.
    """
    console_level = log_level(verbose=verbose, quiet=quiet)
    logger = get_logger()
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(sink)

    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(min(handler.level for handler in handlers))
    return logger


__all__ = ["configure_logging", "get_logger", "log_level"]
