"""CLI entrypoints for squarebuild commands."""

from __future__ import annotations

import argparse
import platform
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, NoReturn, Sequence

from . import __version__
from .config import EngineOptions, load_options
from .engine import Engine
from .errors import SquareError
from .logging import configure_logging, get_logger
from .storage import storage_registry
from .transforms import transform_registry

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="squarebuild",
        description="Bundle scripts and stylesheets described by a square.json manifest.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Build the bundles described by a manifest.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "bundle",
        nargs="?",
        default="square.json",
        help="Path to the manifest (defaults to square.json in the current directory).",
    )
    build_parser.add_argument(
        "-e",
        "--extension",
        action="append",
        default=[],
        help="Only build this output extension; may be repeated.",
    )
    build_parser.add_argument(
        "-p",
        "--plugin",
        action="append",
        default=[],
        help="Add a transform stage by name; may be repeated.",
    )
    build_parser.add_argument(
        "-f",
        "--filename",
        action="append",
        default=[],
        help="Override the output path template, optionally as KIND=TEMPLATE.",
    )
    build_parser.add_argument(
        "--platform",
        default="web",
        help="Platform passed to compilers (defaults to web).",
    )
    build_parser.add_argument(
        "--distribution",
        default="min",
        help="Distribution kind to build (defaults to min).",
    )
    build_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the build output instead of storing it.",
    )
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the full build without persisting any file.",
    )

    plugins_parser = subparsers.add_parser(
        "plugins",
        help="List the transform stages that can be enabled.",
    )
    _add_verbose_option(plugins_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for squarebuild commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    stdout = bool(getattr(args, "stdout", False))
    configure_logging(verbose=bool(args.verbose), quiet=stdout, log_file=args.log_file)

    if args.command == "plugins":
        engine = Engine(transforms=transform_registry(entry_points=True))
        for info in engine.plugins():
            print(f"{info.name:<16} {info.description}")
        return

    if args.command != "build":  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    manifest = Path(args.bundle)
    try:
        options = _build_options(manifest, stdout=stdout, dry_run=bool(args.dry_run))
        engine = Engine(
            options,
            transforms=transform_registry(entry_points=True),
            storages=storage_registry(entry_points=True),
        )
        package = engine.parse(manifest)
        if args.filename:
            package.configuration.dist.update(
                _filename_overrides(args.filename, options.distributions)
            )
        for name in [*options.plugins, *args.plugin]:
            engine.plugin(name)
        files = engine.build(args.platform, args.extension or None, args.distribution)
    except SquareError as exc:
        _critical(parser, exc)

    for basename, collection in files.items():
        if stdout:
            sys.stdout.write(collection.content)
            if not collection.content.endswith("\n"):
                sys.stdout.write("\n")
        elif args.dry_run:
            print(f"{basename} would be written to {_relativize(Path(collection.file or basename))}")
        else:
            print(f"{basename} written to {_relativize(Path(collection.file or basename))}")


def _build_options(manifest: Path, *, stdout: bool, dry_run: bool) -> EngineOptions:
    options = load_options(manifest.parent, EngineOptions.from_environment())
    storages = options.storages or ["disk"]
    writable = options.writable and not dry_run
    return replace(options, stdout=stdout, writable=writable, storages=storages)


def _filename_overrides(values: Sequence[str], distributions: Sequence[str]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for value in values:
        kind, sep, pattern = value.partition("=")
        if sep and kind in distributions:
            overrides[kind] = pattern
        else:
            overrides.update({name: value for name in distributions})
    return overrides


def _critical(parser: argparse.ArgumentParser, exc: BaseException) -> NoReturn:
    logger.critical("%s", exc)
    details: List[str] = [
        "",
        "Additional information:",
        "",
        f"- squarebuild version:     {__version__}",
        f"- Python version:          {platform.python_version()}",
        f"- System information:      {platform.system()}, {platform.release()} ({platform.machine()})",
        f"- Issued command:          {' '.join(sys.argv)}",
        f"- Current working dir:     {Path.cwd()}",
        "",
    ]
    for line in details:
        logger.info(line)
    parser.exit(1, f"squarebuild build failed: {exc}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
