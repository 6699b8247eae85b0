"""Manifest driven asset bundler for scripts and stylesheets."""

from .config import EngineOptions, load_options
from .engine import Engine
from .errors import (
    CompileError,
    ConfigError,
    CycleError,
    DirectiveError,
    ManifestError,
    PipelineError,
    SquareError,
    WriteError,
)
from .models import Bundle, Collection, Configuration, Meta, Package

__version__ = "0.4.0"

__all__ = [
    "Bundle",
    "Collection",
    "CompileError",
    "ConfigError",
    "Configuration",
    "CycleError",
    "DirectiveError",
    "Engine",
    "EngineOptions",
    "ManifestError",
    "Meta",
    "Package",
    "PipelineError",
    "SquareError",
    "WriteError",
    "__version__",
    "load_options",
]
