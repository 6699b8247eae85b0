"""Compiler collaborator interface and registry."""

from .base import CompileDetails, Compiler, CompilerRegistry

__all__ = ["CompileDetails", "Compiler", "CompilerRegistry"]
