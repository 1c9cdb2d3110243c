"""Utilities for emitting JavaScript source from rewritten esprima trees."""

from .writer import EmitError, EmitOptions, EmitResult, emit_program

__all__ = ["EmitError", "EmitOptions", "EmitResult", "emit_program"]
