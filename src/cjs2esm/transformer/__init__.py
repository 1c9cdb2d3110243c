"""CommonJS to ES module rewriting over esprima ASTs."""

from .classifier import CallShape, LoaderCall, classify_require
from .core import (
    MARKER,
    ExportMap,
    TransformContext,
    TransformError,
    TransformResult,
    Transformer,
    transform_program,
)
from .polyfill import PolyfillState, build_polyfill
from .resolver import ResolvedSpecifier, resolve_specifier

__all__ = [
    "CallShape",
    "ExportMap",
    "LoaderCall",
    "MARKER",
    "PolyfillState",
    "ResolvedSpecifier",
    "TransformContext",
    "TransformError",
    "TransformResult",
    "Transformer",
    "build_polyfill",
    "classify_require",
    "resolve_specifier",
    "transform_program",
]
