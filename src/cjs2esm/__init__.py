"""Convert CommonJS modules to ES modules."""

from .convert import TransformOptions, TransformResult, transform_file, transform_source
from .parser import SourceParseError

__version__ = "0.1.0"

__all__ = [
    "SourceParseError",
    "TransformOptions",
    "TransformResult",
    "transform_file",
    "transform_source",
]
