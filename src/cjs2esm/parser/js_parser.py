"""
JavaScript parsing utilities built on top of the Python `esprima` port.

The module exposes `parse_js`, which returns the JSON-compatible AST along with
metadata describing the parse run. Every node carries `range` and `loc` so the
emitter can splice original text back into the output. Consumers choose
between tolerant parsing (recoverable problems become `ParseError` records)
and strict parsing (the first problem raises `SourceParseError`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

import esprima


@dataclass(frozen=True)
class ParseError:
    """Represents a recoverable parsing issue detected by esprima."""

    description: str
    line: Optional[int]
    column: Optional[int]


class SourceParseError(RuntimeError):
    """Raised when a source unit cannot be parsed at all."""

    def __init__(
        self,
        source_name: str,
        description: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        loc = ""
        if line is not None:
            loc = f":{line}" if column is None else f":{line}:{column}"
        super().__init__(f"{source_name}{loc}: {description}")
        self.source_name = source_name
        self.description = description
        self.line = line
        self.column = column


@dataclass(frozen=True)
class ParseResult:
    """Aggregate of the output AST plus metadata about the parse run."""

    ast: Any
    errors: List[ParseError]
    source_name: str
    source_type: str


def _describe(exc: Exception) -> ParseError:
    description = getattr(exc, "description", None) or str(exc)
    return ParseError(
        description=description,
        line=getattr(exc, "lineNumber", None),
        column=getattr(exc, "column", None),
    )


def parse_js(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = True,
    source_type: str = "module",
) -> ParseResult:
    """
    Parse JavaScript source text into an esprima AST.

    Args:
        source: Raw JavaScript source code.
        source_name: Label used for diagnostics, usually the file path.
        tolerant: When True, esprima performs error recovery instead of raising.
        source_type: `"module"` (default) or `"script"`. Module parsing accepts
            import/export, so converted output can be parsed again.

    Returns:
        ParseResult containing the AST, any recoverable errors, and metadata.

    Raises:
        SourceParseError: If parsing fails and `tolerant` is False.
    """
    if source_type not in {"module", "script"}:
        raise ValueError(f"Unknown source type: {source_type!r}")
    options = dict(loc=True, range=True, comment=True, tolerant=tolerant)
    parser = esprima.parseModule if source_type == "module" else esprima.parseScript
    try:
        ast = parser(source, **options)
    except esprima.Error as exc:
        error = _describe(exc)
        if not tolerant:
            raise SourceParseError(
                source_name, error.description, error.line, error.column
            ) from exc
        # When tolerant parsing fails hard, convert exception into diagnostics.
        return ParseResult(
            ast=None,
            errors=[error],
            source_name=source_name,
            source_type=source_type,
        )

    errors: List[ParseError] = []
    raw_ast = ast.toDict() if hasattr(ast, "toDict") else ast

    if tolerant and isinstance(raw_ast, dict):
        # Collect recoverable errors reported by esprima in tolerant mode.
        for error in raw_ast.get("errors", []):
            errors.append(
                ParseError(
                    description=error.get("description"),
                    line=error.get("lineNumber"),
                    column=error.get("column"),
                )
            )

    return ParseResult(
        ast=raw_ast,
        errors=errors,
        source_name=source_name,
        source_type=source_type,
    )


__all__ = ["ParseResult", "ParseError", "SourceParseError", "parse_js"]
