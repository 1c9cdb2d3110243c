"""
Parse-then-analyze step the converter runs on every unit.

Executable CommonJS files often start with a `#!` line, which esprima rejects.
The line is masked as a `//` comment of equal length before parsing so node
ranges still index the untouched text the emitter splices from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cjs2esm.analyzer import AnalysisResult, analyze_bindings
from cjs2esm.parser import ParseResult, parse_js

HASHBANG = "#!"


@dataclass(frozen=True)
class FrontEndResult:
    parse: ParseResult
    analysis: Optional[AnalysisResult]


def mask_hashbang(source: str) -> str:
    if source.startswith(HASHBANG):
        return "//" + source[len(HASHBANG):]
    return source


def run_frontend(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = True,
    analyze: bool = True,
    source_type: str = "module",
) -> FrontEndResult:
    """
    Parse `source` and, unless `analyze` is False, run binding analysis on it.

    Args:
        source: Raw JavaScript source text, optionally starting with `#!`.
        source_name: Identifier used in diagnostics, e.g. file path.
        tolerant: When False a `SourceParseError` propagates instead of being
            collected on the parse result.
        analyze: Skip scope analysis when only the tree is needed.
        source_type: `"module"` or `"script"`.
    """
    parse_result = parse_js(
        mask_hashbang(source),
        source_name=source_name,
        tolerant=tolerant,
        source_type=source_type,
    )

    analysis_result: Optional[AnalysisResult] = None
    if analyze and parse_result.ast is not None:
        analysis_result = analyze_bindings(parse_result.ast, source_name=source_name)

    return FrontEndResult(parse=parse_result, analysis=analysis_result)


__all__ = ["FrontEndResult", "mask_hashbang", "run_frontend"]
