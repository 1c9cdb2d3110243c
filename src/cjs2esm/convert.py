"""
File-level entry points: parse, analyze, rewrite and emit one source unit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from cjs2esm.analyzer import AnalysisIssue
from cjs2esm.emitter import EmitOptions, emit_program
from cjs2esm.frontend import FrontEndResult, run_frontend
from cjs2esm.parser import SourceParseError
from cjs2esm.transformer import MARKER, TransformContext, transform_program
from cjs2esm.transformer.core import FACTORY_SUFFIX
from cjs2esm.transformer.resolver import DEFAULT_EXTENSIONS, ExistsPredicate


@dataclass(frozen=True)
class TransformOptions:
    """Knobs for one conversion run."""

    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    source_type: str = "module"
    factory_suffix: str = FACTORY_SUFFIX
    marker: str = MARKER
    exists: Optional[ExistsPredicate] = None
    trailing_newline: bool = True
    script_fallback: bool = True


@dataclass(frozen=True)
class TransformResult:
    code: str
    changed: bool
    diagnostics: List[str]
    local_modules: List[str]
    analysis_issues: List[AnalysisIssue] = field(default_factory=list)


def _parse(source: str, source_name: str, source_type: str) -> FrontEndResult:
    return run_frontend(
        source,
        source_name=source_name,
        tolerant=False,
        analyze=True,
        source_type=source_type,
    )


def transform_source(
    source: str,
    path: Union[str, Path] = "<input>",
    *,
    options: Optional[TransformOptions] = None,
) -> TransformResult:
    """
    Convert CommonJS `source` into an ES module.

    Args:
        source: JavaScript source text.
        path: Path of the file the source came from. Relative specifiers are
            resolved against its directory.
        options: Conversion options; defaults to `TransformOptions()`.

    Returns:
        TransformResult with the rewritten code and collected diagnostics.

    Raises:
        SourceParseError: If the source parses neither as a module nor, when
            `script_fallback` is on, as a script. The module error is raised.
    """
    options = options or TransformOptions()
    source_name = str(path)

    notes: List[str] = []
    try:
        frontend_result = _parse(source, source_name, options.source_type)
    except SourceParseError as module_error:
        if options.source_type != "module" or not options.script_fallback:
            raise
        # Sloppy-mode CommonJS is not valid module code.
        try:
            frontend_result = _parse(source, source_name, "script")
        except SourceParseError:
            raise module_error from None
        notes.append(f"Not valid as a module ({module_error.description}); parsed as a script.")

    context = TransformContext(
        source_name=source_name,
        base_dir=os.path.dirname(source_name),
        extensions=tuple(options.extensions),
        exists=options.exists,
        factory_suffix=options.factory_suffix,
        marker=options.marker,
    )
    transform_result = transform_program(
        frontend_result.parse.ast,
        context=context,
        analysis=frontend_result.analysis,
    )
    emit_result = emit_program(
        transform_result.program,
        source,
        EmitOptions(trailing_newline=options.trailing_newline),
    )
    return TransformResult(
        code=emit_result.source,
        changed=emit_result.changed,
        diagnostics=notes + transform_result.diagnostics,
        local_modules=transform_result.local_modules,
        analysis_issues=list(frontend_result.analysis.issues),
    )


def transform_file(
    path: Union[str, Path], *, options: Optional[TransformOptions] = None
) -> TransformResult:
    """Read `path` as UTF-8 and convert it."""
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    return transform_source(source, path, options=options)


__all__ = ["TransformOptions", "TransformResult", "transform_file", "transform_source"]
