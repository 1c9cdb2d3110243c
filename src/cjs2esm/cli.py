"""
Command-line interface for converting CommonJS files to ES modules.
"""

from __future__ import annotations

import argparse
import difflib
import sys
from pathlib import Path
from typing import List, Optional

from cjs2esm.convert import TransformOptions, TransformResult, transform_source
from cjs2esm.emitter import EmitError
from cjs2esm.parser import SourceParseError
from cjs2esm.transformer import TransformError
from cjs2esm.transformer.resolver import DEFAULT_EXTENSIONS


def _format_location(line: int | None, column: int | None) -> str:
    if line is None:
        return ""
    if column is None:
        return f":{line}"
    return f":{line}:{column}"


def _print_diagnostics(messages: List[str]) -> None:
    if not messages:
        return
    for message in messages:
        sys.stderr.write(message + "\n")


def _collect_diagnostics(source_name: str, result: TransformResult) -> List[str]:
    diagnostics: List[str] = []

    for issue in result.analysis_issues:
        loc = _format_location(issue.loc.line, issue.loc.column)
        diagnostics.append(f"WARNING {source_name}{loc}: {issue.message}")

    for message in result.diagnostics:
        diagnostics.append(f"INFO {source_name}: {message}")

    return diagnostics


def _output_path(args: argparse.Namespace, input_path: Path) -> Path:
    if args.in_place:
        return input_path
    if args.out:
        return Path(args.out)
    return input_path.with_suffix(".mjs")


def _convert_one(args: argparse.Namespace, input_path: Path, options: TransformOptions) -> int:
    if not input_path.exists():
        sys.stderr.write(f"ERROR: Input file not found: {input_path}\n")
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"ERROR: Failed to read {input_path}: {exc}\n")
        return 1

    try:
        result = transform_source(source, input_path, options=options)
    except SourceParseError as exc:
        loc = _format_location(exc.line, exc.column)
        sys.stderr.write(f"ERROR {exc.source_name}{loc}: {exc.description}\n")
        return 1
    except (TransformError, EmitError) as exc:
        sys.stderr.write(f"ERROR: Transformation failed for {input_path}: {exc}\n")
        return 1

    diagnostics = _collect_diagnostics(str(input_path), result)
    _print_diagnostics(diagnostics)

    if args.check:
        if not result.changed:
            return 0
        diff = difflib.unified_diff(
            source.splitlines(keepends=True),
            result.code.splitlines(keepends=True),
            fromfile=str(input_path),
            tofile=str(_output_path(args, input_path)),
        )
        sys.stdout.writelines(diff)
        return 1

    output_path = _output_path(args, input_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.code, encoding="utf-8")

    if args.strict and diagnostics:
        return 1
    return 0


def convert_command(args: argparse.Namespace) -> int:
    inputs = [Path(item).resolve() for item in args.inputs]
    if args.out and len(inputs) > 1:
        sys.stderr.write("ERROR: --out requires a single input file.\n")
        return 2
    if args.out and args.in_place:
        sys.stderr.write("ERROR: --out and --in-place are mutually exclusive.\n")
        return 2

    options = TransformOptions(
        extensions=tuple(args.ext or DEFAULT_EXTENSIONS),
        source_type="script" if args.script else "module",
    )

    status = 0
    for input_path in inputs:
        status = max(status, _convert_one(args, input_path, options))
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cjs2esm", description="Convert CommonJS modules to ES modules"
    )
    subparsers = parser.add_subparsers(dest="command")

    convert_parser = subparsers.add_parser("convert", help="Convert CommonJS files to ES modules")
    convert_parser.add_argument("inputs", nargs="+", help="Paths to the CommonJS files")
    convert_parser.add_argument(
        "--out",
        help="Output file path (defaults to the input path with a .mjs extension)",
    )
    convert_parser.add_argument(
        "--in-place",
        action="store_true",
        help="Overwrite each input file with its converted source.",
    )
    convert_parser.add_argument(
        "--check",
        action="store_true",
        help="Write nothing; print a diff and exit 1 if any file would change.",
    )
    convert_parser.add_argument(
        "--ext",
        action="append",
        help="Extension probed when completing relative specifiers (repeatable, default .js).",
    )
    convert_parser.add_argument(
        "--script",
        action="store_true",
        help="Parse the input as a script instead of a module.",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings and untransformed requires as errors.",
    )
    convert_parser.set_defaults(func=convert_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
