"""Interfaces for parsing JavaScript source code."""

from .js_parser import ParseError, ParseResult, SourceParseError, parse_js

__all__ = ["ParseError", "ParseResult", "SourceParseError", "parse_js"]
