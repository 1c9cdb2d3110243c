"""Semantic analysis helpers for CommonJS / ES2015 JavaScript."""

from .scope_tracker import (
    AnalysisIssue,
    AnalysisResult,
    Binding,
    BindingKind,
    Scope,
    ScopeType,
    SourcePosition,
    analyze_bindings,
)

__all__ = [
    "AnalysisIssue",
    "AnalysisResult",
    "Binding",
    "BindingKind",
    "Scope",
    "ScopeType",
    "SourcePosition",
    "analyze_bindings",
]
