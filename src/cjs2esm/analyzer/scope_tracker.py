"""
Scope analysis for CommonJS / ES2015 JavaScript ASTs.

The analyzer walks an esprima-compatible AST, builds a tree of lexical scopes,
and records bindings introduced by `var`, `let`, `const`, `function`, `class`,
imports, catch clauses and function parameters (destructuring included). The
converter uses the result to pick helper names that do not collide with user
code and to see which ambient identifiers the unit declares itself. A direct
`eval` call is flagged because it can reach `require` or `__dirname` without
any visible reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set


class ScopeType(str, Enum):
    GLOBAL = "global"
    FUNCTION = "function"
    BLOCK = "block"
    CATCH = "catch"
    CLASS = "class"


class BindingKind(str, Enum):
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "function"
    CLASS = "class"
    IMPORT = "import"
    PARAMETER = "parameter"
    CATCH_PARAMETER = "catch_parameter"


_DECLARATION_KINDS = {
    "var": BindingKind.VAR,
    "let": BindingKind.LET,
    "const": BindingKind.CONST,
}

_FUNCTION_NODES = {"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"}


@dataclass(frozen=True)
class SourcePosition:
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class Binding:
    """Represents a single identifier binding within a scope."""

    name: str
    kind: BindingKind
    loc: SourcePosition
    node: Dict[str, Any]


@dataclass
class Scope:
    """A lexical scope containing zero or more bindings and child scopes."""

    scope_id: str
    scope_type: ScopeType
    node: Dict[str, Any]
    parent: Optional["Scope"] = None
    bindings: Dict[str, List[Binding]] = field(default_factory=dict)
    children: List["Scope"] = field(default_factory=list)

    def add_binding(self, binding: Binding) -> None:
        """Register a binding within the current scope."""
        self.bindings.setdefault(binding.name, []).append(binding)

    def add_child(self, child: "Scope") -> None:
        self.children.append(child)


@dataclass(frozen=True)
class AnalysisIssue:
    code: str
    message: str
    loc: SourcePosition


@dataclass(frozen=True)
class AnalysisResult:
    source_name: str
    root_scope: Scope
    issues: List[AnalysisIssue]

    def flatten_scopes(self) -> Iterable[Scope]:
        """Yield scopes in depth-first order."""
        stack = [self.root_scope]
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(reversed(scope.children))

    def bound_names(self) -> Set[str]:
        """Every name bound anywhere in the unit, whatever its scope."""
        names: Set[str] = set()
        for scope in self.flatten_scopes():
            names.update(scope.bindings)
        return names


class _BindingAnalyzer:
    def __init__(self, source_name: str) -> None:
        self._source_name = source_name
        self._scope_counter = 0
        self._issues: List[AnalysisIssue] = []

    def analyze(self, ast: Dict[str, Any]) -> AnalysisResult:
        root_scope = self._new_scope(ScopeType.GLOBAL, ast, parent=None)
        self._visit(ast, root_scope)
        return AnalysisResult(
            source_name=self._source_name,
            root_scope=root_scope,
            issues=self._issues,
        )

    # ------------------------------------------------------------------ helpers

    def _new_scope(
        self, scope_type: ScopeType, node: Dict[str, Any], parent: Optional[Scope]
    ) -> Scope:
        scope_id = f"S{self._scope_counter}"
        self._scope_counter += 1
        scope = Scope(scope_id=scope_id, scope_type=scope_type, node=node, parent=parent)
        if parent:
            parent.add_child(scope)
        return scope

    @staticmethod
    def _source_position(node: Dict[str, Any]) -> SourcePosition:
        loc = node.get("loc") or {}
        start = loc.get("start") or {}
        return SourcePosition(
            line=start.get("line"),
            column=start.get("column"),
        )

    @staticmethod
    def _hoist_target(scope: Scope) -> Scope:
        # `var` ignores block scopes.
        while scope.parent is not None and scope.scope_type not in {
            ScopeType.FUNCTION,
            ScopeType.GLOBAL,
        }:
            scope = scope.parent
        return scope

    def _add_issue(self, code: str, message: str, node: Dict[str, Any]) -> None:
        self._issues.append(
            AnalysisIssue(code=code, message=message, loc=self._source_position(node))
        )

    def _bind(self, identifier: Any, kind: BindingKind, scope: Scope) -> None:
        if isinstance(identifier, dict) and identifier.get("type") == "Identifier":
            scope.add_binding(
                Binding(
                    name=identifier.get("name"),
                    kind=kind,
                    loc=self._source_position(identifier),
                    node=identifier,
                )
            )

    def _bind_pattern(self, pattern: Any, kind: BindingKind, scope: Scope) -> None:
        """Bind every identifier introduced by a (possibly destructuring) pattern."""
        if not isinstance(pattern, dict):
            return
        pattern_type = pattern.get("type")
        if pattern_type == "Identifier":
            self._bind(pattern, kind, scope)
        elif pattern_type == "ObjectPattern":
            for prop in pattern.get("properties", []):
                if prop.get("type") == "Property":
                    if prop.get("computed"):
                        self._visit(prop.get("key"), scope)
                    self._bind_pattern(prop.get("value"), kind, scope)
                else:
                    self._bind_pattern(prop, kind, scope)
        elif pattern_type == "ArrayPattern":
            for element in pattern.get("elements", []):
                self._bind_pattern(element, kind, scope)
        elif pattern_type == "RestElement":
            self._bind_pattern(pattern.get("argument"), kind, scope)
        elif pattern_type == "AssignmentPattern":
            self._bind_pattern(pattern.get("left"), kind, scope)
            self._visit(pattern.get("right"), scope)

    def _visit(self, node: Any, scope: Scope) -> None:
        if node is None:
            return
        if isinstance(node, list):
            for element in node:
                self._visit(element, scope)
            return
        if not isinstance(node, dict):
            return

        handler = getattr(self, f"_visit_{node.get('type')}", None)
        if handler:
            handler(node, scope)
        else:
            self._generic_visit(node, scope)

    def _generic_visit(self, node: Dict[str, Any], scope: Scope) -> None:
        for key, value in node.items():
            if key in {"loc", "range", "comments", "errors"}:
                continue
            self._visit(value, scope)

    # ----------------------------------------------------------------- visitors

    def _visit_Program(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("body", []), scope)

    def _visit_BlockStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        block_scope = self._new_scope(ScopeType.BLOCK, node, scope)
        self._visit(node.get("body", []), block_scope)

    def _visit_VariableDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        kind = _DECLARATION_KINDS.get(node.get("kind"), BindingKind.VAR)
        target = self._hoist_target(scope) if kind is BindingKind.VAR else scope
        for declarator in node.get("declarations", []):
            self._bind_pattern(declarator.get("id"), kind, target)
            # Visit initializer to catch nested functions etc.
            self._visit(declarator.get("init"), scope)

    def _visit_ImportDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        for specifier in node.get("specifiers", []):
            self._bind(specifier.get("local"), BindingKind.IMPORT, scope)

    def _visit_FunctionDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        self._bind(node.get("id"), BindingKind.FUNCTION, self._hoist_target(scope))
        self._visit_function(node, scope)

    def _visit_FunctionExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        function_scope = self._visit_function(node, scope)
        # Named function expressions bind the name within the inner scope.
        self._bind(node.get("id"), BindingKind.FUNCTION, function_scope)

    def _visit_ArrowFunctionExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit_function(node, scope)

    def _visit_function(self, node: Dict[str, Any], scope: Scope) -> Scope:
        function_scope = self._new_scope(ScopeType.FUNCTION, node, scope)
        for param in node.get("params", []):
            self._bind_pattern(param, BindingKind.PARAMETER, function_scope)
        body = node.get("body")
        if isinstance(body, dict) and body.get("type") == "BlockStatement":
            # The function body shares the parameter scope.
            self._visit(body.get("body", []), function_scope)
        else:
            self._visit(body, function_scope)
        return function_scope

    def _visit_ClassDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        self._bind(node.get("id"), BindingKind.CLASS, scope)
        self._visit_class(node, scope)

    def _visit_ClassExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        class_scope = self._visit_class(node, scope)
        self._bind(node.get("id"), BindingKind.CLASS, class_scope)

    def _visit_class(self, node: Dict[str, Any], scope: Scope) -> Scope:
        self._visit(node.get("superClass"), scope)
        class_scope = self._new_scope(ScopeType.CLASS, node, scope)
        self._visit(node.get("body"), class_scope)
        return class_scope

    def _visit_CallExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        callee = node.get("callee")
        if (
            isinstance(callee, dict)
            and callee.get("type") == "Identifier"
            and callee.get("name") == "eval"
        ):
            self._add_issue(
                code="EVAL_CALL",
                message="eval may load modules or read __dirname/__filename invisibly.",
                node=callee,
            )
        self._visit(callee, scope)
        self._visit(node.get("arguments", []), scope)

    def _visit_TryStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("block"), scope)
        handler = node.get("handler")
        if isinstance(handler, dict):
            self._visit_CatchClause(handler, scope)
        self._visit(node.get("finalizer"), scope)

    def _visit_CatchClause(self, node: Dict[str, Any], scope: Scope) -> None:
        catch_scope = self._new_scope(ScopeType.CATCH, node, scope)
        self._bind_pattern(node.get("param"), BindingKind.CATCH_PARAMETER, catch_scope)
        self._visit(node.get("body"), catch_scope)


def analyze_bindings(ast: Dict[str, Any], *, source_name: str = "<input>") -> AnalysisResult:
    """
    Run scope and binding analysis on an esprima AST.

    Args:
        ast: esprima-compatible AST (result of `parse_js`).
        source_name: Label for diagnostics and reporting.

    Returns:
        AnalysisResult with the scope tree and analysis issues.
    """
    analyzer = _BindingAnalyzer(source_name=source_name)
    return analyzer.analyze(ast)


__all__ = [
    "AnalysisResult",
    "AnalysisIssue",
    "Binding",
    "BindingKind",
    "Scope",
    "ScopeType",
    "SourcePosition",
    "analyze_bindings",
]
