"""
Core transformation logic that rewrites a CommonJS program (as an `esprima`
dict AST) into ES module form.

The transformer walks the top-level statements once. Declarations built
around `require(...)` become import statements, `module.exports = {...}`
becomes a named export list plus a default export, and every node is scanned
for `__dirname` / `__filename` and for loader calls that cannot be hoisted.
Replacements are synthetic nodes anchored to the original text they stand
for; everything else is left as parsed so the emitter can reproduce it
verbatim.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from cjs2esm.analyzer import AnalysisResult, analyze_bindings

from . import nodes
from .classifier import CallShape, LoaderCall, classify_require
from .nodes import Node
from .polyfill import DIRNAME, FILENAME, PolyfillState, build_polyfill
from .resolver import DEFAULT_EXTENSIONS, ExistsPredicate, resolve_specifier

MARKER = "cjs2esm: require() left as-is, evaluated at runtime"
FACTORY_SUFFIX = "Factory"

_IDENTIFIER_NAME = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_SKIPPED_KEYS = {"loc", "range", "comments", "errors", nodes.COMMENTS, nodes.MODIFIED, nodes.SPAN}


class TransformError(RuntimeError):
    """Raised when the tree handed to the transformer is not usable."""

    def __init__(self, message: str, node: Optional[Dict[str, Any]] = None):
        loc = ""
        if node and isinstance(node, dict):
            loc_meta = node.get("loc", {})
            start = loc_meta.get("start") or {}
            line = start.get("line")
            column = start.get("column")
            if line is not None and column is not None:
                loc = f" (line {line}, column {column})"
        super().__init__(f"{message}{loc}")
        self.node = node


@dataclass(frozen=True)
class TransformContext:
    """Contextual information available during node transformation."""

    source_name: str
    base_dir: str = ""
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    exists: Optional[ExistsPredicate] = None
    factory_suffix: str = FACTORY_SUFFIX
    marker: str = MARKER


@dataclass
class TransformState:
    """Mutable per-unit bookkeeping, discarded once the unit is emitted."""

    polyfill: PolyfillState
    local_modules: List[str] = field(default_factory=list)
    default_exported: bool = False


@dataclass(frozen=True)
class ExportMap:
    """(exported key, local name) pairs of a `module.exports` object literal.

    The local name is None when the value is not a plain identifier.
    """

    entries: Tuple[Tuple[str, Optional[str]], ...]

    def named_exports(self) -> List[Tuple[str, str]]:
        """(local, exported) pairs for the `export { ... }` list."""
        latest: Dict[str, Optional[str]] = {}
        for key, local in self.entries:
            latest[key] = local
        return [
            (local, key)
            for key, local in latest.items()
            if local is not None and key != "default"
        ]


@dataclass(frozen=True)
class TransformResult:
    program: Dict[str, Any]
    diagnostics: List[str]
    local_modules: List[str]


class Transformer:
    """Visitor rewriting CommonJS module plumbing into ES module syntax."""

    def __init__(self, *, context: TransformContext, analysis: AnalysisResult):
        self.context = context
        self.diagnostics: List[str] = []
        self.state = TransformState(
            polyfill=PolyfillState(
                bound_names=analysis.bound_names(),
                top_level_names=set(analysis.root_scope.bindings),
            )
        )

    def _format_location(self, node: Optional[Dict[str, Any]]) -> str:
        if not node or not isinstance(node, dict):
            return ""
        loc_meta = node.get("loc", {})
        start = loc_meta.get("start") or {}
        line = start.get("line")
        column = start.get("column")
        if line is None or column is None:
            return ""
        return f" (line {line}, column {column})"

    def _warn(self, message: str, node: Optional[Dict[str, Any]] = None) -> None:
        loc = self._format_location(node)
        self.diagnostics.append(f"{message}{loc}")

    # ------------------------------------------------------------------ program

    def transform_program(self, program: Dict[str, Any]) -> Dict[str, Any]:
        if program.get("type") != "Program":
            raise TransformError("Expected Program node at the root.", program)
        body: List[Node] = []
        for statement in program.get("body", []):
            self._scan(statement, [program])
            body.extend(self._transform_statement(statement))

        prelude = build_polyfill(self.state.polyfill)
        if prelude:
            start = nodes.node_start(body[0]) if body else 0
            for statement in prelude:
                nodes.anchor(statement, start)
        program["body"] = prelude + body
        return program

    def _transform_statement(self, node: Dict[str, Any]) -> List[Node]:
        handler = getattr(self, f"_transform_stmt_{node.get('type')}", None)
        if handler is None:
            return [node]
        return handler(node)

    # ------------------------------------------------------------- declarations

    def _transform_stmt_VariableDeclaration(self, node: Dict[str, Any]) -> List[Node]:
        imports: List[Node] = []
        kept: List[Node] = []
        changed = False
        dynamic = False

        for declarator in node.get("declarations", []):
            loader = classify_require(declarator.get("init"))
            if loader is None:
                kept.append(declarator)
                continue
            if not loader.is_static:
                self._warn("Dynamic require() target; declaration left untouched.", declarator)
                dynamic = True
                kept.append(declarator)
                continue
            lowered = self._lower_declarator(declarator, loader)
            if lowered is None:
                kept.append(declarator)
                continue
            new_imports, replacement = lowered
            imports.extend(new_imports)
            changed = True
            if replacement is not None:
                kept.append(replacement)

        if not changed:
            if dynamic:
                nodes.add_comment(node, self.context.marker)
            return [node]

        start, end = node["range"]
        for statement in imports:
            nodes.anchor(statement, start)
        if not kept:
            # The last import takes over the text of the removed declaration.
            nodes.anchor(imports[-1], start, end)
            return imports

        remainder = nodes.anchor(nodes.variable_declaration(node.get("kind"), kept), start, end)
        if dynamic:
            nodes.add_comment(remainder, self.context.marker)
        return imports + [remainder]

    def _lower_declarator(
        self, declarator: Dict[str, Any], loader: LoaderCall
    ) -> Optional[Tuple[List[Node], Optional[Node]]]:
        """
        Imports replacing one declarator, plus the declarator to keep in its
        place (factory calls only). None when the binding cannot be imported.
        """
        target = declarator.get("id") or {}

        if target.get("type") == "ObjectPattern":
            pairs = _pattern_pairs(target) if loader.shape is CallShape.PLAIN else None
            if pairs is None:
                self._warn("Destructured require() cannot become an import; left untouched.", target)
                return None
            return [nodes.import_named(pairs, self._import_source(loader))], None

        if not nodes.is_identifier(target):
            self._warn("Unsupported binding for require(); left untouched.", target)
            return None

        name = target["name"]
        source = self._import_source(loader)
        if loader.shape is CallShape.PLAIN:
            return [nodes.import_default(name, source)], None
        if loader.shape is CallShape.MEMBER:
            return [nodes.import_named([(loader.property_name, name)], source)], None

        factory = nodes.fresh_name(name + self.context.factory_suffix, self.state.polyfill.bound_names)
        self.state.polyfill.bound_names.add(factory)
        init = nodes.call(nodes.identifier(factory), loader.arguments)
        return [nodes.import_default(factory, source)], nodes.variable_declarator(target, init)

    def _import_source(self, loader: LoaderCall) -> Node:
        resolved = resolve_specifier(
            self.context.base_dir,
            loader.target,
            extensions=self.context.extensions,
            exists=self.context.exists,
        )
        if resolved.is_local:
            self.state.local_modules.append(resolved.path)
            if not resolved.found:
                self._warn(
                    f"Local module '{loader.target}' not found; specifier kept as written.",
                    loader.target_node,
                )
        if resolved.path == loader.target:
            return loader.target_node
        return nodes.string_literal(resolved.path, nodes.quote_of(loader.target_node))

    # ------------------------------------------------------------- expressions

    def _transform_stmt_ExpressionStatement(self, node: Dict[str, Any]) -> List[Node]:
        expression = node.get("expression") or {}

        loader = classify_require(expression)
        if loader is not None:
            if loader.shape is CallShape.PLAIN and loader.is_static:
                statement = nodes.import_side_effect(self._import_source(loader))
                return [nodes.anchor(statement, *node["range"])]
            if not loader.is_static:
                self._warn("Dynamic require() target; statement left untouched.", node)
                nodes.add_comment(node, self.context.marker)
            return [node]

        if (
            expression.get("type") == "AssignmentExpression"
            and expression.get("operator") == "="
            and _is_module_exports(expression.get("left"))
        ):
            return self._lower_module_exports(node, expression.get("right") or {})
        return [node]

    def _lower_module_exports(self, statement: Dict[str, Any], value: Dict[str, Any]) -> List[Node]:
        if value.get("type") != "ObjectExpression":
            self._warn("module.exports is not assigned an object literal; left untouched.", statement)
            return [statement]
        export_map = _export_map(value)
        if export_map is None:
            self._warn(
                "module.exports object has spread, computed or method entries; left untouched.",
                statement,
            )
            return [statement]
        if self.state.default_exported:
            self._warn("module.exports assigned more than once; later assignment left untouched.", statement)
            return [statement]
        self.state.default_exported = True

        top_level = self.state.polyfill.top_level_names | {DIRNAME, FILENAME}
        pairs = export_map.named_exports()
        for local, exported in pairs:
            if local not in top_level:
                self._warn(
                    f"'{local}' is not a top-level binding; export '{exported}' will fail to link.",
                    statement,
                )

        start, end = statement["range"]
        lowered: List[Node] = []
        if pairs:
            lowered.append(nodes.anchor(nodes.export_named(pairs), start))
        lowered.append(nodes.anchor(nodes.export_default(value), start, end))
        return lowered

    # ------------------------------------------------------------------ scanning

    def _scan(self, node: Any, ancestors: List[Node]) -> None:
        """Record ambient identifiers and flag loader calls below the top level."""
        if isinstance(node, list):
            for element in node:
                self._scan(element, ancestors)
            return
        if not isinstance(node, dict):
            return

        node_type = node.get("type")
        if node_type == "Identifier":
            self.state.polyfill.record(node.get("name"))
            return

        nested = ancestors[-1].get("type") != "Program"
        if nested and node_type == "VariableDeclaration":
            for declarator in node.get("declarations", []):
                if classify_require(declarator.get("init")) is not None:
                    self._flag_nested(node, ancestors)
                    break
        elif nested and node_type == "ExpressionStatement":
            if classify_require(node.get("expression")) is not None:
                self._flag_nested(node, ancestors)

        path = ancestors + [node]
        computed = node.get("computed")
        for key, value in list(node.items()):
            if key in _SKIPPED_KEYS or key == "label":
                continue
            if key == "property" and not computed and node_type in {"MemberExpression", "MetaProperty"}:
                continue
            if key == "key" and not computed and node_type in {"Property", "MethodDefinition"}:
                continue
            self._scan(value, path)

    def _flag_nested(self, node: Dict[str, Any], ancestors: Sequence[Node]) -> None:
        self._warn("require() below the top level left untouched.", node)
        nodes.add_comment(node, self.context.marker, ancestors)


# ---------------------------------------------------------------- helpers


def _is_module_exports(node: Any) -> bool:
    return (
        isinstance(node, dict)
        and node.get("type") == "MemberExpression"
        and not node.get("computed")
        and nodes.is_identifier(node.get("object"), "module")
        and nodes.is_identifier(node.get("property"), "exports")
    )


def _pattern_pairs(pattern: Dict[str, Any]) -> Optional[List[Tuple[str, str]]]:
    """(source key, local name) pairs of a flat `{ a, b: c }` pattern."""
    pairs: List[Tuple[str, str]] = []
    for prop in pattern.get("properties", []):
        if prop.get("type") != "Property" or prop.get("computed"):
            return None
        key = _property_key(prop.get("key"))
        value = prop.get("value")
        if key is None or not nodes.is_identifier(value):
            return None
        pairs.append((key, value["name"]))
    return pairs


def _property_key(key: Any) -> Optional[str]:
    if nodes.is_identifier(key):
        return key["name"]
    if nodes.is_string_literal(key) and _IDENTIFIER_NAME.match(key["value"]):
        return key["value"]
    return None


def _export_map(value: Dict[str, Any]) -> Optional[ExportMap]:
    entries: List[Tuple[str, Optional[str]]] = []
    for prop in value.get("properties", []):
        if (
            prop.get("type") != "Property"
            or prop.get("computed")
            or prop.get("method")
            or prop.get("kind") != "init"
        ):
            return None
        key = _property_key(prop.get("key"))
        if key is None:
            return None
        local = prop.get("value")
        entries.append((key, local["name"] if nodes.is_identifier(local) else None))
    return ExportMap(entries=tuple(entries))


def transform_program(
    program: Dict[str, Any],
    *,
    source_name: str = "<input>",
    context: Optional[TransformContext] = None,
    analysis: Optional[AnalysisResult] = None,
) -> TransformResult:
    """
    Convenience wrapper building a transformer instance and returning the
    rewritten program along with collected diagnostics.
    """
    context = context or TransformContext(source_name=source_name)
    analysis = analysis or analyze_bindings(program, source_name=context.source_name)
    transformer = Transformer(context=context, analysis=analysis)
    program = transformer.transform_program(program)
    return TransformResult(
        program=program,
        diagnostics=transformer.diagnostics,
        local_modules=list(transformer.state.local_modules),
    )


__all__ = [
    "ExportMap",
    "FACTORY_SUFFIX",
    "MARKER",
    "TransformContext",
    "TransformError",
    "TransformResult",
    "TransformState",
    "Transformer",
    "transform_program",
]
