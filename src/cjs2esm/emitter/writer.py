"""
Serialize a rewritten program back to JavaScript source text.

Nodes that still carry an esprima `range` are copied from the original
source, so formatting and comments survive untouched. Synthetic nodes are
printed structurally. A node flagged as modified (something below it gained
a comment) is rebuilt by splicing its children back into its own text.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from cjs2esm.transformer.nodes import COMMENTS, MODIFIED, SPAN, node_end, node_start

_LINE_BREAKS = ("\n", "\r\n")
_SKIPPED_KEYS = {"type", "loc", "range", "comments", "errors", COMMENTS, MODIFIED, SPAN}


class EmitError(RuntimeError):
    """Raised when a synthetic node has no printer."""


@dataclass(frozen=True)
class EmitOptions:
    trailing_newline: bool = True


@dataclass(frozen=True)
class EmitResult:
    source: str
    changed: bool


class _Writer:
    def __init__(self, source: str) -> None:
        self._source = source

    # ------------------------------------------------------------------ program

    def program(self, program: Dict[str, Any]) -> str:
        buffer = io.StringIO()
        cursor = 0
        pending_break = False
        for statement in program.get("body", []):
            start, end = node_start(statement), node_end(statement)
            gap = self._source[cursor:start] if start > cursor else ""
            if pending_break and not gap.startswith(_LINE_BREAKS):
                buffer.write("\n")
            buffer.write(gap)
            buffer.write(self.render(statement))
            cursor = max(cursor, end)
            # Inserted statements need a line break before whatever follows.
            pending_break = SPAN in statement and start == end
        tail = self._source[cursor:]
        if pending_break and not tail.startswith(_LINE_BREAKS):
            buffer.write("\n")
        buffer.write(tail)
        return buffer.getvalue()

    # -------------------------------------------------------------------- nodes

    def render(self, node: Dict[str, Any]) -> str:
        prefix = self._comments(node)
        if "range" in node:
            start, end = node["range"]
            if node.get(MODIFIED):
                return prefix + self._splice(node, start, end)
            return prefix + self._source[start:end]
        printer = getattr(self, f"_print_{node.get('type')}", None)
        if printer is None:
            raise EmitError(f"No printer for synthetic node: {node.get('type')}")
        return prefix + printer(node)

    def _comments(self, node: Dict[str, Any]) -> str:
        comments = node.get(COMMENTS) or []
        if not comments:
            return ""
        indent = self._indent_of(node)
        parts: List[str] = []
        for comment in comments:
            value = comment.get("value", "")
            if indent is None:
                parts.append(f"/* {value} */ ")
            else:
                parts.append(f"// {value}\n{indent}")
        return "".join(parts)

    def _indent_of(self, node: Dict[str, Any]) -> Optional[str]:
        """Whitespace before the node on its line, or None if it is not first."""
        if "range" not in node and SPAN not in node:
            return None
        start = node_start(node)
        line_start = self._source.rfind("\n", 0, start) + 1
        leading = self._source[line_start:start]
        return leading if not leading.strip() else None

    def _splice(self, node: Dict[str, Any], start: int, end: int) -> str:
        parts: List[str] = []
        cursor = start
        for child in sorted(self._children(node), key=lambda item: item["range"][0]):
            child_start, child_end = child["range"]
            # Shorthand properties share one range between key and value.
            if child_start < cursor:
                continue
            parts.append(self._source[cursor:child_start])
            parts.append(self.render(child))
            cursor = child_end
        parts.append(self._source[cursor:end])
        return "".join(parts)

    @staticmethod
    def _children(node: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        for key, value in node.items():
            if key in _SKIPPED_KEYS:
                continue
            if isinstance(value, dict) and "range" in value:
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict) and "range" in item:
                        yield item

    # ----------------------------------------------------------------- printers

    @staticmethod
    def _alias(name: str, alias: str) -> str:
        return name if name == alias else f"{name} as {alias}"

    def _print_ImportDeclaration(self, node: Dict[str, Any]) -> str:
        source = self.render(node["source"])
        clauses: List[str] = []
        named: List[str] = []
        for specifier in node.get("specifiers", []):
            kind = specifier.get("type")
            local = self.render(specifier["local"])
            if kind == "ImportDefaultSpecifier":
                clauses.append(local)
            elif kind == "ImportNamespaceSpecifier":
                clauses.append(f"* as {local}")
            else:
                named.append(self._alias(self.render(specifier["imported"]), local))
        if named:
            clauses.append("{ " + ", ".join(named) + " }")
        if not clauses:
            return f"import {source};"
        return f"import {', '.join(clauses)} from {source};"

    def _print_ExportNamedDeclaration(self, node: Dict[str, Any]) -> str:
        declaration = node.get("declaration")
        if declaration is not None:
            return f"export {self.render(declaration)}"
        specifiers = [
            self._alias(self.render(spec["local"]), self.render(spec["exported"]))
            for spec in node.get("specifiers", [])
        ]
        return "export { " + ", ".join(specifiers) + " };"

    def _print_ExportDefaultDeclaration(self, node: Dict[str, Any]) -> str:
        return f"export default {self.render(node['declaration'])};"

    def _print_VariableDeclaration(self, node: Dict[str, Any]) -> str:
        declarations = ", ".join(self.render(item) for item in node.get("declarations", []))
        return f"{node.get('kind')} {declarations};"

    def _print_VariableDeclarator(self, node: Dict[str, Any]) -> str:
        target = self.render(node["id"])
        init = node.get("init")
        if init is None:
            return target
        return f"{target} = {self.render(init)}"

    def _print_CallExpression(self, node: Dict[str, Any]) -> str:
        arguments = ", ".join(self.render(arg) for arg in node.get("arguments", []))
        return f"{self.render(node['callee'])}({arguments})"

    def _print_MemberExpression(self, node: Dict[str, Any]) -> str:
        target = self.render(node["object"])
        prop = self.render(node["property"])
        if node.get("computed"):
            return f"{target}[{prop}]"
        return f"{target}.{prop}"

    def _print_MetaProperty(self, node: Dict[str, Any]) -> str:
        return f"{self.render(node['meta'])}.{self.render(node['property'])}"

    def _print_Identifier(self, node: Dict[str, Any]) -> str:
        return node["name"]

    def _print_Literal(self, node: Dict[str, Any]) -> str:
        raw = node.get("raw")
        if raw is not None:
            return raw
        return json.dumps(node.get("value"))


def emit_program(
    program: Dict[str, Any], source: str, options: Optional[EmitOptions] = None
) -> EmitResult:
    """
    Render the rewritten `program` using `source`, the text it was parsed from.
    """
    options = options or EmitOptions()
    text = _Writer(source).program(program)
    if options.trailing_newline and text and not text.endswith("\n"):
        text += "\n"
    return EmitResult(source=text, changed=text != source)


__all__ = ["EmitError", "EmitOptions", "EmitResult", "emit_program"]
