"""
Builders for synthetic esprima-shaped nodes.

Synthetic nodes carry no `range`; the emitter prints them structurally while
original nodes keep being emitted from the source text. Top-level synthetic
statements get a `span` naming the original text they stand for.
"""

from __future__ import annotations

from typing import AbstractSet, Any, Dict, Iterable, List, Optional, Sequence, Tuple

Node = Dict[str, Any]

SPAN = "span"
MODIFIED = "modified"
COMMENTS = "leadingComments"


def identifier(name: str) -> Node:
    return {"type": "Identifier", "name": name}


def string_literal(value: str, quote: str = '"') -> Node:
    escaped = value.replace("\\", "\\\\").replace(quote, "\\" + quote)
    return {"type": "Literal", "value": value, "raw": f"{quote}{escaped}{quote}"}


def import_default(local: str, source: Node) -> Node:
    return {
        "type": "ImportDeclaration",
        "specifiers": [{"type": "ImportDefaultSpecifier", "local": identifier(local)}],
        "source": source,
    }


def import_named(pairs: Iterable[Tuple[str, str]], source: Node) -> Node:
    """`import { imported as local, ... } from source` for (imported, local) pairs."""
    specifiers = [
        {"type": "ImportSpecifier", "imported": identifier(imported), "local": identifier(local)}
        for imported, local in pairs
    ]
    return {"type": "ImportDeclaration", "specifiers": specifiers, "source": source}


def import_side_effect(source: Node) -> Node:
    return {"type": "ImportDeclaration", "specifiers": [], "source": source}


def export_named(pairs: Iterable[Tuple[str, str]]) -> Node:
    """`export { local as exported, ... }` for (local, exported) pairs."""
    specifiers = [
        {"type": "ExportSpecifier", "local": identifier(local), "exported": identifier(exported)}
        for local, exported in pairs
    ]
    return {"type": "ExportNamedDeclaration", "declaration": None, "specifiers": specifiers, "source": None}


def export_default(declaration: Node) -> Node:
    return {"type": "ExportDefaultDeclaration", "declaration": declaration}


def variable_declaration(kind: str, declarations: List[Node]) -> Node:
    return {"type": "VariableDeclaration", "declarations": declarations, "kind": kind}


def variable_declarator(target: Node, init: Optional[Node]) -> Node:
    return {"type": "VariableDeclarator", "id": target, "init": init}


def call(callee: Node, arguments: Sequence[Node]) -> Node:
    return {"type": "CallExpression", "callee": callee, "arguments": list(arguments)}


def import_meta_url() -> Node:
    meta = {"type": "MetaProperty", "meta": identifier("import"), "property": identifier("meta")}
    return {
        "type": "MemberExpression",
        "computed": False,
        "object": meta,
        "property": identifier("url"),
    }


def anchor(statement: Node, start: int, end: Optional[int] = None) -> Node:
    """Attach the original text span a synthetic statement stands for."""
    statement[SPAN] = (start, start if end is None else end)
    return statement


def add_comment(node: Node, text: str, ancestors: Sequence[Node] = ()) -> None:
    """Attach a line comment to `node` and flag its ancestors for re-emission."""
    comments = node.setdefault(COMMENTS, [])
    if any(comment.get("value") == text for comment in comments):
        return
    comments.append({"type": "Line", "value": text})
    for ancestor in ancestors:
        ancestor[MODIFIED] = True


def node_start(node: Node) -> int:
    if SPAN in node:
        return node[SPAN][0]
    return node["range"][0]


def node_end(node: Node) -> int:
    if SPAN in node:
        return node[SPAN][1]
    return node["range"][1]


def is_identifier(node: Any, name: Optional[str] = None) -> bool:
    if not isinstance(node, dict) or node.get("type") != "Identifier":
        return False
    return name is None or node.get("name") == name


def is_string_literal(node: Any) -> bool:
    return (
        isinstance(node, dict)
        and node.get("type") == "Literal"
        and isinstance(node.get("value"), str)
        and node.get("regex") is None
    )


def quote_of(literal: Node) -> str:
    raw = literal.get("raw") or '"'
    return "'" if raw.startswith("'") else '"'


def fresh_name(base: str, taken: AbstractSet[str]) -> str:
    """Prefix `base` with underscores until it names nothing in `taken`."""
    name = base
    while name in taken:
        name = "_" + name
    return name


__all__ = [
    "COMMENTS",
    "MODIFIED",
    "Node",
    "SPAN",
    "add_comment",
    "anchor",
    "call",
    "export_default",
    "export_named",
    "fresh_name",
    "identifier",
    "import_default",
    "import_meta_url",
    "import_named",
    "import_side_effect",
    "is_identifier",
    "is_string_literal",
    "node_end",
    "node_start",
    "quote_of",
    "string_literal",
    "variable_declaration",
    "variable_declarator",
]
