"""
Replacements for the CommonJS-only `__dirname` and `__filename` globals.

The traversal only records what it sees; `build_polyfill` turns that record
into the statements to prepend once the traversal is over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Set

from . import nodes
from .nodes import Node

DIRNAME = "__dirname"
FILENAME = "__filename"

URL_MODULE = "node:url"
PATH_MODULE = "node:path"
TO_PATH_HELPER = "fileURLToPath"
PARENT_HELPER = "dirname"


@dataclass
class PolyfillState:
    """Per-unit record of ambient identifier usage."""

    bound_names: Set[str] = field(default_factory=set)
    top_level_names: Set[str] = field(default_factory=set)
    dirname_used: bool = False
    filename_used: bool = False

    def record(self, name: str) -> None:
        if name == DIRNAME:
            self.dirname_used = True
        elif name == FILENAME:
            self.filename_used = True

    @property
    def needs_dirname(self) -> bool:
        return self.dirname_used and DIRNAME not in self.top_level_names

    @property
    def needs_filename(self) -> bool:
        return self.filename_used and FILENAME not in self.top_level_names


def _helper_import(helper: str, alias: str, module: str) -> Node:
    return nodes.import_named([(helper, alias)], nodes.string_literal(module))


def build_polyfill(state: PolyfillState) -> List[Node]:
    """
    Statements defining the ambient identifiers the unit uses, in order:
    url helper import, path helper import, `__dirname`, `__filename`.
    """
    need_dir = state.needs_dirname
    need_file = state.needs_filename
    if not (need_dir or need_file):
        return []

    to_path = nodes.fresh_name(TO_PATH_HELPER, state.bound_names)
    statements: List[Node] = [_helper_import(TO_PATH_HELPER, to_path, URL_MODULE)]

    def module_path() -> Node:
        return nodes.call(nodes.identifier(to_path), [nodes.import_meta_url()])

    if need_dir:
        parent = nodes.fresh_name(PARENT_HELPER, state.bound_names | {to_path})
        statements.append(_helper_import(PARENT_HELPER, parent, PATH_MODULE))
        statements.append(
            nodes.variable_declaration(
                "const",
                [
                    nodes.variable_declarator(
                        nodes.identifier(DIRNAME),
                        nodes.call(nodes.identifier(parent), [module_path()]),
                    )
                ],
            )
        )
    if need_file:
        statements.append(
            nodes.variable_declaration(
                "const",
                [nodes.variable_declarator(nodes.identifier(FILENAME), module_path())],
            )
        )
    return statements


__all__ = [
    "DIRNAME",
    "FILENAME",
    "PolyfillState",
    "build_polyfill",
]
