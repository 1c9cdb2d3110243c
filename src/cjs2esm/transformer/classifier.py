"""
Recognition of `require(...)` expression shapes.

`classify_require` decides once, per expression, whether it is a module
loader call and which of the three rewritable shapes it has. The rewriter
dispatches on the resulting `LoaderCall` instead of re-inspecting nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .nodes import is_identifier, is_string_literal

LOADER = "require"


class CallShape(str, Enum):
    PLAIN = "plain"  # require("x")
    FACTORY = "factory"  # require("x")(args)
    MEMBER = "member"  # require("x").prop


@dataclass(frozen=True)
class LoaderCall:
    """A classified loader call."""

    shape: CallShape
    target: Optional[str]
    target_node: Dict[str, Any]
    node: Dict[str, Any]
    property_name: Optional[str] = None
    arguments: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_static(self) -> bool:
        return self.target is not None


def _plain_call(node: Any) -> Optional[LoaderCall]:
    if not isinstance(node, dict) or node.get("type") != "CallExpression":
        return None
    if not is_identifier(node.get("callee"), LOADER):
        return None
    arguments = node.get("arguments") or []
    if len(arguments) != 1:
        return None
    argument = arguments[0]
    if argument.get("type") == "SpreadElement":
        return None
    target = argument.get("value") if is_string_literal(argument) else None
    return LoaderCall(shape=CallShape.PLAIN, target=target, target_node=argument, node=node)


def classify_require(node: Any) -> Optional[LoaderCall]:
    """
    Classify `node` as a loader call.

    Returns None for anything that is not one of the recognized shapes,
    including factory calls and member reads wrapped around a dynamic call.
    """
    if not isinstance(node, dict):
        return None
    node_type = node.get("type")

    if node_type == "CallExpression":
        plain = _plain_call(node)
        if plain is not None:
            return plain
        inner = _plain_call(node.get("callee"))
        if inner is None or not inner.is_static:
            return None
        return LoaderCall(
            shape=CallShape.FACTORY,
            target=inner.target,
            target_node=inner.target_node,
            node=node,
            arguments=list(node.get("arguments") or []),
        )

    if node_type == "MemberExpression" and not node.get("computed"):
        inner = _plain_call(node.get("object"))
        prop = node.get("property")
        if inner is None or not inner.is_static or not is_identifier(prop):
            return None
        return LoaderCall(
            shape=CallShape.MEMBER,
            target=inner.target,
            target_node=inner.target_node,
            node=node,
            property_name=prop.get("name"),
        )

    return None


__all__ = ["CallShape", "LoaderCall", "LOADER", "classify_require"]
